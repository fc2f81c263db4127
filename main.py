"""log-indexer: classify application log lines and forward them in batches."""

import sys

from log_indexer.cli import main

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
