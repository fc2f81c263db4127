"""Command-line entry point for explicit indexing runs."""

import logging
import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from log_indexer.config import load_config_file
from log_indexer.errors import ConfigurationError
from log_indexer.hooks import console_command
from log_indexer.models import RunSummary
from log_indexer.orchestrator import INDEX_COMMAND_NAME, IndexingOrchestrator
from log_indexer.processors import LoggingProcessor, NdjsonProcessor

logger = logging.getLogger(__name__)

EXAMPLES = """\
examples:
  log-indexer                           index every configured source
  log-indexer -p /var/logs/app.log      index one file
  log-indexer --pattern="error*.log"    override the configured pattern
  log-indexer --emit entries.ndjson     write classified entries as NDJSON
"""


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-indexer",
        description="Index log files for analysis.",
        epilog=EXAMPLES,
        formatter_class=RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config",
        help="YAML config file (default: $CONFIG_PATH)",
    )
    parser.add_argument(
        "-p", "--path",
        help="Index this log file only, ignoring configured sources",
    )
    parser.add_argument(
        "--pattern",
        help="Glob pattern replacing the configured source patterns",
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Re-index files even if already processed",
    )
    parser.add_argument(
        "--emit",
        metavar="FILE",
        help="Write classified entries as NDJSON to FILE ('-' for stdout)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser


def print_warnings(summary: RunSummary, out=None):
    out = out or sys.stdout
    for w in summary.warnings:
        print(f"Failed to process {w.source_file}: {w.error}", file=out)


def print_summary(summary: RunSummary, out=None):
    out = out or sys.stdout
    print_warnings(summary, out)

    print("Log indexing completed!", file=out)
    rows = [
        ("Total files found", summary.files_found),
        ("Files processed", summary.files_processed),
        ("Files skipped", summary.files_skipped),
        ("Log entries indexed", summary.entries_indexed),
        ("Log entries excluded", summary.entries_excluded),
    ]
    width = max(len(label) for label, _ in rows)
    for label, value in rows:
        print(f"  {label:<{width}}  {value}", file=out)


def run_index(args, orchestrator: IndexingOrchestrator, out=None) -> int:
    """Run one explicit indexing pass and print its summary. Always returns 0."""
    out = out or sys.stdout
    if args.path:
        print(f"Indexing specific log file: {args.path}", file=out)
    else:
        print("Discovering log files from configured sources...", file=out)

    summary = orchestrator.run(path=args.path, pattern=args.pattern, force=args.force)

    if summary.state == "empty":
        print_warnings(summary, out)
        print("No log files found to index!", file=out)
        print("Make sure your log sources are configured correctly "
              "(log_sources in the config file).", file=out)
        return 0

    print_summary(summary, out)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config_file(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logger.debug("Loaded %d log sources", len(config.log_sources))

    out = sys.stdout
    stream = None
    if args.emit == "-":
        processor = NdjsonProcessor(sys.stdout)
        out = sys.stderr
    elif args.emit:
        try:
            stream = open(args.emit, "a", encoding="utf-8")
        except OSError as e:
            print(f"Error: cannot open {args.emit}: {e}", file=sys.stderr)
            return 1
        processor = NdjsonProcessor(stream)
    else:
        processor = LoggingProcessor()

    orchestrator = IndexingOrchestrator(processor, config)
    command = console_command(orchestrator, INDEX_COMMAND_NAME)(run_index)
    try:
        return command(args, orchestrator, out)
    finally:
        if stream is not None:
            stream.close()


if __name__ == "__main__":
    sys.exit(main())
