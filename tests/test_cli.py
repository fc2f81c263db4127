"""Tests for the command-line entry point."""

import io
import json
from argparse import Namespace

import pytest

from log_indexer.cli import build_parser, main, run_index
from log_indexer.orchestrator import IndexingOrchestrator
from tests.conftest import RecordingProcessor


def _args(**kw):
    defaults = {"path": None, "pattern": None, "force": False}
    defaults.update(kw)
    return Namespace(**defaults)


@pytest.fixture
def config_file(tmp_path, log_dir):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"log_sources:\n"
        f"  - path: {log_dir}\n"
        f"indexing:\n"
        f"  batch_size: 10\n"
        f"  excluded_patterns: ['/health', '/metrics']\n"
    )
    return str(path)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CONFIG_PATH", "BATCH_SIZE", "AUTO_INDEX", "TAIL_LINES", "STATE_FILE", "LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    def test_options(self):
        args = build_parser().parse_args(["-p", "/var/logs/app.log", "--pattern", "error*.log", "-f"])
        assert args.path == "/var/logs/app.log"
        assert args.pattern == "error*.log"
        assert args.force is True

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.path is None
        assert args.pattern is None
        assert args.force is False
        assert args.emit is None


class TestRunIndex:
    def test_summary(self, make_config, write_log, processor):
        write_log("app.log", ["[2024-01-01 10:00:00] ERROR: Database connection failed",
                              "[2024-01-01 10:01:00] INFO: Application started"])
        write_log("error.log", ["[2024-01-01 10:02:00] CRITICAL: Payment system down"])
        out = io.StringIO()

        code = run_index(_args(), IndexingOrchestrator(processor, make_config()), out)

        text = out.getvalue()
        assert code == 0
        assert "Discovering log files from configured sources..." in text
        assert "Log indexing completed!" in text
        assert "Total files found" in text
        assert "Files processed" in text
        assert "Log entries indexed" in text

    def test_specific_path(self, make_config, write_log, processor):
        path = write_log("specific.log", ["[2024-01-01 10:00:00] ERROR: Test error"])
        out = io.StringIO()
        run_index(_args(path=path), IndexingOrchestrator(processor, make_config()), out)
        assert f"Indexing specific log file: {path}" in out.getvalue()
        assert len(processor.batches) == 1

    def test_no_files(self, make_config, processor):
        out = io.StringIO()
        code = run_index(_args(), IndexingOrchestrator(processor, make_config()), out)
        assert code == 0
        assert "No log files found to index!" in out.getvalue()
        assert "Make sure your log sources are configured correctly" in out.getvalue()

    def test_no_files_still_reports_discovery_failures(self, make_config, processor, monkeypatch):
        def expand(source, pattern=None):
            raise PermissionError("Permission denied")

        monkeypatch.setattr("log_indexer.resolver.expand_source", expand)
        out = io.StringIO()

        code = run_index(_args(), IndexingOrchestrator(processor, make_config()), out)

        assert code == 0
        lines = out.getvalue().splitlines()
        assert any(line.startswith("Failed to process") and "Permission denied" in line for line in lines)
        assert "No log files found to index!" in lines

    def test_processor_failure_still_succeeds(self, make_config, write_log):
        write_log("failing.log", ["[2024-01-01] ERROR: Test"])
        processor = RecordingProcessor(fail_with=RuntimeError("Processing failed"))
        out = io.StringIO()

        code = run_index(_args(), IndexingOrchestrator(processor, make_config()), out)

        assert code == 0
        assert "Failed to process" in out.getvalue()
        assert "Processing failed" in out.getvalue()


class TestMain:
    def test_emit_ndjson(self, config_file, write_log, tmp_path, capsys):
        write_log("app.log", ["[2024-01-01] ERROR: Database failed",
                              "[2024-01-01] INFO: /health endpoint"])
        out_file = tmp_path / "out.ndjson"

        code = main(["--config", config_file, "--emit", str(out_file)])

        assert code == 0
        records = [json.loads(line) for line in out_file.read_text().splitlines()]
        assert len(records) == 1
        assert records[0]["level"] == "error"
        assert records[0]["category"] == "database"
        assert records[0]["context"]["auto_indexed"] is False
        assert "Log entries indexed" in capsys.readouterr().out

    def test_emit_stdout_moves_summary_to_stderr(self, config_file, write_log, capsys):
        write_log("app.log", ["INFO: hello"])
        assert main(["--config", config_file, "--emit", "-"]) == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out.strip())["message"] == "INFO: hello"
        assert "Log indexing completed!" in captured.err

    def test_nonexistent_source(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text("log_sources:\n  - path: /nonexistent/path\n")
        assert main(["--config", str(path)]) == 0
        assert "No log files found to index!" in capsys.readouterr().out

    def test_configuration_error_exits_1(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_batch_size_exits_1(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("indexing:\n  batch_size: 0\n")
        assert main(["--config", str(path)]) == 1

    def test_unwritable_emit_target_exits_1(self, config_file, write_log, tmp_path, capsys):
        write_log("app.log", ["INFO: hello"])
        target = tmp_path / "missing-dir" / "out.ndjson"

        assert main(["--config", config_file, "--emit", str(target)]) == 1
        err = capsys.readouterr().err
        assert "Error: cannot open" in err
        assert "Traceback" not in err
