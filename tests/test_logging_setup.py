"""Tests for safe_output.logging_setup."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from safe_output.logging_setup import configure, _PACKAGE


@pytest.fixture(autouse=True)
def _clean_logger():
    """Reset the package logger between tests."""
    pkg = logging.getLogger(_PACKAGE)
    pkg.handlers.clear()
    pkg.setLevel(logging.WARNING)
    yield
    for h in pkg.handlers:
        h.close()
    pkg.handlers.clear()
    pkg.setLevel(logging.WARNING)
    pkg.propagate = True


def _settings(tmp_path: Path, **overrides) -> dict[str, object]:
    return {"log_file": str(tmp_path / "test.log"), "debug": False, **overrides}


def _handler_types() -> set[str]:
    return {type(h).__name__ for h in logging.getLogger(_PACKAGE).handlers}


class TestConfigure:
    def test_attaches_file_and_stderr_handlers(self, tmp_path: Path):
        configure(_settings(tmp_path), debug=True)
        pkg = logging.getLogger(_PACKAGE)
        assert len(pkg.handlers) == 2
        assert _handler_types() == {"RotatingFileHandler", "StreamHandler"}
        assert pkg.propagate is False

    def test_idempotent_without_reconfigure(self, tmp_path: Path):
        configure(_settings(tmp_path))
        configure(_settings(tmp_path))
        assert len(logging.getLogger(_PACKAGE).handlers) == 2

    def test_reconfigure_replaces_handlers(self, tmp_path: Path):
        configure(_settings(tmp_path))
        configure(_settings(tmp_path, log_file=str(tmp_path / "second.log")), reconfigure=True)
        pkg = logging.getLogger(_PACKAGE)
        assert len(pkg.handlers) == 2
        files = [h.baseFilename for h in pkg.handlers if hasattr(h, "baseFilename")]
        assert files == [str(tmp_path / "second.log")]

    def test_level_from_flag_or_settings(self, tmp_path: Path):
        configure(_settings(tmp_path))
        assert logging.getLogger(_PACKAGE).level == logging.INFO
        configure(_settings(tmp_path), debug=True, reconfigure=True)
        assert logging.getLogger(_PACKAGE).level == logging.DEBUG
        configure(_settings(tmp_path, debug=True), reconfigure=True)
        assert logging.getLogger(_PACKAGE).level == logging.DEBUG

    def test_empty_log_file_disables_file_handler(self, tmp_path: Path):
        configure(_settings(tmp_path, log_file=""))
        assert _handler_types() == {"StreamHandler"}
        assert list(tmp_path.iterdir()) == []

    def test_file_handler_failure_prints_to_stderr(self, capsys):
        settings = {"log_file": "/nonexistent/deeply/nested/dir/test.log"}
        with patch("safe_output.logging_setup.Path.mkdir", side_effect=OSError("permission denied")):
            configure(settings)
        captured = capsys.readouterr()
        assert "WARNING" in captured.err
        assert "permission denied" in captured.err
        assert _handler_types() == {"StreamHandler"}

    def test_payload_on_stderr_keeps_stderr_clean(self, tmp_path: Path, capsys):
        configure(_settings(tmp_path), payload_on_stderr=True)
        assert _handler_types() == {"RotatingFileHandler"}
        logging.getLogger(f"{_PACKAGE}.writer").warning("should not reach stderr")
        assert capsys.readouterr().err == ""

    def test_payload_on_stderr_suppresses_log_file_warning(self, capsys):
        settings = {"log_file": "/nonexistent/deeply/nested/dir/test.log"}
        with patch("safe_output.logging_setup.Path.mkdir", side_effect=OSError("permission denied")):
            configure(settings, payload_on_stderr=True)
        assert capsys.readouterr().err == ""
        assert _handler_types() == {"NullHandler"}

    def test_writer_debug_lines_reach_log_file(self, tmp_path: Path):
        from safe_output.writer import AtomicFileWriter

        configure(_settings(tmp_path), debug=True)
        w = AtomicFileWriter(str(tmp_path / "out.txt"), 0o644)
        w.write(b"x")
        w.close()
        for h in logging.getLogger(_PACKAGE).handlers:
            h.flush()
        content = (tmp_path / "test.log").read_text()
        assert "safe_output.writer" in content
        assert "using temporary file" in content
        assert "rename" in content
