"""
Integration tests for the process entry point.

Tests cover:
- Exit status for setup failures
- Empty configuration no-op
- Logging setup
"""

import logging
import tempfile
from pathlib import Path

import json_log_formatter
import pytest

from surf import main as surf_main
from surf.config import SurfSettings
from surf.errors import AuthenticationError
from surf.runner import RunReport


class TestMain:
    """Tests for main()."""

    @pytest.fixture
    def config_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_missing_config_exits_nonzero(self, config_dir, monkeypatch, capsys):
        monkeypatch.setenv("SURF_CONFIG", str(config_dir / "missing.yml"))

        with pytest.raises(SystemExit) as exc_info:
            surf_main.main()

        assert exc_info.value.code == 1
        assert "could not open config file" in capsys.readouterr().err

    def test_invalid_config_lists_errors(self, config_dir, monkeypatch, capsys):
        path = config_dir / "surf.yml"
        path.write_text("droplets:\n  - name: a\n    snapshots:\n      - {interval: 1h, note: x}\n")
        monkeypatch.setenv("SURF_CONFIG", str(path))

        with pytest.raises(SystemExit) as exc_info:
            surf_main.main()

        assert exc_info.value.code == 1
        assert "keep is required" in capsys.readouterr().err

    def test_empty_config_exits_cleanly(self, config_dir, monkeypatch):
        path = config_dir / "surf.yml"
        path.write_text("access_token: ''\ndroplets: []\n")
        monkeypatch.setenv("SURF_CONFIG", str(path))

        surf_main.main()

    def test_missing_token_exits_nonzero(self, config_dir, monkeypatch):
        path = config_dir / "surf.yml"
        path.write_text(
            "droplets:\n  - name: a\n    snapshots:\n      - {interval: 1h, keep: 1d, note: x}\n"
        )
        monkeypatch.setenv("SURF_CONFIG", str(path))
        monkeypatch.delenv("SURF_ACCESS_TOKEN", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            surf_main.main()

        assert exc_info.value.code == 1

    def test_setup_error_from_run_exits_nonzero(self, monkeypatch):
        async def fail(settings):
            raise AuthenticationError("rejected", status_code=401)

        monkeypatch.setattr(surf_main, "run", fail)

        with pytest.raises(SystemExit) as exc_info:
            surf_main.main()

        assert exc_info.value.code == 1

    def test_per_unit_failures_exit_zero(self, monkeypatch):
        async def ok(settings):
            return RunReport()

        monkeypatch.setattr(surf_main, "run", ok)

        surf_main.main()

    def test_invalid_settings_exit_nonzero(self, monkeypatch):
        monkeypatch.setenv("SURF_REQUEST_TIMEOUT", "-1")

        with pytest.raises(SystemExit) as exc_info:
            surf_main.main()

        assert exc_info.value.code == 1


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_format(self):
        surf_main.setup_logging(SurfSettings(log_format="json", log_level="debug"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_text_format(self):
        surf_main.setup_logging(SurfSettings(log_format="text", log_level="warning"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
