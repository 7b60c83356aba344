"""Tests for routesync.output -- stream discipline, formats, log routing."""

from __future__ import annotations

import json
import logging

import pytest

from routesync.output import (
    OutputFormat,
    OutputManager,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture
def non_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("routesync.output._is_tty", lambda: False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


@pytest.fixture
def tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("routesync.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")


# ---------------------------------------------------------------------------
# Format resolution
# ---------------------------------------------------------------------------


class TestFormatResolution:
    def test_auto_is_plain_when_piped(self, non_tty: None) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, tty: None) -> None:
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_env_forces_plain(self, tty: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_term_dumb_forces_plain(self, tty: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TERM", "dumb")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_kept(self, tty: None) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


# ---------------------------------------------------------------------------
# stdout / stderr
# ---------------------------------------------------------------------------


class TestStreams:
    def test_data_on_stdout_diagnostics_on_stderr(
        self, capfd: pytest.CaptureFixture[str], non_tty: None
    ) -> None:
        mgr = OutputManager(no_color=True)
        mgr.print_data('{"item": []}')
        mgr.info("Saved: storage/postman/api.json")
        mgr.warning("Could not download collection")
        mgr.error("HTTP 401: Invalid API Key")
        mgr.suggest("Pin it with ROUTESYNC_COLLECTION_ID")

        captured = capfd.readouterr()
        assert captured.out == '{"item": []}\n'
        assert "Saved: storage/postman/api.json" in captured.err
        assert "Warning: Could not download collection" in captured.err
        assert "Error: HTTP 401: Invalid API Key" in captured.err
        assert "→ Pin it with ROUTESYNC_COLLECTION_ID" in captured.err

    def test_quiet_keeps_warnings_and_errors(
        self, capfd: pytest.CaptureFixture[str], non_tty: None
    ) -> None:
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("info")
        mgr.success("done")
        mgr.suggest("next")
        mgr.warning("careful")
        mgr.error("broken")

        err = capfd.readouterr().err
        assert "info" not in err
        assert "done" not in err
        assert "next" not in err
        assert "careful" in err
        assert "broken" in err

    def test_debug_only_when_verbose(
        self, capfd: pytest.CaptureFixture[str], non_tty: None
    ) -> None:
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "[debug] shown" in err


# ---------------------------------------------------------------------------
# Data formats
# ---------------------------------------------------------------------------


class TestFormats:
    def test_json_response(self, capfd: pytest.CaptureFixture[str], non_tty: None) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"routes": {"prefix": "api"}})
        assert json.loads(capfd.readouterr().out) == {"routes": {"prefix": "api"}}

    def test_plain_response(self, capfd: pytest.CaptureFixture[str], non_tty: None) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"name": "API", "count": 2})
        assert capfd.readouterr().out == "name\tAPI\ncount\t2\n"

    def test_json_table(self, capfd: pytest.CaptureFixture[str], non_tty: None) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Name", "UID"], [["API", "u-1"], ["Shop", "u-2"]]
        )
        assert json.loads(capfd.readouterr().out) == [
            {"Name": "API", "UID": "u-1"},
            {"Name": "Shop", "UID": "u-2"},
        ]

    def test_plain_table(self, capfd: pytest.CaptureFixture[str], non_tty: None) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(["Name", "UID"], [["API", "u-1"]])
        assert capfd.readouterr().out == "Name\tUID\nAPI\tu-1\n"

    def test_rich_table(self, capfd: pytest.CaptureFixture[str], non_tty: None) -> None:
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["Name"], [["API"]], title="Collections"
        )
        out = capfd.readouterr().out
        assert "Collections" in out
        assert "API" in out


# ---------------------------------------------------------------------------
# Global instance and logging
# ---------------------------------------------------------------------------


class TestGlobalOutput:
    def test_set_and_reset(self) -> None:
        mgr = OutputManager(quiet=True)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr


class TestConfigureLogging:
    def test_level_and_single_handler(self) -> None:
        mgr = OutputManager(no_color=True)
        logger = logging.getLogger("routesync")

        configure_logging(verbose=True, output=mgr)
        configure_logging(verbose=False, output=mgr)

        ours = [h for h in logger.handlers if getattr(h, "_routesync", False)]
        assert len(ours) == 1
        assert logger.level == logging.WARNING

    def test_records_go_to_stderr(
        self, capfd: pytest.CaptureFixture[str], non_tty: None
    ) -> None:
        configure_logging(verbose=True, output=OutputManager(no_color=True))
        logging.getLogger("routesync.pipeline").warning("Could not read the last saved collection")
        assert "Could not read the last saved collection" in capfd.readouterr().err
