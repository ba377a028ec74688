"""Unit tests for the dual-mode logger."""

import json
import logging

import pytest

from icrbuild.lib.logger import setup_logger


@pytest.mark.unit
class TestSetupLogger:
    """Tests for setup_logger()."""

    def test_console_format_to_stderr(self, capfd):
        logger = setup_logger("icrbuild", level="INFO", log_format="console")

        logger.info("Submitting build")
        logger.debug("hidden")

        captured = capfd.readouterr()
        assert captured.out == ""
        assert "INFO Submitting build" in captured.err
        assert "hidden" not in captured.err

    def test_json_format(self, capfd):
        logger = setup_logger("icrbuild", level="DEBUG", log_format="json")

        logger.getChild("session").debug("Using registry", extra={"registry": "us.icr.io"})

        record = json.loads(capfd.readouterr().err.strip())
        assert record["severity"] == "DEBUG"
        assert record["message"] == "Using registry"
        assert record["name"] == "icrbuild.session"
        assert record["registry"] == "us.icr.io"
        assert "levelname" not in record

    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")

        logger = setup_logger("icrbuild")

        assert logger.level == logging.WARNING
        assert not logger.propagate

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logger("icrbuild")
        logger = setup_logger("icrbuild")

        assert len(logger.handlers) == 1
