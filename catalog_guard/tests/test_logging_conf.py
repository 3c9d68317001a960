"""
Tests for logging configuration.

Tests:
- Module loggers created at import time log with their name attached
- setup_logging() writes to stderr and respects the level
"""

import json

import structlog
from structlog.testing import capture_logs

from catalog_guard import scorer
from catalog_guard.logging_conf import get_logger, setup_logging
from catalog_guard.models import CatalogRecord


class TestGetLogger:
    """Tests for module loggers."""

    def test_named_logger_attaches_name(self):
        logger = get_logger("catalog_guard.gate")

        with capture_logs() as logs:
            logger.info("gate_decision", needs_more_info=True)

        assert logs[0]["event"] == "gate_decision"
        assert logs[0]["logger_name"] == "catalog_guard.gate"
        assert logs[0]["needs_more_info"] is True

    def test_module_logger_from_import(self):
        with capture_logs() as logs:
            scorer.score(CatalogRecord(title="Vas"))

        events = [entry for entry in logs if entry["event"] == "record_scored"]
        assert len(events) == 1
        assert events[0]["logger_name"] == "catalog_guard.scorer"


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_json_lines_go_to_stderr(self, capsys):
        try:
            setup_logging(level="WARNING", json_output=True)
            logger = get_logger("catalog_guard.correction")
            logger.info("draft_scored", score=80)
            logger.warning("generation_failed", error="Överbelastad")
        finally:
            structlog.reset_defaults()

        captured = capsys.readouterr()
        assert captured.out == ""
        lines = [json.loads(line) for line in captured.err.splitlines() if line.startswith("{")]
        assert [line["event"] for line in lines] == ["generation_failed"]
        assert lines[0]["error"] == "Överbelastad"
        assert lines[0]["level"] == "warning"
