"""
Tests for the command-line interface.

Tests:
- score / assess / diff JSON output
- enhance stops at the gate without calling the generation service
- policy and config rendering
"""

import json
import logging

import pytest
import structlog
from click.testing import CliRunner

from catalog_guard import __main__ as cli_module
from catalog_guard.__main__ import cli
from catalog_guard.config import clear_settings_cache


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Only warnings reach the captured streams; restore defaults afterwards."""
    def configure(**kwargs):
        structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))

    monkeypatch.setattr(cli_module, "setup_logging", configure)
    clear_settings_cache()
    yield
    structlog.reset_defaults()
    clear_settings_cache()


@pytest.fixture
def vas_file(tmp_path):
    path = tmp_path / "vas.json"
    path.write_text(json.dumps({
        "title": "Vas",
        "description": "",
        "condition": "bruksslitage",
        "keywords": "",
        "noRemarksFlag": False,
    }), encoding="utf-8")
    return str(path)


class TestCommands:
    """Tests for the CLI commands."""

    def test_score_json(self, vas_file):
        result = CliRunner().invoke(cli, ["score", vas_file, "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["score"] < 40
        assert "bruksslitage_only" in [w["code"] for w in data["warnings"]]

    def test_score_table(self, vas_file):
        result = CliRunner().invoke(cli, ["score", vas_file])

        assert result.exit_code == 0
        assert "Quality score" in result.stdout

    def test_assess_json(self, vas_file):
        result = CliRunner().invoke(cli, ["assess", vas_file, "--field", "condition", "-j"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["needs_more_info"] is True
        assert "bruksslitage_vague" in data["missing_info_codes"]

    def test_diff_json(self):
        result = CliRunner().invoke(cli, ["diff", "repor", "repor i metallramen", "-j"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {"category": "location", "text": "i metallramen"} in data

    def test_enhance_stops_at_gate(self, vas_file, monkeypatch):
        def fail_service():
            raise AssertionError("generation service must not be created")

        monkeypatch.setattr(cli_module, "OpenAIGenerationService", fail_service)

        result = CliRunner().invoke(cli, ["enhance", vas_file, "-j"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["gate"]["needs_more_info"] is True

    def test_policy(self):
        result = CliRunner().invoke(cli, ["policy"])

        assert result.exit_code == 0
        assert "bruksslitage_only" in result.stdout

    def test_config(self):
        result = CliRunner().invoke(cli, ["config"])

        assert result.exit_code == 0
        assert "correction_threshold" in result.stdout
