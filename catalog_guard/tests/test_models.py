"""
Tests for data models and settings.

Tests:
- CatalogRecord input coercion and copies
- FieldTarget expansion and cycle state tracking
- Settings validation
"""

import pytest
from pydantic import ValidationError

from catalog_guard.config import Settings
from catalog_guard.models import (
    CatalogRecord,
    CorrectionCycle,
    CycleState,
    FieldTarget,
    GENERATED_FIELDS,
    GateDecision,
)


class TestCatalogRecord:
    """Tests for the immutable record snapshot."""

    def test_from_dict_camel_case(self):
        record = CatalogRecord.from_dict({
            "title": "VAS",
            "estimateValue": "2 000",
            "reserveValue": 1000,
            "noRemarksFlag": True,
        })

        assert record.estimate_value == 2000.0
        assert record.reserve_value == 1000.0
        assert record.no_remarks_flag is True

    def test_bad_values_are_coerced(self):
        record = CatalogRecord.from_dict({
            "title": None,
            "condition": ["repor"],
            "estimateValue": "okänt",
            "noRemarksFlag": "yes",
        })

        assert record.title == ""
        assert record.condition == ""
        assert record.estimate_value == 0.0
        assert record.no_remarks_flag is False

    def test_from_dict_non_dict(self):
        assert CatalogRecord.from_dict(None) == CatalogRecord()

    def test_with_fields_returns_copy(self):
        record = CatalogRecord(title="Vas", artist="Lisa Larson")

        updated = record.with_fields({"title": "VAS, majolika", "artist": "ignored"})

        assert updated.title == "VAS, majolika"
        assert updated.artist == "Lisa Larson"
        assert record.title == "Vas"


class TestTargetsAndCycle:
    """Tests for field targets and cycle bookkeeping."""

    def test_field_target_fields(self):
        assert FieldTarget.ALL.fields == GENERATED_FIELDS
        assert FieldTarget("condition").fields == ("condition",)

    def test_cycle_history(self):
        cycle = CorrectionCycle()
        cycle.advance(CycleState.SCORED)
        cycle.advance(CycleState.ACCEPTED)

        assert cycle.history == [CycleState.DRAFTED, CycleState.SCORED]
        assert cycle.state == CycleState.ACCEPTED

    def test_gate_decision_to_dict_sorts_codes(self):
        decision = GateDecision(True, frozenset({"period", "basic_info"}), 20)

        assert decision.to_dict()["missing_info_codes"] == ["basic_info", "period"]


class TestSettings:
    """Tests for runtime settings validation."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.correction_threshold == 70
        assert settings.correct_on_hallucination is False

    @pytest.mark.parametrize("value", [-1, 101])
    def test_threshold_out_of_range(self, value):
        with pytest.raises(ValidationError):
            Settings(correction_threshold=value)

    def test_retries_at_least_one(self):
        with pytest.raises(ValidationError):
            Settings(generation_max_retries=0)
