"""
Tests for hallucination detection.

Tests:
- Identity and monotonicity of the condition diff
- Location, measurement and damage-type detectors
- Title fidelity (date speculation, dropped qualifiers, marketing)
"""

import pytest

from catalog_guard.hallucination import (
    check_title_fidelity,
    detect_date_speculation,
    diff,
    find_dropped_uncertainty_markers,
    format_findings,
)
from catalog_guard.models import FindingCategory


def locations(findings):
    return [f.text for f in findings if f.category == FindingCategory.LOCATION]


CONDITIONS = [
    "",
    "repor",
    "Bruksslitage.",
    "Mindre nagg vid foten, några repor på ovansidan.",
    "Spricka 2 cm lång i glasyren, fläckar på undersidan.",
    "<p>Repor i metallramen, 30 x 40 cm.</p>",
]


class TestDiffProperties:
    """Tests for the invariants of diff()."""

    @pytest.mark.parametrize("text", CONDITIONS)
    def test_identical_text_has_no_findings(self, text):
        assert diff(text, text) == []

    @pytest.mark.parametrize("original", [
        "Repor.",
        "Mindre nagg, några repor på ovansidan.",
        "Spricka 2 cm lång.",
    ])
    @pytest.mark.parametrize("location", [
        "vid foten",
        "på den övre kanten",
        "på lockets kant",
        "längs vänstra sidan",
    ])
    def test_appending_location_adds_exactly_one(self, original, location):
        """A brand-new location phrase yields one new finding, a Location."""
        before = diff(original, original)
        after = diff(original, f"{original} Nagg {location}.")

        assert len(after) == len(before) + 1
        assert locations(after) == [location]

    def test_findings_deduplicated_case_insensitively(self):
        findings = diff("", "Nagg vid foten. Nagg VID FOTEN.")

        assert len(findings) == 1
        assert locations(findings) == ["vid foten"]


class TestDetectors:
    """Tests for the individual detectors."""

    def test_new_locator_is_flagged_once(self):
        """The damage detector does not repeat a locator already reported as a location."""
        findings = diff("repor", "repor i metallramen")

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.LOCATION
        assert findings[0].text == "i metallramen"

    @pytest.mark.parametrize("candidate", [
        "Repor, i allmänhet gott skick.",
        "Repor i mindre omfattning.",
        "Repor, i övrigt gott skick.",
        "Repor, i helhet fint.",
    ])
    def test_phrases_that_are_not_places(self, candidate):
        assert diff("Repor.", candidate) == []

    def test_rewording_is_not_flagged(self):
        assert diff("repor", "mindre repor") == []

    def test_invented_measurement(self):
        findings = diff("Nagg vid foten.", "Nagg vid foten, ca 3 cm.")

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.MEASUREMENT
        assert findings[0].text == "3 cm"

    def test_existing_measurement_is_not_flagged(self):
        assert diff("Spricka 2 cm lång.", "En spricka, 2 cm lång.") == []

    def test_compound_dimension_covers_single_sides(self):
        """'30 x 40 cm' in the original licenses '30 cm' in the candidate."""
        assert diff("Ram 30 x 40 cm", "Ram 30 cm") == []

    def test_damage_with_new_bare_locator(self):
        """An indefinite locator after a damage noun is only caught as a damage type."""
        findings = diff("Repor.", "Repor på lock.")

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.DAMAGE_TYPE
        assert findings[0].text == "Repor på lock"

    def test_damage_with_definite_locator_is_a_location(self):
        assert locations(diff("Repor.", "Repor på locket.")) == ["på locket"]
        assert len(diff("Repor.", "Repor på locket.")) == 1

    def test_damage_with_known_locator(self):
        assert diff("Repor på lock.", "Mindre repor på lock.") == []

    def test_html_is_ignored(self):
        assert diff("<p>repor</p>", "<b>repor</b>") == []

    def test_format_findings(self):
        lines = format_findings(diff("repor", "repor i metallramen"))

        assert any('"i metallramen"' in line for line in lines)


class TestTitleFidelity:
    """Tests for title-specific fidelity checks."""

    def test_partial_year_expanded(self):
        assert detect_date_speculation("VAS, signerad 55", "VAS, signerad 1955") == [("signerad 55", "1955")]

    def test_full_year_in_original_is_allowed(self):
        assert detect_date_speculation("VAS, signerad 1955", "VAS, signerad 1955") == []

    def test_dropped_uncertainty_marker(self):
        dropped = find_dropped_uncertainty_markers("troligen Lisa Larson, vas", "LISA LARSON, vas")

        assert dropped == ["troligen"]

    def test_kept_marker_is_fine(self):
        assert find_dropped_uncertainty_markers("efter Carl Larsson", "Efter Carl Larsson, litografi") == []

    def test_check_title_fidelity_combines_errors(self):
        errors = check_title_fidelity("troligen vas, märkt 55", "VAS, unik, märkt 1955")

        assert len(errors) == 3
        assert any("1955" in e for e in errors)
        assert any("troligen" in e for e in errors)
        assert any("unik" in e for e in errors)

    def test_marketing_term_already_in_original(self):
        assert check_title_fidelity("VAS, unik form", "VAS, unik form.") == []
