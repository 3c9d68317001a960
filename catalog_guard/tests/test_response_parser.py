"""
Tests for generation reply parsing.

Tests:
- Swedish and English labels
- Emphasis and parenthetical tolerance
- Multi-line fields and the ignored validation block
- Malformed replies
"""

import pytest

from catalog_guard.errors import MalformedReplyError
from catalog_guard.response_parser import parse_reply


REPLY = """TITEL: VAS, majolika, Gustavsberg, 1900-talets mitt.
BESKRIVNING: Majolika med reliefdekor i grönt och brunt.
Höjd 24 cm.
KONDITION: Mindre nagg vid foten.
SÖKORD: jugend keramik grön"""


class TestLabels:
    """Tests for label recognition."""

    def test_parses_all_swedish_labels(self):
        parsed = parse_reply(REPLY)

        assert parsed.fields == {
            "title": "VAS, majolika, Gustavsberg, 1900-talets mitt.",
            "description": "Majolika med reliefdekor i grönt och brunt.\nHöjd 24 cm.",
            "condition": "Mindre nagg vid foten.",
            "keywords": "jugend keramik grön",
        }

    def test_english_labels(self):
        parsed = parse_reply("TITLE: Vase\nCONDITION: Minor chips.\nKEYWORDS: ceramic")

        assert set(parsed.fields) == {"title", "condition", "keywords"}

    @pytest.mark.parametrize("line", [
        "**TITEL:** VAS, majolika",
        "**TITEL**: VAS, majolika",
        "TITEL (max 60 tecken): VAS, majolika",
        "**TITEL (45 tecken):** VAS, majolika",
        "## Titel: VAS, majolika",
    ])
    def test_tolerates_emphasis_and_parenthetical(self, line):
        assert parse_reply(line).fields["title"] == "VAS, majolika"

    def test_label_on_its_own_line(self):
        parsed = parse_reply("**KONDITION**\nRepor på ovansidan.")

        assert parsed.fields["condition"] == "Repor på ovansidan."

    def test_konditionsrapport_label(self):
        assert parse_reply("KONDITIONSRAPPORT: Repor.").fields == {"condition": "Repor."}

    def test_word_starting_with_label_is_not_a_label(self):
        parsed = parse_reply("BESKRIVNING: Vas.\nTiteln är signerad: ja")

        assert parsed.fields["description"] == "Vas.\nTiteln är signerad: ja"


class TestContent:
    """Tests for field content handling."""

    def test_keeps_paragraph_breaks(self):
        parsed = parse_reply("BESKRIVNING: Första stycket.\n\nAndra stycket.\nKONDITION: Repor.")

        assert parsed.fields["description"] == "Första stycket.\n\nAndra stycket."

    def test_ignores_preamble(self):
        parsed = parse_reply("Här är förslagen:\n\nTITEL: VAS, glas")

        assert parsed.fields == {"title": "VAS, glas"}

    def test_validation_block_is_ignored(self):
        parsed = parse_reply("TITEL: VAS, glas\nVALIDERING: Poäng 95/100, inga fel")

        assert "validation" not in parsed.fields
        assert parsed.fields["title"] == "VAS, glas"
        assert parsed.self_reported_validation == "Poäng 95/100, inga fel"

    def test_expected_filters_fields(self):
        parsed = parse_reply(REPLY, expected=("condition",))

        assert parsed.fields == {"condition": "Mindre nagg vid foten."}


class TestMalformed:
    """Tests for replies with no usable field."""

    @pytest.mark.parametrize("raw", [
        "",
        "Jag kan tyvärr inte hjälpa till med det.",
        "VALIDERING: allt ser bra ut",
        "TITELN: inte en etikett",
    ])
    def test_raises_without_labelled_field(self, raw):
        with pytest.raises(MalformedReplyError):
            parse_reply(raw)

    def test_non_string_reply(self):
        with pytest.raises(MalformedReplyError):
            parse_reply(None)

    def test_expected_field_missing(self):
        with pytest.raises(MalformedReplyError):
            parse_reply("TITEL: VAS, glas", expected=("condition",))
