"""
Decompose a generation reply into named catalog fields.

The service answers in a line-oriented "LABEL: value" format. Labels are
matched in Swedish or English and tolerate markdown emphasis and a
trailing parenthetical ("**TITEL (max 60 tecken):**"). Continuation lines
belong to the last label; blank lines inside a field are kept as
paragraph breaks.

A VALIDATION/VALIDERING block may be echoed back by the service. It is
kept apart and never trusted: the engine always rescores itself.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .errors import MalformedReplyError
from .logging_conf import get_logger

logger = get_logger(__name__)


# Field key -> accepted labels (longest first so prefixes do not win)
FIELD_LABELS = {
    "title": ["TITEL", "TITLE"],
    "description": ["BESKRIVNING", "DESCRIPTION"],
    "condition": ["KONDITIONSRAPPORT", "KONDITION", "CONDITION"],
    "keywords": ["SÖKORD", "KEYWORDS"],
    "validation": ["VALIDERING", "VALIDATION"],
}


def _label_pattern(labels: list[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(label) for label in labels)
    return re.compile(
        rf"^[*_#\s]*(?:{alternatives})(?:\s*\([^)]*\))?\s*(?:[*_]*\s*:|[*_]{{2}})[*_]*\s*",
        re.IGNORECASE,
    )


_LABEL_PATTERNS = [(key, _label_pattern(labels)) for key, labels in FIELD_LABELS.items()]


@dataclass
class ParsedReply:
    """Fields extracted from one generation reply."""
    fields: dict[str, str] = field(default_factory=dict)
    self_reported_validation: Optional[str] = None  # Ignored for scoring
    raw_text: str = ""


def _match_label(line: str) -> Optional[tuple[str, str]]:
    """Return (field key, rest of line) when the line opens a labelled block."""
    for key, pattern in _LABEL_PATTERNS:
        match = pattern.match(line)
        if match:
            return key, line[match.end():].strip()
    return None


def parse_reply(raw_text: Optional[str], expected: Optional[tuple[str, ...]] = None) -> ParsedReply:
    """
    Parse a raw generation reply.

    Args:
        raw_text: Reply text from the generation service
        expected: Field keys to keep (default: all catalog fields found)

    Returns:
        ParsedReply with the labelled field values

    Raises:
        MalformedReplyError: If no catalog field label could be found
    """
    if not isinstance(raw_text, str):
        raise MalformedReplyError("")

    blocks: dict[str, list[str]] = {}
    current: Optional[str] = None

    for line in raw_text.splitlines():
        opened = _match_label(line.strip())
        if opened:
            current, rest = opened
            blocks[current] = [rest] if rest else []
            continue
        if current is None:
            continue
        if line.strip():
            blocks[current].append(line.rstrip())
        elif blocks[current]:
            blocks[current].append("")

    validation = blocks.pop("validation", None)
    fields = {key: "\n".join(lines).strip() for key, lines in blocks.items()}
    if expected is not None:
        fields = {key: value for key, value in fields.items() if key in expected}

    if not fields:
        logger.warning("reply_unparseable", preview=raw_text.strip()[:80])
        raise MalformedReplyError(raw_text)

    return ParsedReply(
        fields=fields,
        self_reported_validation="\n".join(validation).strip() if validation is not None else None,
        raw_text=raw_text,
    )
