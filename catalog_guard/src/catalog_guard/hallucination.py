"""
Hallucination detection by diffing a candidate text against the original
field it replaces.

Only newly added specificity counts as hallucination: a location, a
measurement or a located damage that the original never mentioned.
Rewording an existing term ("repor" -> "mindre repor") is legitimate.

Three independent detectors, unioned and deduplicated case-insensitively:
1. Location phrases ("vid foten", "i metallramen")
2. Numeric-plus-unit measurements ("3 cm")
3. Damage noun followed by a new locator ("repor på lock"), unless that
   locator is already reported as a location

Title fidelity checks (expanded partial dates, dropped attribution
qualifiers, marketing words) live here as well.
"""

import re
from typing import Optional

from .logging_conf import get_logger
from .models import FindingCategory, HallucinationFinding
from .patterns import (
    MARKETING_TERMS,
    find_forbidden_terms,
    find_measurement_tokens,
    normalize_measurement,
    strip_html,
)

logger = get_logger(__name__)


# =====================================================
# LOCATIONS
# =====================================================

LOCATION_PREPOSITIONS = ["vid", "på", "längs", "i", "under", "över", "runt", "mot", "nära", "kring"]

# Words in locator position that are not places on an object
_NON_LOCATION_WORDS = [
    "denna", "detta", "dessa", "början", "slutet", "tiden", "samband",
    "helhet", "helheten", "allmänhet", "övrigt", "omfattning", "grad",
    "princip", "mindre", "större", "viss", "den", "det", "ett", "och",
]

_PREP = "(?:" + "|".join(LOCATION_PREPOSITIONS) + ")"
# Abstract -het nouns ("i allmänhet") never name a place
_NOT_LOCATION = r"(?!(?:" + "|".join(_NON_LOCATION_WORDS) + r")\b|\w*het\b)"
# Article or definite adjective: "den", "övre", "vänstra", "hela"
_MODIFIER = r"(?:den|det|de|\w+[ae])\s+"
_DEFINITE_NOUN = _NOT_LOCATION + r"\w{2,}(?:en|an|et|na)\b"
_GENITIVE_NOUN = _NOT_LOCATION + r"\w{2,}(?:ens|ets|ans|nas)\s+" + _NOT_LOCATION + r"\w{3,}"

# Preposition + up to two modifiers + definite or genitive noun:
# "i metallramen", "på den övre kanten", "på lockets kant"
LOCATOR = rf"\b{_PREP}\s+(?:{_MODIFIER}){{0,2}}(?:{_GENITIVE_NOUN}|{_DEFINITE_NOUN})"

# After a damage noun any noun form counts: "repor på lock"
DAMAGE_LOCATOR = rf"\b{_PREP}\s+(?:{_MODIFIER}){{0,2}}{_NOT_LOCATION}\w{{3,}}"

# Fixed location phrases not covered by the preposition form
LOCATION_PHRASES = [
    "framtill",
    "baktill",
    "invändigt",
    "utvändigt",
    "runtom",
    "på ovansidan",
    "på undersidan",
    "på baksidan",
    "på framsidan",
    "längs kanten",
    "vid foten",
]

LOCATION_PATTERNS = [LOCATOR] + [rf"\b{re.escape(p)}\b" for p in LOCATION_PHRASES]

_LOCATION_PATTERNS = [re.compile(p, re.IGNORECASE) for p in LOCATION_PATTERNS]


def _location_matches(text: str) -> list[re.Match]:
    matches = []
    for pattern in _LOCATION_PATTERNS:
        matches.extend(pattern.finditer(text))
    return matches


def find_location_phrases(text: str) -> list[str]:
    """All location phrases in text, in pattern order."""
    return [m.group(0) for m in _location_matches(text)]


# =====================================================
# DAMAGE TYPES
# =====================================================

DAMAGE_NOUNS = [
    r"rep(?:a|or)",
    r"skråm(?:a|or)",
    r"risp(?:a|or)",
    r"märken?",
    r"nagg",
    r"sprick(?:a|or)",
    r"fläck(?:ar)?",
    r"buck(?:la|lor)",
    r"missfärgning(?:ar)?",
    r"rostfläck(?:ar)?",
]

_DAMAGE_WITH_LOCATOR = re.compile(
    r"\b(?:" + "|".join(DAMAGE_NOUNS) + r")\s+(" + DAMAGE_LOCATOR + r")",
    re.IGNORECASE,
)


# =====================================================
# DIFF
# =====================================================

def _measurement_keys(text: str) -> set[str]:
    """Normalized tokens, with each side of a compound dimension on its own."""
    keys = set()
    for token in find_measurement_tokens(text):
        norm = normalize_measurement(token)
        keys.add(norm)
        unit = re.search(r"[a-z]+$", norm)
        if unit and "x" in norm:
            for number in norm[: unit.start()].split("x"):
                keys.add(f"{number}{unit.group(0)}")
    return keys


def _dedupe(findings: list[HallucinationFinding]) -> list[HallucinationFinding]:
    seen = set()
    unique = []
    for finding in findings:
        key = (finding.category, finding.text.lower())
        if key not in seen:
            seen.add(key)
            unique.append(finding)
    return unique


def diff(original: Optional[str], candidate: Optional[str]) -> list[HallucinationFinding]:
    """
    Flag specifics in candidate that are absent from original.

    Args:
        original: The field value being replaced
        candidate: The proposed replacement

    Returns:
        Deduplicated findings in detector order (locations, measurements,
        damage types)
    """
    original_plain = strip_html(original)
    candidate_plain = strip_html(candidate)
    original_lower = original_plain.lower()

    findings: list[HallucinationFinding] = []

    flagged_spans = []
    for match in _location_matches(candidate_plain):
        if match.group(0).lower() not in original_lower:
            findings.append(HallucinationFinding(FindingCategory.LOCATION, match.group(0)))
            flagged_spans.append(match.span())

    original_measurements = _measurement_keys(original_plain)
    for token in find_measurement_tokens(candidate_plain):
        if normalize_measurement(token) not in original_measurements:
            findings.append(HallucinationFinding(FindingCategory.MEASUREMENT, token))

    for match in _DAMAGE_WITH_LOCATOR.finditer(candidate_plain):
        if match.group(1).lower() in original_lower:
            continue
        # A locator already reported as a location is one finding, not two
        start, end = match.span(1)
        if any(start < s_end and s_start < end for s_start, s_end in flagged_spans):
            continue
        findings.append(HallucinationFinding(FindingCategory.DAMAGE_TYPE, match.group(0)))

    findings = _dedupe(findings)

    if findings:
        logger.debug(
            "hallucinations_found",
            count=len(findings),
            findings=[str(f) for f in findings],
        )

    return findings


def format_findings(findings: list[HallucinationFinding]) -> list[str]:
    """Human-readable lines for a correction instruction."""
    labels = {
        FindingCategory.LOCATION: "Tillagd placering",
        FindingCategory.MEASUREMENT: "Tillagt mått",
        FindingCategory.DAMAGE_TYPE: "Tillagd skadeplacering",
    }
    return [f'{labels[f.category]} som saknas i originalet: "{f.text}"' for f in findings]


# =====================================================
# TITLE FIDELITY
# =====================================================

UNCERTAINTY_MARKERS = [
    "troligen",
    "tillskriven",
    "efter",
    "stil av",
    "möjligen",
    "skola av",
    "krets kring",
]

_PARTIAL_YEAR = re.compile(r"(?:(daterad|signerad|märkt|stämplad)\s*)?\b(\d{2})\b", re.IGNORECASE)


def detect_date_speculation(original: Optional[str], candidate: Optional[str]) -> list[tuple[str, str]]:
    """
    Find two-digit years in the original expanded to full years.

    "signerad 55" must not become "signerad 1955": the century is a guess.

    Returns:
        List of (original fragment, expanded year) pairs
    """
    original_plain = strip_html(original)
    candidate_plain = strip_html(candidate)
    speculations = []

    for match in _PARTIAL_YEAR.finditer(original_plain):
        two_digits = match.group(2)
        expanded = re.search(rf"\b(?:1[6-9]|20){two_digits}\b", candidate_plain)
        if expanded and expanded.group(0) not in original_plain:
            pair = (match.group(0).strip(), expanded.group(0))
            if pair not in speculations:
                speculations.append(pair)

    return speculations


def find_dropped_uncertainty_markers(original: Optional[str], candidate: Optional[str]) -> list[str]:
    """Attribution qualifiers present in original but missing from candidate."""
    original_lower = strip_html(original).lower()
    candidate_lower = strip_html(candidate).lower()

    def contains(text: str, marker: str) -> bool:
        return re.search(rf"(?<!\w){re.escape(marker)}(?!\w)", text) is not None

    return [
        marker for marker in UNCERTAINTY_MARKERS
        if contains(original_lower, marker) and not contains(candidate_lower, marker)
    ]


def check_title_fidelity(original: Optional[str], candidate: Optional[str]) -> list[str]:
    """
    Error lines for a generated title that changed facts or tone.

    Returns:
        Messages suitable for a correction instruction (empty when clean)
    """
    errors = []

    for fragment, expanded in detect_date_speculation(original, candidate):
        errors.append(
            f'Datum expanderat: "{expanded}" - originalet säger bara "{fragment}". '
            "Expandera aldrig partiella årtal."
        )

    for marker in find_dropped_uncertainty_markers(original, candidate):
        errors.append(f'Osäkerhetsmarkör "{marker}" får inte tas bort från titeln')

    original_terms = set(find_forbidden_terms(original, MARKETING_TERMS))
    for term in find_forbidden_terms(candidate, MARKETING_TERMS):
        if term not in original_terms:
            errors.append(f'Förbjuden marknadsföringsterm i titel: "{term}"')

    return errors
