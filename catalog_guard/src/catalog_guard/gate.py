"""
Sparse-data gate: decide before any generation call whether the source
data is rich enough to produce a field without inventing facts.

Pure and synchronous; no I/O. The overall quality score comes from the
scorer; per-field sufficiency checks are layered on top of it.
"""

from typing import Iterable, Optional

from .logging_conf import get_logger
from .models import CatalogRecord, FieldTarget, GateDecision
from .patterns import (
    PERIOD_PATTERN,
    find_vague_phrases,
    has_measurement,
    is_bruksslitage_only,
    strip_html,
)
from .policy import GATE_THRESHOLDS
from .scorer import score

logger = get_logger(__name__)


def _normalize_artist(name: str) -> str:
    return " ".join(name.lower().split())


def effective_artist(record: CatalogRecord, ignored_artists: Iterable[str] = ()) -> str:
    """The record's artist, or "" when the caller has chosen to ignore it."""
    artist = record.artist.strip()
    if not artist:
        return ""
    ignored = {_normalize_artist(a) for a in ignored_artists if isinstance(a, str)}
    return "" if _normalize_artist(artist) in ignored else artist


def _title_issues(record: CatalogRecord, artist: str, t: dict) -> set[str]:
    issues = set()
    title = strip_html(record.title)
    description = strip_html(record.description)
    desc_len = len(description)
    title_len = len(title.strip())

    # Nothing to anchor a period on: risk of inventing one
    has_period = PERIOD_PATTERN.search(title) or PERIOD_PATTERN.search(description)
    if not has_period and not artist and desc_len < t["title_period_max_description"]:
        issues.add("period")

    if title_len < t["title_basic_max_title"] and desc_len < t["title_basic_max_description"]:
        issues.add("basic_info")

    # Named artist with nothing to corroborate the attribution
    if artist and desc_len < t["artist_min_description"]:
        issues.add("artist_verification")

    return issues


def _description_issues(record: CatalogRecord, t: dict) -> set[str]:
    issues = set()
    desc_len = len(strip_html(record.description))

    if desc_len < t["description_floor"]:
        issues.add("short_description")

    if not has_measurement(record.description) and desc_len < t["description_measurement_floor"]:
        issues.add("measurements")

    return issues


def _condition_issues(record: CatalogRecord, t: dict) -> set[str]:
    if record.no_remarks_flag:
        return set()

    issues = set()
    cond_len = len(strip_html(record.condition))

    if is_bruksslitage_only(record.condition):
        issues.update({"specific_damage", "wear_details", "bruksslitage_vague"})

    if cond_len < t["condition_floor"]:
        issues.add("condition_details")

    if find_vague_phrases(record.condition) and cond_len < t["condition_vague_max_length"]:
        issues.add("vague_condition_terms")

    return issues


def _keywords_issues(quality_score: int, t: dict) -> set[str]:
    if quality_score < t["keywords_floor"]:
        return {"basic_info"}
    return set()


def assess(
    record: CatalogRecord,
    field_target: FieldTarget = FieldTarget.ALL,
    ignored_artists: Iterable[str] = (),
    thresholds: Optional[dict] = None,
) -> GateDecision:
    """
    Decide whether more information is needed before generating a field.

    Args:
        record: Snapshot to assess
        field_target: Field about to be generated (or "all")
        ignored_artists: Artist names the caller wants treated as absent
        thresholds: Alternate gate thresholds (default: policy.GATE_THRESHOLDS)

    Returns:
        GateDecision with the missing-info codes and the overall score
    """
    t = GATE_THRESHOLDS if thresholds is None else thresholds
    target = FieldTarget(field_target)
    if not isinstance(record, CatalogRecord):
        record = CatalogRecord.from_dict(record if isinstance(record, dict) else {})

    quality_score = score(record).score
    artist = effective_artist(record, ignored_artists)

    issues: set[str] = set()

    if quality_score < t["hard_floor"]:
        issues.add("critical_quality")

    if target in (FieldTarget.TITLE, FieldTarget.ALL):
        issues |= _title_issues(record, artist, t)
    if target in (FieldTarget.DESCRIPTION, FieldTarget.ALL):
        issues |= _description_issues(record, t)
    if target in (FieldTarget.CONDITION, FieldTarget.ALL):
        issues |= _condition_issues(record, t)
    if target in (FieldTarget.KEYWORDS, FieldTarget.ALL):
        issues |= _keywords_issues(quality_score, t)
    if target == FieldTarget.ALL and quality_score < t["all_floor"]:
        issues.add("critical_quality")

    decision = GateDecision(
        needs_more_info=bool(issues),
        missing_info_codes=frozenset(issues),
        quality_score=quality_score,
    )

    logger.debug(
        "gate_decision",
        field=target.value,
        needs_more_info=decision.needs_more_info,
        missing=sorted(issues),
        quality_score=quality_score,
    )

    return decision
