"""
Data model for catalog validation.

All entities are created fresh per validation/generation request and
discarded after use. CatalogRecord is an immutable snapshot: the engine
never mutates it, it builds candidate copies with dataclasses.replace().
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """How urgently a warning should be addressed."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WarningSource(str, Enum):
    """Which rule family produced a warning."""
    QUALITY = "quality"
    FIELD_GUIDELINE = "field_guideline"
    COMPLIANCE = "compliance"  # Advisory only, never affects the score


class FieldTarget(str, Enum):
    """Field(s) a generation request is about to produce."""
    TITLE = "title"
    DESCRIPTION = "description"
    CONDITION = "condition"
    KEYWORDS = "keywords"
    ALL = "all"

    @property
    def fields(self) -> tuple[str, ...]:
        """Record field names covered by this target."""
        if self is FieldTarget.ALL:
            return GENERATED_FIELDS
        return (self.value,)


# Fields the generation service may produce, in reply order
GENERATED_FIELDS = ("title", "description", "condition", "keywords")


class FindingCategory(str, Enum):
    """Kind of unauthorized specific introduced by a candidate text."""
    LOCATION = "location"
    MEASUREMENT = "measurement"
    DAMAGE_TYPE = "damage_type"


class CycleState(str, Enum):
    """States of one generate-and-validate sequence."""
    DRAFTED = "drafted"
    SCORED = "scored"
    CORRECTION_REQUESTED = "correction_requested"
    RESCORED = "rescored"
    ACCEPTED = "accepted"


def _as_text(value) -> str:
    return value if isinstance(value, str) else ""


def _as_amount(value) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(" ", "").replace(",", "."))
        except ValueError:
            return 0.0
    return 0.0


@dataclass(frozen=True)
class CatalogRecord:
    """
    Snapshot of the item being cataloged.

    Missing or non-string text values are coerced to "" and unparseable
    amounts to 0.0, so scoring and gating are total over any input.
    """
    category: str = ""
    title: str = ""
    description: str = ""  # May contain HTML markup
    condition: str = ""  # May contain HTML markup
    artist: str = ""
    keywords: str = ""  # Comma- or whitespace-separated
    estimate_value: float = 0.0
    reserve_value: float = 0.0
    no_remarks_flag: bool = False  # "Inga anmärkningar" declared

    def __post_init__(self):
        for name in ("category", "title", "description", "condition", "artist", "keywords"):
            object.__setattr__(self, name, _as_text(getattr(self, name)))
        object.__setattr__(self, "estimate_value", _as_amount(self.estimate_value))
        object.__setattr__(self, "reserve_value", _as_amount(self.reserve_value))
        object.__setattr__(self, "no_remarks_flag", self.no_remarks_flag is True)

    def with_fields(self, values: dict) -> "CatalogRecord":
        """Return a copy with generated field values substituted."""
        changes = {k: v for k, v in values.items() if k in GENERATED_FIELDS}
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogRecord":
        """
        Create from a dictionary.

        Accepts both snake_case keys and the camelCase names used by
        the page layer (estimateValue, reserveValue, noRemarksFlag).
        """
        if not isinstance(data, dict):
            data = {}

        def pick(*keys):
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            category=pick("category"),
            title=pick("title"),
            description=pick("description"),
            condition=pick("condition"),
            artist=pick("artist"),
            keywords=pick("keywords"),
            estimate_value=pick("estimate_value", "estimateValue", "estimate"),
            reserve_value=pick("reserve_value", "reserveValue", "reserve"),
            no_remarks_flag=pick("no_remarks_flag", "noRemarksFlag") is True,
        )


@dataclass(frozen=True)
class CatalogWarning:
    """A single rule outcome shown to the cataloger."""
    field: str
    message: str
    severity: Severity
    source: WarningSource
    code: str  # Stable identifier, e.g. "short_title"
    deduction: int = 0  # Points this warning removed from the score

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
            "source": self.source.value,
            "code": self.code,
            "deduction": self.deduction,
        }


@dataclass
class ScoreResult:
    """Clamped score plus warnings in rule evaluation order."""
    score: int
    warnings: list[CatalogWarning] = field(default_factory=list)

    @property
    def codes(self) -> list[str]:
        return [w.code for w in self.warnings]

    @property
    def quality_deduction(self) -> int:
        """Points removed by quality and field-guideline rules (unclamped)."""
        return sum(w.deduction for w in self.warnings if w.source != WarningSource.COMPLIANCE)

    @property
    def compliance_warnings(self) -> list[CatalogWarning]:
        return [w for w in self.warnings if w.source == WarningSource.COMPLIANCE]

    def warnings_for(self, field_name: str) -> list[CatalogWarning]:
        return [w for w in self.warnings if w.field == field_name]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class GateDecision:
    """Whether enough source data exists to generate a field safely."""
    needs_more_info: bool
    missing_info_codes: frozenset[str] = frozenset()
    quality_score: int = 0

    def to_dict(self) -> dict:
        return {
            "needs_more_info": self.needs_more_info,
            "missing_info_codes": sorted(self.missing_info_codes),
            "quality_score": self.quality_score,
        }


@dataclass(frozen=True)
class HallucinationFinding:
    """An unauthorized specific found in a candidate text."""
    category: FindingCategory
    text: str

    def to_dict(self) -> dict:
        return {"category": self.category.value, "text": self.text}

    def __str__(self) -> str:
        return f"{self.category.value}: {self.text}"


@dataclass
class CorrectionCycle:
    """Transient state of one generate-and-validate run."""
    attempt: int = 0  # 0 = first generation, 1 = correction
    state: CycleState = CycleState.DRAFTED
    last_score_result: Optional[ScoreResult] = None
    accepted: dict[str, str] = field(default_factory=dict)
    history: list[CycleState] = field(default_factory=list)

    def advance(self, state: CycleState) -> None:
        """Move to the next state, keeping the visited path."""
        self.history.append(self.state)
        self.state = state
