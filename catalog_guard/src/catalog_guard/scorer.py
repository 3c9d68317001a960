"""
Rule-based quality scorer for catalog records.

score(record) starts at 100 and applies independent deductions. Each rule
reads only the record and returns its own warnings; no rule sees another
rule's output. The final score is 100 minus the sum of all quality and
field-guideline deductions, clamped once to [0, 100]. Rule order therefore
changes only the order of warnings, never the score.

Rule groups:
1. Completeness (title, description)
2. Condition (skipped entirely when "Inga anmärkningar" is declared)
3. Keywords (count bands and redundancy tip)
4. Cross-field contamination (condition vocabulary in the description)
5. Category field guidelines (furniture, rugs, art, silver, dinner sets)
6. General lexical hygiene (compound words, brand spellings, periods)
7. Compliance advisories (never deduct)
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .logging_conf import get_logger
from .models import CatalogRecord, CatalogWarning, ScoreResult, Severity, WarningSource
from .patterns import (
    ABBREVIATIONS,
    BARE_CENTURY,
    BRAND_CORRECTIONS,
    CA_BEFORE_YEAR,
    COMPOUND_WORDS,
    CONDITION_VOCABULARY,
    FURNITURE_MATERIALS,
    FURNITURE_TITLE_MATERIALS,
    MARKETING_TERMS,
    OVERPOSITIVE_CONDITION_TERMS,
    PERVASIVE_TERMS,
    SPECULATIVE_TERMS,
    UNEXAMINED_FRAMED_PATTERN,
    UNKNOWN_ARTIST_PHRASES,
    VAGUE_CENTURY_PART,
    category_matches,
    find_forbidden_terms,
    find_vague_phrases,
    find_whole_words,
    find_wood_term,
    has_location_info,
    has_measurement,
    is_bruksslitage_only,
    lookup_first,
    split_keywords,
    strip_html,
)
from .policy import DEDUCTIONS, MAX_SCORE, SCORER_THRESHOLDS, clamp_score

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleContext:
    """Pre-computed views of one record shared by all rules."""
    record: CatalogRecord
    title: str  # HTML-stripped
    description: str  # HTML-stripped
    condition: str  # HTML-stripped
    category: str  # Lowercased
    deductions: dict
    thresholds: dict

    @classmethod
    def build(
        cls,
        record: CatalogRecord,
        deductions: Optional[dict] = None,
        thresholds: Optional[dict] = None,
    ) -> "RuleContext":
        return cls(
            record=record,
            title=strip_html(record.title),
            description=strip_html(record.description),
            condition=strip_html(record.condition),
            category=record.category.lower(),
            deductions=DEDUCTIONS if deductions is None else deductions,
            thresholds=SCORER_THRESHOLDS if thresholds is None else thresholds,
        )

    def warn(
        self,
        code: str,
        field: str,
        message: str,
        severity: Severity,
        source: WarningSource = WarningSource.QUALITY,
    ) -> CatalogWarning:
        """Build a warning carrying its deduction from the policy table."""
        deduction = 0 if source == WarningSource.COMPLIANCE else self.deductions.get(code, 0)
        return CatalogWarning(
            field=field,
            message=message,
            severity=severity,
            source=source,
            code=code,
            deduction=deduction,
        )


Rule = Callable[[RuleContext], list[CatalogWarning]]


# =====================================================
# COMPLETENESS
# =====================================================

def rule_title_completeness(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []
    title = ctx.title.strip()

    if len(title) < ctx.thresholds["min_title_length"]:
        warnings.append(ctx.warn(
            "short_title", "title",
            "Överväg att lägga till material och period",
            Severity.MEDIUM,
        ))

    if "," not in title:
        warnings.append(ctx.warn(
            "title_missing_structure", "title",
            "Saknar korrekt struktur (KONSTNÄR, Objekt, Material)",
            Severity.MEDIUM,
        ))

    # With the artist field filled, the title must start with a capital
    first_letter = next((ch for ch in title if ch.isalpha()), None)
    if ctx.record.artist.strip() and first_letter and first_letter.islower():
        warnings.append(ctx.warn(
            "title_lowercase_with_artist", "title",
            "Titel ska börja med versal när konstnärsfält är ifyllt",
            Severity.MEDIUM,
        ))

    return warnings


def rule_description_completeness(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []

    if len(ctx.description) < ctx.thresholds["min_description_length"]:
        warnings.append(ctx.warn(
            "short_description", "description",
            "Överväg att lägga till detaljer om material, teknik, färg, märkningar",
            Severity.MEDIUM,
        ))

    if not has_measurement(ctx.description):
        warnings.append(ctx.warn(
            "missing_measurements", "description",
            "Mått skulle förbättra beskrivningen",
            Severity.LOW,
        ))

    return warnings


# =====================================================
# CONDITION
# =====================================================

def rule_condition(ctx: RuleContext) -> list[CatalogWarning]:
    if ctx.record.no_remarks_flag:
        return [ctx.warn(
            "no_remarks_declared", "condition",
            '"Inga anmärkningar" markerat - ingen konditionsrapport behövs',
            Severity.LOW,
        )]

    condition = ctx.condition
    lower = condition.lower()

    if UNEXAMINED_FRAMED_PATTERN.search(condition):
        return [ctx.warn(
            "unexamined_framed", "condition",
            '"Ej examinerad ur ram" - indikerar mycket gott skick så långt synligt',
            Severity.LOW,
        )]

    warnings = []
    length = len(condition)

    if length < ctx.thresholds["min_condition_length"]:
        warnings.append(ctx.warn(
            "short_condition", "condition",
            "Konditionsbeskrivning bör vara mer detaljerad för kundernas trygghet",
            Severity.HIGH,
        ))

    if is_bruksslitage_only(condition):
        warnings.append(ctx.warn(
            "bruksslitage_only", "condition",
            'Endast "bruksslitage" är otillräckligt - specificera typ av slitage (repor, nagg, fläckar, etc.)',
            Severity.HIGH,
        ))

    vague = find_vague_phrases(condition)
    if vague and length < ctx.thresholds["vague_condition_max_length"]:
        warnings.append(ctx.warn(
            "vague_condition_term", "condition",
            f'Vaga termer som "{vague[0]}" - specificera typ av skador och placering',
            Severity.MEDIUM,
        ))

    if (
        vague
        and length > ctx.thresholds["location_tip_min_length"]
        and not has_location_info(condition)
        and not any(term in lower for term in PERVASIVE_TERMS)
    ):
        warnings.append(ctx.warn(
            "condition_location_tip", "condition",
            "Tips: Ange var skadorna finns för tydligare beskrivning",
            Severity.LOW,
        ))

    overpositive = find_forbidden_terms(condition, OVERPOSITIVE_CONDITION_TERMS)
    if overpositive:
        warnings.append(ctx.warn(
            "overpositive_condition", "condition",
            f'Undvik värdeladdade skickstermer: {", ".join(overpositive)} - beskriv faktiskt skick',
            Severity.MEDIUM,
            WarningSource.FIELD_GUIDELINE,
        ))

    return warnings


# =====================================================
# KEYWORDS
# =====================================================

def rule_keywords(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []
    t = ctx.thresholds
    keywords = split_keywords(ctx.record.keywords)
    count = len(keywords)

    if count == 0:
        warnings.append(ctx.warn(
            "keywords_missing", "keywords",
            "Inga dolda sökord - kritiskt för sökbarhet",
            Severity.HIGH,
        ))
        return warnings

    if count < t["keywords_too_few_below"]:
        warnings.append(ctx.warn(
            "keywords_too_few", "keywords",
            "För få sökord - lägg till fler relevanta termer",
            Severity.HIGH,
        ))
    elif count < t["keywords_could_use_more_below"]:
        warnings.append(ctx.warn(
            "keywords_could_use_more", "keywords",
            "Bra start - några fler sökord kan förbättra sökbarheten",
            Severity.MEDIUM,
        ))
    elif count > t["keywords_too_many_above"]:
        warnings.append(ctx.warn(
            "keywords_too_many", "keywords",
            "För många sökord kan skada sökbarheten - fokusera på kvalitet över kvantitet",
            Severity.MEDIUM,
        ))

    # Redundancy tip: most keywords already appear in the visible text
    visible = f"{ctx.title} {ctx.description} {ctx.condition}".lower()
    unique = [
        kw for kw in keywords
        if len(kw) >= t["keyword_min_length"]
        and kw.lower() not in visible
        and kw.lower().replace("-", " ") not in visible
    ]
    if count > t["keywords_redundancy_min_count"] and len(unique) / count < t["keywords_unique_ratio"]:
        warnings.append(ctx.warn(
            "keywords_redundant_tip", "keywords",
            "Tips: Många sökord upprepar titel/beskrivning - kompletterande termer kan förbättra sökbarheten",
            Severity.LOW,
        ))

    return warnings


# =====================================================
# CROSS-FIELD CONTAMINATION
# =====================================================

def rule_description_contamination(ctx: RuleContext) -> list[CatalogWarning]:
    """Condition vocabulary belongs in the condition field, not the description."""
    return [
        ctx.warn(
            "condition_term_in_description", "description",
            f'Beskrivningen innehåller konditionsterm "{term}" - flytta till konditionsfältet',
            Severity.HIGH,
        )
        for term in find_whole_words(ctx.description, CONDITION_VOCABULARY)
    ]


# =====================================================
# FIELD GUIDELINES
# =====================================================

def rule_reserve_vs_estimate(ctx: RuleContext) -> list[CatalogWarning]:
    estimate = ctx.record.estimate_value
    reserve = ctx.record.reserve_value
    if estimate > 0 and reserve > 0 and reserve >= estimate:
        return [ctx.warn(
            "reserve_exceeds_estimate", "estimate",
            f"Bevakningspris ({reserve:.0f}) får aldrig vara lika med eller överstiga värdering ({estimate:.0f})",
            Severity.HIGH,
            WarningSource.FIELD_GUIDELINE,
        )]
    return []


def rule_unknown_artist_phrase(ctx: RuleContext) -> list[CatalogWarning]:
    if ctx.record.artist.strip():
        return []
    title_lower = ctx.title.lower()
    desc_lower = ctx.description.lower()
    for phrase in UNKNOWN_ARTIST_PHRASES:
        if phrase in title_lower or phrase in desc_lower:
            found_in = "titel" if phrase in title_lower else "beskrivning"
            return [ctx.warn(
                "unknown_artist_phrase", "artist",
                f'Konstnärsterm "{phrase}" hittades i {found_in} - hör hemma i konstnärsfältet',
                Severity.HIGH,
                WarningSource.FIELD_GUIDELINE,
            )]
    return []


def rule_furniture(ctx: RuleContext) -> list[CatalogWarning]:
    if not category_matches(ctx.category, "furniture"):
        return []
    warnings = []

    in_title = find_wood_term(ctx.title, FURNITURE_TITLE_MATERIALS)
    if in_title:
        warnings.append(ctx.warn(
            "furniture_material_in_title", "title",
            f'Möbler: "{in_title}" (träslag/material) bör inte stå i titeln - flytta till beskrivningen',
            Severity.MEDIUM,
            WarningSource.FIELD_GUIDELINE,
        ))

    if not find_wood_term(ctx.title, FURNITURE_MATERIALS) and not find_wood_term(ctx.description, FURNITURE_MATERIALS):
        warnings.append(ctx.warn(
            "furniture_material_missing", "description",
            "Möbler: Träslag/material saknas - ange i beskrivningen",
            Severity.MEDIUM,
            WarningSource.FIELD_GUIDELINE,
        ))

    return warnings


def rule_rug(ctx: RuleContext) -> list[CatalogWarning]:
    if category_matches(ctx.category, "rug") and not has_measurement(ctx.title):
        return [ctx.warn(
            "rug_measurements_not_in_title", "title",
            "Mattor: Mått ska alltid anges i titeln",
            Severity.MEDIUM,
            WarningSource.FIELD_GUIDELINE,
        )]
    return []


def rule_art(ctx: RuleContext) -> list[CatalogWarning]:
    if category_matches(ctx.category, "art") and "bruksslitage" in ctx.condition.lower():
        return [ctx.warn(
            "art_bruksslitage", "condition",
            'Konst: Använd "sedvanligt slitage" istället för "bruksslitage" - konst brukas inte',
            Severity.HIGH,
            WarningSource.FIELD_GUIDELINE,
        )]
    return []


_WEIGHT_IN_TITLE = [
    re.compile(r"\b\d+\s*(?:gram|g)\b", re.IGNORECASE),
    re.compile(r"\b(?:bruttovikt|nettovikt|vikt)\s*(?:ca\.?\s*)?\d+", re.IGNORECASE),
]


def rule_silver(ctx: RuleContext) -> list[CatalogWarning]:
    if not category_matches(ctx.category, "silver") or category_matches(ctx.category, "jewelry"):
        return []
    if any(p.search(ctx.title) for p in _WEIGHT_IN_TITLE):
        return []
    return [ctx.warn(
        "silver_weight_not_in_title", "title",
        "Silver: Vikt bör anges sist i titeln",
        Severity.LOW,
        WarningSource.FIELD_GUIDELINE,
    )]


_ST_COUNT = re.compile(r"\b\d+\s+st\b", re.IGNORECASE)


def rule_dinner_set(ctx: RuleContext) -> list[CatalogWarning]:
    if category_matches(ctx.category, "dinner_set") and _ST_COUNT.search(ctx.description):
        return [ctx.warn(
            "dinner_set_st_count", "description",
            'Serviser: Skriv "34 tallrikar" inte "34 st tallrikar"',
            Severity.MEDIUM,
            WarningSource.FIELD_GUIDELINE,
        )]
    return []


# =====================================================
# LEXICAL HYGIENE
# =====================================================

def rule_compound_word(ctx: RuleContext) -> list[CatalogWarning]:
    hit = lookup_first(ctx.title, COMPOUND_WORDS)
    if not hit:
        return []
    compound, suggestion = hit
    return [ctx.warn(
        "compound_word", "title",
        f'Sammansatt ord: "{compound}" bör skrivas "{suggestion}"',
        Severity.MEDIUM,
        WarningSource.FIELD_GUIDELINE,
    )]


def rule_brand_spelling(ctx: RuleContext) -> list[CatalogWarning]:
    # One warning at most: the first table entry found, title before description
    for field_name, text in (("title", ctx.title), ("description", ctx.description)):
        hit = lookup_first(text, BRAND_CORRECTIONS, whole_word=True)
        if hit:
            misspelling, brand = hit
            return [ctx.warn(
                "brand_spelling", field_name,
                f'Felstavat märke: "{misspelling}" ska skrivas "{brand}"',
                Severity.MEDIUM,
                WarningSource.FIELD_GUIDELINE,
            )]
    return []


_STERLING = re.compile(r"\bsterling\s+silver\b", re.IGNORECASE)


def rule_sterling_silver(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []
    for field_name, text in (("title", ctx.title), ("description", ctx.description)):
        match = _STERLING.search(text)
        if match:
            warnings.append(ctx.warn(
                "sterling_silver_two_words", field_name,
                f'"{match.group(0)}" ska skrivas som ett ord: "sterlingsilver"',
                Severity.MEDIUM,
                WarningSource.FIELD_GUIDELINE,
            ))
    return warnings


def rule_ca_before_year(ctx: RuleContext) -> list[CatalogWarning]:
    in_title = bool(CA_BEFORE_YEAR.search(ctx.title))
    if not in_title and not CA_BEFORE_YEAR.search(ctx.description):
        return []
    return [ctx.warn(
        "ca_before_year", "title" if in_title else "description",
        'Använd "omkring" istället för "ca" framför årtal',
        Severity.LOW,
        WarningSource.FIELD_GUIDELINE,
    )]


def rule_abbreviations(ctx: RuleContext) -> list[CatalogWarning]:
    all_text = f"{ctx.title} {ctx.description} {ctx.condition}"
    warnings = []
    for pattern, replacement in ABBREVIATIONS.items():
        match = re.search(pattern, all_text, re.IGNORECASE)
        if match:
            warnings.append(ctx.warn(
                "abbreviation", "description",
                f'Skriv "{replacement}" istället för "{match.group(0)}" - förkortningar försvårar översättning',
                Severity.LOW,
                WarningSource.FIELD_GUIDELINE,
            ))
    return warnings


def rule_vague_period(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []

    # Reported once, title first
    field_name, match = "title", BARE_CENTURY.search(ctx.title)
    if not match:
        field_name, match = "description", BARE_CENTURY.search(ctx.description)
    if match:
        prefix = match.group(1)
        warnings.append(ctx.warn(
            "bare_century", field_name,
            f'"{match.group(0)}" omfattar 100 år - ange decennium om möjligt '
            f'(t.ex. "{prefix}20-tal" eller "{prefix}50-tal")',
            Severity.LOW,
            WarningSource.FIELD_GUIDELINE,
        ))

    for field_name, text in (("title", ctx.title), ("description", ctx.description)):
        match = VAGUE_CENTURY_PART.search(text)
        if match:
            warnings.append(ctx.warn(
                "vague_century_part", field_name,
                f'"{match.group(0)}" är för vagt - ange "senare fjärdedel", "slut" eller specifikt decennium',
                Severity.LOW,
                WarningSource.FIELD_GUIDELINE,
            ))

    return warnings


def rule_marketing_language(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []
    for field_name, text in (("title", ctx.title), ("description", ctx.description)):
        terms = find_forbidden_terms(text, MARKETING_TERMS)
        if terms:
            warnings.append(ctx.warn(
                "marketing_language", field_name,
                f'Undvik säljande/subjektiva ord: {", ".join(terms)}',
                Severity.MEDIUM,
                WarningSource.FIELD_GUIDELINE,
            ))
    return warnings


def rule_speculative_language(ctx: RuleContext) -> list[CatalogWarning]:
    terms = find_forbidden_terms(ctx.description, SPECULATIVE_TERMS)
    if not terms:
        return []
    return [ctx.warn(
        "speculative_language", "description",
        f'Spekulativt språk i beskrivningen: {", ".join(terms)} - ange endast kända fakta',
        Severity.LOW,
        WarningSource.FIELD_GUIDELINE,
    )]


# =====================================================
# COMPLIANCE (ADVISORY)
# =====================================================

_LOOSE_GEMSTONE = [
    re.compile(r"\blösa?\s+ädelsten", re.IGNORECASE),
    re.compile(r"ädelsten\w*.*\blösa?\b", re.IGNORECASE),
]
_JEWELRY_WORDS = re.compile(r"smycke|ring|halsband|armband|brosch", re.IGNORECASE)
_BULLION = re.compile(r"\b(?:guldtacka|silvertacka|tackor|guldmynt.*parti|parti.*guldmynt)\b", re.IGNORECASE)
_GOLD = re.compile(r"\b(?:guld|gold)\b", re.IGNORECASE)
_LOT = re.compile(r"\b(?:parti|samling|lot)\b", re.IGNORECASE)


def rule_compliance(ctx: RuleContext) -> list[CatalogWarning]:
    warnings = []
    text = f"{ctx.title} {ctx.description}".lower()

    loose = any(p.search(text) for p in _LOOSE_GEMSTONE) or (
        category_matches(ctx.category, "gemstone") and not _JEWELRY_WORDS.search(text)
    )
    if loose:
        warnings.append(ctx.warn(
            "loose_gemstone", "compliance",
            "Lösa ädelstenar: Kräver certifikat (GIA/HRD/IGI/GRS/SSEF), proveniens ska anges "
            "och säljarens identitet måste kontrolleras.",
            Severity.HIGH,
            WarningSource.COMPLIANCE,
        ))

    highest = max(ctx.record.estimate_value, ctx.record.reserve_value)
    if highest >= ctx.thresholds["high_value_threshold"]:
        amount = f"{highest:,.0f}".replace(",", " ")
        warnings.append(ctx.warn(
            "high_value_item", "compliance",
            f"Värdering {amount} SEK - säkerställ att säljarens riskprofil och "
            "ID-verifiering är uppdaterad.",
            Severity.MEDIUM,
            WarningSource.COMPLIANCE,
        ))

    if _BULLION.search(text) or (_GOLD.search(text) and _LOT.search(text)):
        warnings.append(ctx.warn(
            "bullion_or_bulk_metal", "compliance",
            "Guld/silver i parti eller tackor: Kontrollera säljarens identitet och ägandets varaktighet.",
            Severity.MEDIUM,
            WarningSource.COMPLIANCE,
        ))

    return warnings


# Canonical evaluation order; determines warning order only
RULES: list[Rule] = [
    rule_reserve_vs_estimate,
    rule_title_completeness,
    rule_unknown_artist_phrase,
    rule_description_completeness,
    rule_condition,
    rule_keywords,
    rule_description_contamination,
    rule_furniture,
    rule_rug,
    rule_art,
    rule_silver,
    rule_dinner_set,
    rule_compound_word,
    rule_brand_spelling,
    rule_sterling_silver,
    rule_ca_before_year,
    rule_abbreviations,
    rule_vague_period,
    rule_marketing_language,
    rule_speculative_language,
    rule_compliance,
]


def score(
    record: CatalogRecord,
    rules: Optional[list[Rule]] = None,
    deductions: Optional[dict] = None,
    thresholds: Optional[dict] = None,
) -> ScoreResult:
    """
    Score a catalog record against the rule set.

    Args:
        record: Snapshot to evaluate (never mutated)
        rules: Rule functions to apply (default: RULES)
        deductions: Alternate deduction table (default: policy.DEDUCTIONS)
        thresholds: Alternate threshold table (default: policy.SCORER_THRESHOLDS)

    Returns:
        ScoreResult with clamped score and warnings in evaluation order
    """
    if not isinstance(record, CatalogRecord):
        record = CatalogRecord.from_dict(record if isinstance(record, dict) else {})

    ctx = RuleContext.build(record, deductions, thresholds)

    warnings: list[CatalogWarning] = []
    for rule in RULES if rules is None else rules:
        warnings.extend(rule(ctx))

    total = sum(w.deduction for w in warnings if w.source != WarningSource.COMPLIANCE)
    result = ScoreResult(score=clamp_score(MAX_SCORE - total), warnings=warnings)

    logger.debug(
        "record_scored",
        score=result.score,
        deduction=total,
        warnings=len(warnings),
        category=record.category[:40],
    )

    return result
