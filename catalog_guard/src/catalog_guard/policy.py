"""
Scoring and gating policy tables.

One canonical table of deductions and thresholds. Rules read their
amounts from here and never hardcode them, so the tables can be asserted
on directly and replaced per call (score(..., deductions=...)).

Compliance rules are advisory: their codes are listed in
COMPLIANCE_CODES and carry no deduction at all.
"""

# Points removed from 100 when a rule fires. 0 = informational tip.
DEDUCTIONS = {
    # Completeness
    "short_title": 15,
    "title_missing_structure": 15,
    "title_lowercase_with_artist": 15,
    "short_description": 20,
    "missing_measurements": 10,
    # Condition
    "short_condition": 20,
    "bruksslitage_only": 35,
    "vague_condition_term": 20,
    "condition_location_tip": 0,
    "overpositive_condition": 5,
    "no_remarks_declared": 0,
    "unexamined_framed": 0,
    # Keywords
    "keywords_missing": 30,
    "keywords_too_few": 20,
    "keywords_could_use_more": 10,
    "keywords_too_many": 15,
    "keywords_redundant_tip": 0,
    # Cross-field contamination (per distinct term)
    "condition_term_in_description": 5,
    # Field guidelines by category
    "reserve_exceeds_estimate": 20,
    "unknown_artist_phrase": 10,
    "furniture_material_in_title": 10,
    "furniture_material_missing": 8,
    "rug_measurements_not_in_title": 10,
    "art_bruksslitage": 15,
    "silver_weight_not_in_title": 5,
    "dinner_set_st_count": 5,
    # General lexical hygiene
    "compound_word": 5,
    "brand_spelling": 5,
    "sterling_silver_two_words": 5,
    "ca_before_year": 3,
    "abbreviation": 3,
    "bare_century": 5,
    "vague_century_part": 3,
    "marketing_language": 5,
    "speculative_language": 3,
}

COMPLIANCE_CODES = (
    "loose_gemstone",
    "high_value_item",
    "bullion_or_bulk_metal",
)

# Thresholds used by the scorer rules
SCORER_THRESHOLDS = {
    "min_title_length": 14,
    "min_description_length": 35,  # Stripped characters
    "min_condition_length": 25,
    "vague_condition_max_length": 40,  # Vague phrase only penalised below this
    "location_tip_min_length": 25,
    "keywords_too_few_below": 2,
    "keywords_could_use_more_below": 5,
    "keywords_too_many_above": 15,  # 5..15 is the sweet spot
    "keywords_redundancy_min_count": 3,
    "keywords_unique_ratio": 0.2,
    "keyword_min_length": 3,  # Shorter keywords never count as unique
    "high_value_threshold": 50000,
}

# Floors used by the sparse-data gate
GATE_THRESHOLDS = {
    "hard_floor": 30,  # Any target: score below this always needs more info
    "all_floor": 40,
    "keywords_floor": 20,
    "title_period_max_description": 30,
    "title_basic_max_title": 15,
    "title_basic_max_description": 25,
    "artist_min_description": 20,
    "description_floor": 25,
    "description_measurement_floor": 40,
    "condition_floor": 15,
    "condition_vague_max_length": 40,
}

# Scores below this trigger exactly one correction call
CORRECTION_THRESHOLD = 70

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))
