"""
Lexical pattern library for Swedish auction catalog text.

Pure data and matching functions, no state. All matchers are
case-insensitive and are meant to run on HTML-stripped text; use
strip_html() first when a field may carry markup.

Contents:
- Measurement formats (dimensions, weight, diameter, circumference, carat)
- Vague condition phrases ("normalt slitage", ..., and "bruksslitage")
- Forbidden-term lists (marketing, speculative, over-positive condition)
- Category keyword sets that switch on field-guideline rules
- Lookup tables: compound words, abbreviations, brand spellings,
  unknown-artist phrases
"""

import re
from typing import Optional


_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: Optional[str]) -> str:
    """Remove <...> markup. Non-string input yields an empty string."""
    if not isinstance(text, str):
        return ""
    return _TAG_RE.sub("", text)


# =====================================================
# MEASUREMENTS
# =====================================================

_APPROX = r"(?:ca\.?|cirka|ungefär|c:a)?\s*"
_NUM = r"\d+(?:[.,]\d+)?"
_RANGE = rf"{_NUM}\s*[-–]\s*{_NUM}"

MEASUREMENT_PATTERNS = [
    # Dimensions: 30 x 40 cm, 30×40×5 cm
    rf"{_APPROX}{_NUM}\s*[x×]\s*{_NUM}(?:\s*[x×]\s*{_NUM})?\s*(?:mm|cm|m)\b",
    rf"(?:ram)?mått:?\s*{_APPROX}{_NUM}\s*[x×]\s*{_NUM}\s*(?:mm|cm|m)\b",
    # Ranges with en-dash or hyphen: höjd 20-25 cm
    rf"{_APPROX}{_RANGE}\s*(?:mm|cm|m)\b",
    # Labelled single dimensions
    rf"(?:längd|bredd|bred|djup|höjd|diameter|diam\.?|ø|h\.?|l\.?|d\.?)\s*{_APPROX}{_NUM}\s*(?:mm|cm|m)\b",
    # Ring sizes and diameters without unit
    rf"(?:storlek|innerdiameter|inre\s*diameter|ytterdiameter|yttre\s*diameter|ringmått)\s*[:/]?\s*{_NUM}",
    rf"(?:omkrets|circumference)\s*[:/]?\s*{_NUM}\s*(?:mm|cm)\b",
    # Weight
    rf"(?:bruttovikt|nettovikt|vikt|weight)\s*[:/]?\s*{_APPROX}{_NUM}\s*(?:g|gram|kg)\b",
    # Carat
    rf"(?:karat|ct|carat)\s*[:/]?\s*{_NUM}",
    rf"{_NUM}\s*(?:ct|karat)\b",
    # Bare number with unit
    rf"{_APPROX}{_NUM}\s*(?:mm|cm|m|g|gram|kg)\b",
]

_MEASUREMENT_PATTERNS = [re.compile(p, re.IGNORECASE) for p in MEASUREMENT_PATTERNS]

# A single numeric-plus-unit token, used to compare two texts
MEASUREMENT_TOKEN = re.compile(
    rf"{_NUM}(?:\s*[x×]\s*{_NUM})*\s*(?:mm|cm|m|gram|g|kg|ct|karat)\b",
    re.IGNORECASE,
)


def has_measurement(text: Optional[str]) -> bool:
    """Check whether text contains any dimension, weight or carat figure."""
    plain = strip_html(text)
    return any(p.search(plain) for p in _MEASUREMENT_PATTERNS)


def find_measurement_tokens(text: Optional[str]) -> list[str]:
    """Return every numeric-plus-unit token in order of appearance."""
    return [m.group(0) for m in MEASUREMENT_TOKEN.finditer(strip_html(text))]


def normalize_measurement(token: str) -> str:
    """Canonical form for comparison: lowercase, no whitespace, dot decimals."""
    return re.sub(r"\s+", "", token.lower()).replace(",", ".").replace("×", "x")


# =====================================================
# CONDITION VOCABULARY
# =====================================================

# Vague on their own; "bruksslitage" is handled separately as the worst case
VAGUE_PHRASES = [
    "normalt slitage",
    "vanligt slitage",
    "åldersslitage",
    "slitage förekommer",
]

_BRUKSSLITAGE_ONLY = re.compile(r"\s*bruksslitage\.?\s*", re.IGNORECASE)

# Locator phrases that make a wear statement specific
LOCATION_INFO_PATTERN = re.compile(
    r"\b(?:vid|på|längs|i|under|över|runt|omkring)\s+"
    r"(?:fot|kant|ovansida|undersida|sida|hörn|mitt|centrum|botten|topp|fram|bak|insida|utsida)",
    re.IGNORECASE,
)

# Words that make a location qualifier unnecessary ("throughout")
PERVASIVE_TERMS = ["genomgående", "överallt"]

UNEXAMINED_FRAMED_PATTERN = re.compile(r"ej\s+examinerad\s+ur\s+ram", re.IGNORECASE)

# Condition-domain terms that must not appear in the description.
# Singular "märke" is left out: it is also a maker's mark.
CONDITION_VOCABULARY = [
    "slitage",
    "repor",
    "repa",
    "märken",
    "skador",
    "skada",
    "nagg",
    "sprickor",
    "spricka",
    "fläckar",
    "fläck",
    "bruksslitage",
    "åldersslitage",
    "skick",
]


def find_vague_phrases(text: Optional[str]) -> list[str]:
    """Return the vague condition phrases present in text."""
    lower = strip_html(text).lower()
    return [phrase for phrase in VAGUE_PHRASES if phrase in lower]


def is_bruksslitage_only(text: Optional[str]) -> bool:
    """True when the whole text is just "bruksslitage" (optional period)."""
    return bool(_BRUKSSLITAGE_ONLY.fullmatch(strip_html(text)))


def has_location_info(text: Optional[str]) -> bool:
    return bool(LOCATION_INFO_PATTERN.search(strip_html(text)))


def find_whole_words(text: Optional[str], terms: list[str]) -> list[str]:
    """Return terms that occur in text as whole words (case-insensitive)."""
    plain = strip_html(text)
    found = []
    for term in terms:
        if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", plain, re.IGNORECASE):
            found.append(term)
    return found


# =====================================================
# FORBIDDEN TERMS
# =====================================================

MARKETING_TERMS = [
    "fantastisk",
    "vacker",
    "underbar",
    "magnifik",
    "exceptional",
    "stunning",
    "rare",
    "unique",
    "sällsynt",
    "unik",
    "perfekt",
    "pristine",
    "värdefull",
]

SPECULATIVE_TERMS = [
    "förmodligen",
    "antagligen",
    "kanske",
    "jag tycker",
    "enligt min mening",
    "verkar vara",
]

OVERPOSITIVE_CONDITION_TERMS = [
    "perfekt skick",
    "nyskick",
    "felfri",
    "som ny",
    "utmärkt skick",
    "mint condition",
]


def find_forbidden_terms(text: Optional[str], terms: list[str]) -> list[str]:
    """Case-insensitive substring search of text against a term list."""
    lower = strip_html(text).lower()
    return [term for term in terms if term.lower() in lower]


# =====================================================
# CATEGORIES
# =====================================================

# Category substrings that activate each field-guideline rule group
CATEGORY_KEYWORDS = {
    "furniture": ["möbler"],
    "rug": ["matta", "mattor"],
    "art": ["konst", "tavl", "målning", "grafik", "litografi"],
    "silver": ["silver"],
    "jewelry": ["smycke"],
    "dinner_set": ["servis"],
    "gemstone": ["ädelsten"],
}


def category_matches(category: Optional[str], group: str) -> bool:
    """Check whether a category string belongs to a rule group."""
    lower = (category or "").lower() if isinstance(category, str) else ""
    return any(kw in lower for kw in CATEGORY_KEYWORDS.get(group, []))


WOOD_TYPES = [
    "furu", "ek", "björk", "mahogny", "teak", "valnöt", "alm", "ask",
    "bok", "tall", "lönn", "körsbär", "palisander", "jakaranda", "rosewood",
    "bambu", "rotting", "ceder", "cypress", "gran", "lärk", "poppel", "avenbok",
]

# Material words that should not be in a furniture title
FURNITURE_TITLE_MATERIALS = WOOD_TYPES + ["betsad", "betsat", "lackad", "lackerat", "fanér", "fanerad"]

# Any of these satisfies "material is stated somewhere"
FURNITURE_MATERIALS = WOOD_TYPES + ["fanér", "fanerad", "massiv", "trä"]


def find_wood_term(text: Optional[str], terms: list[str]) -> Optional[str]:
    """First material term found as a word, allowing fanér/fanerad/trä suffixes."""
    plain = strip_html(text)
    for term in terms:
        if re.search(rf"\b{re.escape(term)}(?:fanér|fanerad|trä)?\b", plain, re.IGNORECASE):
            return term
    return None


# =====================================================
# LOOKUP TABLES
# =====================================================

# Compound object+material words and their "OBJECT, material" form
COMPOUND_WORDS = {
    "majolikavas": "VAS, majolika",
    "glasvas": "VAS, glas",
    "keramikvas": "VAS, keramik",
    "silverring": "RING, silver",
    "guldring": "RING, guld",
    "silverkedja": "KEDJA, silver",
    "kristallvas": "VAS, kristall",
    "porslinsvas": "VAS, porslin",
    "keramiktomte": "TOMTE, keramik",
    "mässingsljusstake": "LJUSSTAKE, mässing",
    "tennmugg": "MUGG, tenn",
}

# Abbreviation pattern -> spelled-out replacement
ABBREVIATIONS = {
    r"\bbl\.?\s*a\b": "bland annat",
    r"\bosv\b": "och så vidare",
    r"\bt\.?\s*ex\b": "till exempel",
}

# Common misspelling -> maker name, checked in order
BRAND_CORRECTIONS = {
    "orefors": "Orrefors",
    "orrefross": "Orrefors",
    "kostaboda": "Kosta Boda",
    "iitala": "Iittala",
    "itala": "Iittala",
    "nuutajarvi": "Nuutajärvi",
    "gustavberg": "Gustavsberg",
    "gustavsber": "Gustavsberg",
    "rorstrand": "Rörstrand",
    "rörstran": "Rörstrand",
    "royal kopenhagen": "Royal Copenhagen",
    "bing grondahl": "Bing & Grøndahl",
    "bing gröndahl": "Bing & Grøndahl",
    "svensk tenn": "Svenskt Tenn",
    "svenskttenn": "Svenskt Tenn",
    "kallemo": "Källemo",
    "lamhults": "Lammhults",
    "rollex": "Rolex",
    "omaga": "Omega",
    "lemonia": "Lemania",
    "pateck philippe": "Patek Philippe",
    "louis vitton": "Louis Vuitton",
}

UNKNOWN_ARTIST_PHRASES = [
    "oidentifierad konstnär",
    "okänd konstnär",
    "okänd mästare",
    "oidentifierad formgivare",
    "okänd formgivare",
    "oidentifierad upphovsman",
]


def lookup_first(
    text: Optional[str],
    table: dict,
    whole_word: bool = False,
) -> Optional[tuple[str, str]]:
    """Return the first (key, value) whose key occurs in text; stop at first hit."""
    lower = strip_html(text).lower()
    for key, value in table.items():
        if whole_word:
            found = re.search(rf"(?<!\w){re.escape(key)}(?!\w)", lower) is not None
        else:
            found = key in lower
        if found:
            return key, value
    return None


# =====================================================
# PERIODS
# =====================================================

CA_BEFORE_YEAR = re.compile(r"\bca\.?\s+\d{4}\b", re.IGNORECASE)
BARE_CENTURY = re.compile(r"\b(\d{2})00-tal\.?\b", re.IGNORECASE)
VAGUE_CENTURY_PART = re.compile(
    r"\d{4}-talets\s+(?:(?:första|andra|senare)\s+del|(?:första|andra)\s+hälft)\b",
    re.IGNORECASE,
)
# Any year or period expression
PERIOD_PATTERN = re.compile(r"\d{4}|\d{2,4}-tal|1[6-9]\d{2}|20[0-2]\d", re.IGNORECASE)


# =====================================================
# KEYWORDS
# =====================================================

def split_keywords(keywords: Optional[str]) -> list[str]:
    """
    Split a keyword string.

    The separator is a comma when the string contains one, otherwise
    whitespace. Never both.
    """
    if not isinstance(keywords, str) or not keywords.strip():
        return []
    if "," in keywords:
        parts = keywords.split(",")
    else:
        parts = keywords.split()
    return [p.strip() for p in parts if p.strip()]
