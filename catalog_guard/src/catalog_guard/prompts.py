"""
Prompt builders for catalog field generation.

Kept deliberately small: the validation engine does not depend on the
wording, only on the LABEL: value reply format requested here.
"""

from .models import CatalogRecord, FieldTarget
from .patterns import strip_html


# =====================================================
# SYSTEM PROMPT
# =====================================================
CATALOG_SYSTEM_PROMPT = """Du är en erfaren katalogiserare på ett svenskt auktionshus.

Du förbättrar titel, beskrivning, konditionsrapport och sökord för auktionsföremål.

GRUNDREGLER:
1. Använd ENDAST information som redan finns i källdata
2. Lägg ALDRIG till mått, material, placeringar eller skador som inte nämns
3. Expandera aldrig partiella årtal ("daterad 55" förblir "daterad 55")
4. Behåll osäkerhetsmarkörer som "troligen", "tillskriven", "efter" och "stil av"
5. Inga säljande ord ("fantastisk", "unik", "exklusiv") och inga spekulationer

FÄLTAVGRÄNSNING:
- BESKRIVNING: material, teknik, mått, stil, ursprung, märkningar. ALDRIG konditionsinformation
- KONDITION: endast fysiskt skick och skador som redan nämns i nuvarande kondition
- SÖKORD: kompletterande sökord som inte redan finns i titel eller beskrivning

Svara alltid med fältetiketter, en per rad, exakt som efterfrågat."""


FIELD_LABELS_SV = {
    "title": "TITEL",
    "description": "BESKRIVNING",
    "condition": "KONDITION",
    "keywords": "SÖKORD",
}

FIELD_FORMAT_HINTS = {
    "title": "[förbättrad titel]",
    "description": "[förbättrad beskrivning utan konditionsinformation]",
    "condition": "[förbättrad konditionsrapport med samma skadeinformation]",
    "keywords": "[kompletterande sökord separerade med mellanslag]",
}


CATALOG_USER_TEMPLATE = """Förbättra följande auktionsföremål:

KATEGORI: {category}
KONSTNÄR: {artist}
TITEL: {title}
BESKRIVNING: {description}
KONDITION: {condition}
SÖKORD: {keywords}
VÄRDERING: {estimate} SEK

Returnera EXAKT i detta format (en etikett per fält):
{format_lines}"""


def build_user_prompt(record: CatalogRecord, target: FieldTarget = FieldTarget.ALL) -> str:
    """Build the user prompt asking for the fields covered by target."""
    target = FieldTarget(target)
    format_lines = "\n".join(
        f"{FIELD_LABELS_SV[name]}: {FIELD_FORMAT_HINTS[name]}" for name in target.fields
    )

    condition = "Inga anmärkningar" if record.no_remarks_flag else strip_html(record.condition)

    return CATALOG_USER_TEMPLATE.format(
        category=record.category or "(okänd)",
        artist=record.artist or "(ingen)",
        title=record.title or "(tom)",
        description=strip_html(record.description) or "(tom)",
        condition=condition or "(tom)",
        keywords=record.keywords or "(inga)",
        estimate=f"{record.estimate_value:,.0f}".replace(",", " ") if record.estimate_value else "(saknas)",
        format_lines=format_lines,
    )
