"""Declarative rule tables for prospect extraction.

Each source category gets an ``ExtractionProfile``: how its page text is
segmented, which predicate accepts a segment as a listing entry, which field
rules run (in priority order) and what confidence the category starts from.
Everything here is pure text processing so rules can be tested without any
network access.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Literal

# ---------------------------------------------------------------------------
# Field patterns
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
EMAIL_FULL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# +33 or leading 0, then 9 digits; separators between digit pairs are tolerated
PHONE_PATTERN = re.compile(r"(?<![\d+])(?:\+33\s?|0)[1-9](?:[\s.]?\d{2}){4}(?!\d)")
PHONE_FULL_PATTERN = re.compile(r"^(\+33|0)[1-9][0-9]{8}$")

URL_PATTERN = re.compile(r"https?://[^\s)\]>\"'<]+")

HEADING_PATTERN = re.compile(r"^#+\s+(.+)$", re.MULTILINE)
BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")

LABEL_LINE_PATTERN = re.compile(
    r"^\W*(industry|company size|funding|headquarters|founded|secteur|sector)\s*:",
    re.IGNORECASE | re.MULTILINE,
)

# Segments start at a heading, a bold line or a numbered item, or after a blank run
BLOCK_SPLIT_PATTERN = re.compile(r"\n(?=#|\*\*|\d+\.\s)|\n\s*\n")

FRENCH_CITIES = (
    "paris", "lyon", "marseille", "toulouse", "nice", "nantes", "strasbourg",
    "montpellier", "bordeaux", "lille", "rennes", "reims", "tours", "angers",
    "dijon", "brest", "le havre", "saint-étienne", "toulon", "grenoble", "nancy",
    "avignon", "mulhouse", "metz", "besançon", "orléans", "caen", "rouen",
    "amiens", "poitiers", "limoges", "nîmes", "villeurbanne", "clermont-ferrand",
)

LOCATION_PATTERNS = [
    re.compile(r"\b\d{5}\s+[a-zA-ZÀ-ÿ\s-]+$", re.IGNORECASE),
    re.compile(r"\b(" + "|".join(re.escape(c) for c in FRENCH_CITIES) + r")\b", re.IGNORECASE),
    re.compile(r"\b(avenue|rue|boulevard|place|impasse|allée|chemin|route|square|cours)\s+", re.IGNORECASE),
]

COMPANY_INDICATORS = [
    re.compile(r"\b(sarl|sas|sa|eurl|sci|scp|snc|gmbh|ltd|llc|inc|corp|group|groupe)\b", re.IGNORECASE),
    re.compile(r"\b(entreprise|company|société|cabinet|agence|studio|lab|labs|consulting|conseil)\b", re.IGNORECASE),
    re.compile(r"\b(solutions|services|systems|technologies|innovation|digital)\b", re.IGNORECASE),
    re.compile(r"\b(centre|center|clinic|clinique|hospital|hôpital)\b", re.IGNORECASE),
    re.compile(r"\b(immobilier|real estate|construction|btp)\b", re.IGNORECASE),
]

JOB_DESCRIPTION_PATTERNS = [
    re.compile(r"\b(développeur|developer|ingénieur|engineer|consultant|manager|directeur|director|chef|lead|senior|junior)\b", re.IGNORECASE),
    re.compile(r"\b(marketing|commercial|vente|sales|finance|comptable|rh|hr|it|informatique|tech|technique)\b", re.IGNORECASE),
    re.compile(r"\b(stage|internship|cdi|cdd|freelance|temps plein|full time|part time|temps partiel)\b", re.IGNORECASE),
]

# Directory-specific business-type keywords, keyed by a host fragment
DIRECTORY_KEYWORDS: dict[str, re.Pattern] = {
    "pagesjaunes": re.compile(r"\b(restaurant|café|bar|hotel|hôtel|magasin|boutique|salon|garage|pharmacie)\b", re.IGNORECASE),
    "annuaire-sante": re.compile(r"\b(dr|docteur|cabinet|clinique|centre|laboratoire|pharmacie|dentiste|vétérinaire)\b", re.IGNORECASE),
    "immobilier": re.compile(r"\b(agence|immobilier|promoteur|constructeur|syndic|notaire)\b", re.IGNORECASE),
}

# ---------------------------------------------------------------------------
# Blocklists
# ---------------------------------------------------------------------------

# Navigation, error and legal boilerplate, matched at the start of a line
NON_COMPANY_PATTERNS = [
    re.compile(r"^(error|erreur|404|500|oops|oups)\b", re.IGNORECASE),
    re.compile(r"^(vous avez|you have|login|connexion|sign in)\b", re.IGNORECASE),
    re.compile(r"^(les informations|informations?|legal|l[ée]gal(?:es?)?)\b", re.IGNORECASE),
    re.compile(r"^(donner de l'élan|give momentum|careers?|carrières?)\b", re.IGNORECASE),
    re.compile(r"^(outils|tools|infos?|clés|key)\b", re.IGNORECASE),
    re.compile(r"^(nos|our|tendances|trends|emplois?|jobs?|employment)\b", re.IGNORECASE),
    re.compile(r"^(il semblerait|it seems|page|introuvable|not found)\b", re.IGNORECASE),
    re.compile(r"^(domain name|nom de domaine)\b", re.IGNORECASE),
    re.compile(r"^(accueil|home|menu|navigation)\b", re.IGNORECASE),
    re.compile(r"^(recherche|search|résultats?|results?|filtres?|filters?)\b", re.IGNORECASE),
    re.compile(r"^(cookies?|rgpd|gdpr|politique|privacy)\b", re.IGNORECASE),
    re.compile(r"^(contact|contactez|aide|help|support|faq)\b", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile(r"^[<>{}\[\]()]+$"),
    re.compile(r"^(le|la|les|un|une|des|du|de|à|au|aux|pour|par|sur|avec|dans|sans|sous)$", re.IGNORECASE),
]

# Menu and footer terms, matched as whole words anywhere in a name
COMMON_PAGE_ELEMENTS = (
    "accueil", "home", "menu", "navigation", "recherche", "search",
    "connexion", "login", "inscription", "register", "contact",
    "à propos", "about", "actualités", "news", "blog", "carrières", "careers",
    "mentions légales", "legal", "politique", "privacy",
    "cookies", "rgpd", "gdpr", "aide", "help", "support",
    "error", "erreur", "404", "500", "not found", "introuvable",
)
COMMON_PAGE_ELEMENT_PATTERN = re.compile(
    r"(?<!\w)(" + "|".join(re.escape(e) for e in COMMON_PAGE_ELEMENTS) + r")(?!\w)",
    re.IGNORECASE,
)

LETTER_PATTERN = re.compile(r"[a-zA-ZÀ-ÿ]")

# "Label: value" lines are field lines, never names
LABEL_PREFIX_PATTERN = re.compile(r"^[^:]{1,30}:\s")

# ---------------------------------------------------------------------------
# Text predicates
# ---------------------------------------------------------------------------


def is_non_company_content(text: str) -> bool:
    """Check if text is navigation, error or legal boilerplate."""
    stripped = text.strip()
    return any(pattern.search(stripped) for pattern in NON_COMPANY_PATTERNS)


def is_common_page_element(text: str) -> bool:
    """Check if text contains a menu/footer term."""
    return COMMON_PAGE_ELEMENT_PATTERN.search(text) is not None


def is_field_line(text: str) -> bool:
    """Check if a line carries a field value (contact or label) rather than a name."""
    return bool(
        EMAIL_PATTERN.search(text)
        or URL_PATTERN.search(text)
        or PHONE_PATTERN.search(text)
        or LABEL_PREFIX_PATTERN.match(text)
    )


def has_letter(text: str) -> bool:
    return LETTER_PATTERN.search(text) is not None


def looks_like_company_name(text: str) -> bool:
    """Check if a line reads like a business name."""
    if len(text) < 3 or len(text) > 100:
        return False
    if not has_letter(text):
        return False
    return any(pattern.search(text) for pattern in COMPANY_INDICATORS)


def looks_like_location(text: str) -> bool:
    """Check if a line reads like a French address or city."""
    return any(pattern.search(text) for pattern in LOCATION_PATTERNS)


def looks_like_job_description(text: str) -> bool:
    if len(text) >= 200:
        return False
    return any(pattern.search(text) for pattern in JOB_DESCRIPTION_PATTERNS)


def looks_like_directory_entry(text: str, source: str) -> bool:
    """Check if a line is an entry of the given directory."""
    if "pagesjaunes" in source:
        return looks_like_company_name(text) or bool(DIRECTORY_KEYWORDS["pagesjaunes"].search(text))
    for fragment, pattern in DIRECTORY_KEYWORDS.items():
        if fragment in source:
            return bool(pattern.search(text))
    return looks_like_company_name(text)


def clean_company_name(text: str) -> str:
    """Strip markdown decoration and list markers from a name line."""
    cleaned = text.strip()
    cleaned = re.sub(r"^#+\s*", "", cleaned)
    cleaned = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", cleaned)
    cleaned = BOLD_PATTERN.sub(r"\1", cleaned)
    cleaned = re.sub(r"^\d+\.\s*", "", cleaned)
    cleaned = re.sub(r"^[-*•]\s*", "", cleaned)
    return " ".join(cleaned.split()).strip()


def normalize_phone(raw: str) -> str:
    return re.sub(r"[\s.]", "", raw)


def is_valid_email(email: str) -> bool:
    return EMAIL_FULL_PATTERN.match(email.strip()) is not None


def is_valid_french_phone(phone: str) -> bool:
    return PHONE_FULL_PATTERN.match(re.sub(r"\s", "", phone)) is not None


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

FieldName = Literal["email", "phone", "website", "address", "description"]


@dataclass(frozen=True)
class FieldRule:
    """A pattern that fills one candidate field.

    Attributes:
        field: Candidate field the rule fills.
        pattern: Pattern searched in each scanned line.
        extractor: Turns the match into the field value; ``None`` means no value.
        sources: Restricts the rule to these source tags; empty means any.
        confidence_bonus: Added to the candidate score when the rule fires.
    """

    field: FieldName
    pattern: re.Pattern
    extractor: Callable[[re.Match], str | None]
    sources: frozenset[str] = frozenset()
    confidence_bonus: float = 0.0

    def applies_to(self, source: str) -> bool:
        return not self.sources or source in self.sources

    def apply(self, line: str) -> str | None:
        match = self.pattern.search(line)
        if match is None:
            return None
        value = self.extractor(match)
        return value.strip() if value else None


def _whole(match: re.Match) -> str:
    return match.group(0)


def _url(match: re.Match) -> str:
    return match.group(0).rstrip(".,;:!?")


def _phone(match: re.Match) -> str:
    return normalize_phone(match.group(0))


def _line(match: re.Match) -> str:
    return match.string


def _location_line(match: re.Match) -> str | None:
    line = match.string
    if EMAIL_PATTERN.search(line) or URL_PATTERN.search(line):
        return None
    return line if looks_like_location(line) and len(line) < 200 else None


def _job_line(match: re.Match) -> str | None:
    line = match.string
    return f"Secteur: {line}" if looks_like_job_description(line) else None


def _labeled(match: re.Match) -> str:
    return f"{match.group(1).strip().capitalize()}: {match.group(2).strip()}"


EMAIL_RULE = FieldRule("email", EMAIL_PATTERN, _whole)
PHONE_RULE = FieldRule("phone", PHONE_PATTERN, _phone)
WEBSITE_RULE = FieldRule("website", URL_PATTERN, _url)
# Matches any non-empty line; the extractor decides if it is an address
ADDRESS_RULE = FieldRule("address", re.compile(r"\S"), _location_line)
JOB_DESCRIPTION_RULE = FieldRule("description", re.compile(r"\S"), _job_line)

DESCRIPTION_RULE = FieldRule(
    "description",
    re.compile(r"^\W*descriptions?\s*:\s*(.+)$", re.IGNORECASE),
    lambda m: m.group(1),
)
LABELED_DESCRIPTION_RULE = FieldRule(
    "description",
    re.compile(r"^\W*(industry|company size|funding|secteur|sector)\s*:\s*(.+)$", re.IGNORECASE),
    _labeled,
)
RATING_RULE = FieldRule(
    "description",
    re.compile(r"(\d+(?:[.,]\d+)?)\s*étoiles?", re.IGNORECASE),
    lambda m: f"{m.group(1)} étoiles sur Yelp",
    sources=frozenset({"yelp"}),
)


def _bonus(rule: FieldRule, bonus: float) -> FieldRule:
    return FieldRule(rule.field, rule.pattern, rule.extractor, rule.sources, bonus)


# Listing sites reward every contact channel they expose
LISTING_CONTACT_BONUS = 0.1


@dataclass(frozen=True)
class ExtractionProfile:
    """How one source category's text is turned into candidates.

    Attributes:
        segmentation: ``lines`` scans line by line and opens an entry on each
            accepted line; ``blocks`` splits on headings/blank runs; ``page``
            treats the whole text as one entry.
        entry_predicate: ``(text, source) -> bool`` deciding if a line (or
            block) is a listing entry.
        lookahead: Lines scanned after the name line; ``None`` scans to the
            end of the segment.
        field_rules: Rules in priority order; first value found per field wins.
        base_confidence: Default starting score for the category.
        source_confidence: Per-source overrides of the starting score.
        max_per_page: Cap on candidates taken from one page.
    """

    segmentation: Literal["lines", "blocks", "page"]
    entry_predicate: Callable[[str, str], bool]
    field_rules: tuple[FieldRule, ...]
    base_confidence: float
    lookahead: int | None = None
    source_confidence: dict[str, float] = field(default_factory=dict)
    max_per_page: int | None = None

    def confidence_for(self, source: str) -> float:
        return self.source_confidence.get(source, self.base_confidence)


def _job_board_entry(text: str, source: str) -> bool:
    return looks_like_company_name(text)


def _company_graph_entry(block: str, source: str) -> bool:
    return HEADING_PATTERN.search(block) is not None and LABEL_LINE_PATTERN.search(block) is not None


def _listing_entry(block: str, source: str) -> bool:
    return HEADING_PATTERN.search(block) is not None or BOLD_PATTERN.search(block) is not None


def _page_entry(page: str, source: str) -> bool:
    return HEADING_PATTERN.search(page) is not None


EXTRACTION_PROFILES: dict[str, ExtractionProfile] = {
    "job_board": ExtractionProfile(
        segmentation="lines",
        entry_predicate=_job_board_entry,
        field_rules=(EMAIL_RULE, PHONE_RULE, WEBSITE_RULE, ADDRESS_RULE, JOB_DESCRIPTION_RULE),
        base_confidence=0.6,
        lookahead=6,
        max_per_page=10,
    ),
    "directory": ExtractionProfile(
        segmentation="lines",
        entry_predicate=looks_like_directory_entry,
        field_rules=(EMAIL_RULE, PHONE_RULE, WEBSITE_RULE, ADDRESS_RULE, DESCRIPTION_RULE),
        base_confidence=0.7,
        lookahead=9,
        max_per_page=15,
    ),
    "company_graph": ExtractionProfile(
        segmentation="blocks",
        entry_predicate=_company_graph_entry,
        field_rules=(EMAIL_RULE, PHONE_RULE, WEBSITE_RULE, LABELED_DESCRIPTION_RULE),
        base_confidence=0.9,
        source_confidence={"crunchbase": 0.95, "linkedin": 0.9},
    ),
    "business_listing": ExtractionProfile(
        segmentation="blocks",
        entry_predicate=_listing_entry,
        field_rules=(
            _bonus(EMAIL_RULE, LISTING_CONTACT_BONUS),
            _bonus(PHONE_RULE, LISTING_CONTACT_BONUS),
            _bonus(WEBSITE_RULE, LISTING_CONTACT_BONUS),
            ADDRESS_RULE,
            DESCRIPTION_RULE,
            RATING_RULE,
        ),
        base_confidence=0.75,
        lookahead=9,
        source_confidence={"pages_jaunes": 0.8, "yelp": 0.75},
    ),
    "search_engine": ExtractionProfile(
        segmentation="page",
        entry_predicate=_page_entry,
        field_rules=(EMAIL_RULE, PHONE_RULE, DESCRIPTION_RULE),
        base_confidence=0.5,
        source_confidence={"web_crawl": 0.5},
        max_per_page=1,
    ),
}


def get_profile(category: str) -> ExtractionProfile:
    """Return the extraction profile of a category.

    Raises:
        KeyError: If the category has no profile.
    """
    return EXTRACTION_PROFILES[category]
