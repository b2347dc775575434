"""Merger/validator: raw candidates → final prospect list.

The merge runs the same stages every time:
validate → deduplicate → quality-filter → backfill → sort and truncate.
It never raises on bad data; invalid fields are cleared and penalized, and a
shortfall is filled with generated candidates.
"""

import logging
import random
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlparse

from app.models import PreviewResult, ProspectCandidate
from app.services.extraction_rules import (
    has_letter,
    is_common_page_element,
    is_non_company_content,
    is_valid_email,
    is_valid_french_phone,
)
from app.services.industry_strategies import BackfillConfig, IndustryStrategyTable

logger = logging.getLogger(__name__)

# Sources accepted without a contact channel
TRUSTED_SOURCES = frozenset({"crunchbase", "linkedin", "enhanced_mock", "intelligent_mock"})
MOCK_SOURCES = frozenset({"enhanced_mock", "intelligent_mock"})

BACKFILL_SOURCE = "intelligent_mock"
BACKFILL_CONFIDENCE = 0.85
# Backfill runs when fewer candidates survive than this
BACKFILL_FLOOR = 3
# Maximum number of candidates generated per backfill
BACKFILL_BATCH = 5

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

# Confidence penalties for fields failing validation
EMAIL_PENALTY = 0.2
PHONE_PENALTY = 0.1
WEBSITE_PENALTY = 0.1

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100


@dataclass(frozen=True)
class QualityWeights:
    """Point weights of the 0-100 quality score used to rank the output.

    The values are tunable. Any set of weights should keep trusted sources
    above contactable candidates, and contactable candidates above bare names.
    """

    email: int = 15
    phone: int = 15
    website: int = 10
    high_confidence: int = 20
    high_confidence_threshold: float = 0.8
    description: int = 10
    description_min_length: int = 20
    source_bonus: dict[str, int] = field(
        default_factory=lambda: {
            "linkedin": 25,
            "crunchbase": 25,
            "enhanced_mock": 20,
            "intelligent_mock": 20,
            "pages_jaunes": 15,
            "yelp": 15,
        }
    )


DEFAULT_QUALITY_WEIGHTS = QualityWeights()


def quality_score(
    candidate: ProspectCandidate, weights: QualityWeights = DEFAULT_QUALITY_WEIGHTS
) -> int:
    """Score a candidate from 0 to 100."""
    score = 0
    if candidate.email:
        score += weights.email
    if candidate.phone:
        score += weights.phone
    if candidate.website:
        score += weights.website
    if candidate.confidence_score > weights.high_confidence_threshold:
        score += weights.high_confidence
    if candidate.description and len(candidate.description) > weights.description_min_length:
        score += weights.description
    score += weights.source_bonus.get(candidate.source, 0)
    return min(score, 100)


def is_valid_website(website: str) -> bool:
    try:
        parsed = urlparse(website.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def clamp_confidence(score: float) -> float:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))


def validate_candidate(candidate: ProspectCandidate) -> ProspectCandidate:
    """Clear invalid contact fields and penalize the confidence score.

    Returns a new candidate; the input is left untouched.
    """
    updates: dict[str, object] = {}
    confidence = candidate.confidence_score

    if candidate.email and not is_valid_email(candidate.email):
        updates["email"] = None
        confidence -= EMAIL_PENALTY
    if candidate.phone and not is_valid_french_phone(candidate.phone):
        updates["phone"] = None
        confidence -= PHONE_PENALTY
    if candidate.website and not is_valid_website(candidate.website):
        updates["website"] = None
        confidence -= WEBSITE_PENALTY

    updates["confidence_score"] = clamp_confidence(confidence)
    return candidate.model_copy(update=updates)


def identity_key(candidate: ProspectCandidate) -> str:
    """Dedup key: normalized name plus the first present contact channel."""
    contact = candidate.email or candidate.phone or candidate.website or ""
    return f"{candidate.name.strip().lower()}-{contact.strip().lower()}"


def deduplicate(candidates: list[ProspectCandidate]) -> list[ProspectCandidate]:
    """Keep the first occurrence of each identity key, preserving order."""
    seen: set[str] = set()
    unique = []
    for candidate in candidates:
        key = identity_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def has_well_formed_name(name: str) -> bool:
    """Length and letter checks only, without the boilerplate blocklists."""
    name = name.strip()
    return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH and has_letter(name)


def has_valid_name(name: str) -> bool:
    if not has_well_formed_name(name):
        return False
    return not (is_non_company_content(name) or is_common_page_element(name))


def is_high_quality(candidate: ProspectCandidate) -> bool:
    """Final quality gate: valid name, and contact info or a trusted source.

    Generated names skip the blocklists; they echo the industry label, which
    may contain words such as "aide" or "support".
    """
    if candidate.source in MOCK_SOURCES:
        if not has_well_formed_name(candidate.name):
            return False
    elif not has_valid_name(candidate.name):
        return False
    if not candidate.has_contact_info and candidate.source not in TRUSTED_SOURCES:
        return False
    return candidate.confidence_score >= MIN_CONFIDENCE


def _slug(name: str) -> str:
    normalized = unicodedata.normalize("NFKD", name)
    ascii_name = "".join(c for c in normalized if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9]", "", ascii_name.lower())


class BackfillGenerator:
    """Generates plausible candidates for an industry and location.

    Names come from the industry's templates in table order, then
    "<industry> <suffix>" names, then neutral "Entreprise ..." names so the
    pool never runs dry. Street, number and phone are
    drawn from a ``random.Random`` seeded per call, so the same inputs give
    the same candidates.
    """

    def __init__(
        self,
        table: IndustryStrategyTable,
        resolve_industry: Callable[[str], str | None] | None = None,
        seed: int | str | None = None,
    ) -> None:
        self._table = table
        self._resolve = resolve_industry or (lambda label: label if label in table.industries else None)
        self._seed = seed

    @property
    def config(self) -> BackfillConfig:
        return self._table.backfill

    def candidate_names(self, industry: str, location: str) -> list[str]:
        """Name pool for an industry, templates first then suffix variants."""
        city = location.split(",")[0].strip() or location.strip()
        label = self._resolve(industry)
        templates = self._table.industries[label].backfill_names if label else []

        names = [template.replace("{city}", city) for template in templates]
        names.extend(f"{industry} {suffix}" for suffix in self.config.generic_suffixes)
        names.extend(f"Entreprise {city} {suffix}" for suffix in self.config.generic_suffixes)
        names.extend(f"Entreprise {suffix}" for suffix in self.config.generic_suffixes)
        return names

    def generate(
        self,
        industry: str,
        location: str,
        count: int,
        existing_names: set[str] | None = None,
    ) -> list[ProspectCandidate]:
        """Generate up to ``count`` candidates whose names are not in ``existing_names``."""
        if count <= 0:
            return []

        rng = random.Random(self._seed if self._seed is not None else f"{industry}|{location}")
        taken = {name.lower() for name in existing_names or set()}
        generated = []

        for name in self.candidate_names(industry, location):
            if len(generated) >= count:
                break
            if name.lower() in taken or not has_well_formed_name(name):
                continue
            taken.add(name.lower())
            generated.append(self._build(name, industry, location, rng))

        if len(generated) < count:
            logger.debug(f"Backfill name pool exhausted for '{industry[:50]}'")
        return generated

    def _build(
        self, name: str, industry: str, location: str, rng: random.Random
    ) -> ProspectCandidate:
        slug = _slug(name) or "entreprise"
        street = rng.choice(self.config.streets)
        number = rng.randint(1, 200)
        phone_pairs = " ".join(str(rng.randint(10, 99)) for _ in range(4))
        return ProspectCandidate(
            name=name,
            email=f"contact@{slug}.fr",
            phone=f"+33 4 {phone_pairs}",
            address=f"{number} {street}, {location}",
            website=f"https://{slug}.fr",
            description=f"Entreprise spécialisée en {industry.lower()} à {location}",
            category=industry,
            source=BACKFILL_SOURCE,
            confidence_score=BACKFILL_CONFIDENCE,
        )


class ProspectMerger:
    """Turns the raw candidates of a run into the final preview.

    Args:
        backfill: Generator used when too few candidates survive.
        weights: Quality score weights used to rank the output.
    """

    def __init__(
        self,
        backfill: BackfillGenerator,
        weights: QualityWeights = DEFAULT_QUALITY_WEIGHTS,
    ) -> None:
        self._backfill = backfill
        self._weights = weights

    def merge(
        self,
        candidates: list[ProspectCandidate],
        industry: str,
        location: str,
        target_count: int,
        errors: list[str] | None = None,
    ) -> PreviewResult:
        """Run all merge stages.

        Args:
            candidates: Raw candidates in collection order.
            industry: Requested industry (backfill templates, category echo).
            location: Requested location (backfill addresses).
            target_count: Maximum number of prospects returned.
            errors: Error messages collected by earlier stages.

        Returns:
            The final preview with bookkeeping.
        """
        validated = [validate_candidate(c) for c in candidates]
        unique = deduplicate(validated)
        kept = [c for c in unique if is_high_quality(c)]
        logger.info(
            f"Merge: {len(candidates)} raw, {len(unique)} unique, {len(kept)} kept"
        )

        if len(kept) < BACKFILL_FLOOR and len(kept) < target_count:
            needed = min(BACKFILL_BATCH, target_count - len(kept))
            generated = self._backfill.generate(
                industry, location, needed, existing_names={c.name for c in kept}
            )
            # Generated candidates go through the same gate as live ones
            generated = deduplicate([*kept, *(validate_candidate(c) for c in generated)])[len(kept):]
            kept.extend(c for c in generated if is_high_quality(c))
            logger.info(f"Backfilled {len(generated)} candidate(s)")

        ranked = sorted(kept, key=lambda c: quality_score(c, self._weights), reverse=True)
        final = ranked[:target_count]

        sources_used: list[str] = []
        for candidate in final:
            if candidate.source not in sources_used:
                sources_used.append(candidate.source)

        return PreviewResult(
            prospects=final,
            sources_used=sources_used,
            total_found=len(final),
            errors=list(errors or []),
        )
