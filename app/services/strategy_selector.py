"""Strategy selector: industry label → ordered source plans."""

import logging
import math
import unicodedata
from dataclasses import dataclass, field

from rapidfuzz import fuzz, process

from app.services.industry_strategies import (
    CategoryConfig,
    IndustryConfig,
    IndustryStrategyTable,
    SourceTarget,
)

logger = logging.getLogger(__name__)

# Minimum rapidfuzz score for matching a label variant to a known industry
INDUSTRY_MATCH_CUTOFF = 90

SEARCH_ENGINE_CATEGORY = "search_engine"


class StrategyError(ValueError):
    """Raised when no source plan can be built from the request."""


@dataclass
class SourcePlan:
    """One source category to query for a generation request.

    Attributes:
        category: Source category name (job_board, directory, ...).
        seed_keywords: Query keywords; the first one is the industry label.
        quota: Maximum number of candidates to keep from this category.
        targets: Sites queried by the category's fetcher.
        query_templates: Query patterns for categories that build search queries.
        slow: Whether the longer rate-limit delay applies.
    """

    category: str
    seed_keywords: list[str]
    quota: int
    targets: list[SourceTarget] = field(default_factory=list)
    query_templates: list[str] = field(default_factory=list)
    slow: bool = False


def _fold(text: str) -> str:
    """Lowercase and strip accents for label comparison."""
    normalized = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in normalized if not unicodedata.combining(c))
    return " ".join(stripped.lower().replace("&", " et ").split())


class StrategySelector:
    """Maps an industry to a prioritized list of source plans.

    Pure function of the injected strategy table: no network, no state.
    """

    def __init__(self, table: IndustryStrategyTable) -> None:
        self._table = table
        self._folded_labels = {_fold(label): label for label in table.industries}

    @property
    def table(self) -> IndustryStrategyTable:
        return self._table

    def resolve_industry(self, industry: str) -> str | None:
        """Return the configured industry label matching ``industry``, if any."""
        if industry in self._table.industries:
            return industry

        folded = _fold(industry)
        if folded in self._folded_labels:
            return self._folded_labels[folded]

        match = process.extractOne(
            folded,
            list(self._folded_labels),
            scorer=fuzz.token_sort_ratio,
            score_cutoff=INDUSTRY_MATCH_CUTOFF,
        )
        if match is None:
            return None
        return self._folded_labels[match[0]]

    def select(self, industry: str, target_count: int) -> list[SourcePlan]:
        """Build the ordered source plans for a request.

        Args:
            industry: Industry label from the request.
            target_count: Requested number of prospects.

        Returns:
            Source plans in execution order; quotas sum to at most ``target_count``.

        Raises:
            StrategyError: If the industry is blank or the target is not positive.
        """
        self._check_inputs(industry, target_count)
        industry = industry.strip()

        label = self.resolve_industry(industry)
        if label is None:
            logger.info(f"No strategy for industry '{industry[:50]}', using search engine only")
            return [self._generic_search_plan(industry, target_count)]

        config = self._table.industries[label]
        return [
            self._build_plan(category, label, config, target_count)
            for category in self._table.categories
        ]

    def select_fallback(self, industry: str, shortfall: int) -> list[SourcePlan]:
        """Build plans for the fallback listing categories.

        Args:
            industry: Industry label from the request.
            shortfall: Number of candidates still missing.

        Returns:
            Fallback source plans, empty when nothing is missing.
        """
        if shortfall <= 0:
            return []
        self._check_inputs(industry, shortfall)
        industry = industry.strip()
        label = self.resolve_industry(industry) or industry
        config = self._table.industries.get(label, IndustryConfig())
        return [
            self._build_plan(category, label, config, shortfall)
            for category in self._table.fallback_categories
        ]

    def _check_inputs(self, industry: str, target_count: int) -> None:
        if not isinstance(industry, str) or not industry.strip():
            raise StrategyError("industry must be a non-empty string")
        if not isinstance(target_count, int) or target_count <= 0:
            raise StrategyError("target count must be a positive integer")

    def _build_plan(
        self,
        category: CategoryConfig,
        label: str,
        config: IndustryConfig,
        target_count: int,
    ) -> SourcePlan:
        if category.category == SEARCH_ENGINE_CATEGORY:
            keywords = [label, *config.search_variations]
        else:
            keywords = [label, *config.keywords]

        return SourcePlan(
            category=category.category,
            seed_keywords=keywords,
            quota=math.floor(target_count * category.quota_fraction),
            targets=list(category.enabled_targets),
            query_templates=list(category.query_templates),
            slow=category.slow,
        )

    def _generic_search_plan(self, industry: str, target_count: int) -> SourcePlan:
        category = self._table.category(SEARCH_ENGINE_CATEGORY)
        if category is None:
            raise StrategyError("strategy table has no search engine category")
        return SourcePlan(
            category=SEARCH_ENGINE_CATEGORY,
            seed_keywords=[industry],
            quota=target_count,
            targets=list(category.enabled_targets),
            query_templates=list(category.query_templates),
            slow=category.slow,
        )
