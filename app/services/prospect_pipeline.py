"""Prospect pipeline: strategy → fetch → extract → merge.

Each source category runs as one stage and returns a ``StageResult`` holding
its candidates and its errors. The orchestrator always moves on to the next
stage, so a failing source only shows up in ``PreviewResult.errors``. The
only exception that leaves ``generate`` is ``StrategyError`` for a malformed
request.
"""

import logging
from dataclasses import dataclass, field
from typing import AsyncContextManager, Callable

from app.models import PreviewResult, ProspectCandidate
from app.services.industry_strategies import IndustryStrategyTable
from app.services.prospect_extractor import ProspectExtractor
from app.services.prospect_merger import BackfillGenerator, ProspectMerger
from app.services.scrape_client import FirecrawlClient
from app.services.source_fetchers import ScrapeClient, SourceFetcher, build_fetchers
from app.services.strategy_selector import (
    SEARCH_ENGINE_CATEGORY,
    SourcePlan,
    StrategyError,
    StrategySelector,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], AsyncContextManager[ScrapeClient]]
FetcherFactory = Callable[[ScrapeClient], dict[str, SourceFetcher]]


@dataclass
class PipelineError:
    """An error recorded by a stage instead of being raised."""

    stage: str
    message: str

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


@dataclass
class StageResult:
    """Candidates and errors produced by one stage."""

    stage: str
    candidates: list[ProspectCandidate] = field(default_factory=list)
    errors: list[PipelineError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """Sanitize user input for safe logging."""
    # Remove newlines, carriage returns, and other control characters
    sanitized = "".join(c if c.isprintable() and c not in "\n\r\t" else " " for c in value)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


class ProspectPipeline:
    """Runs one generation request end to end.

    Holds no per-run state, so a single instance can serve concurrent
    requests. Every collaborator is passed in.

    Args:
        selector: Strategy selector built on the loaded strategy table.
        extractor: Heuristic extractor.
        merger: Merger/validator with its backfill generator.
        client_factory: Returns an async context manager yielding the
            scrape client for one run.
        fetcher_factory: Builds the per-category fetchers around a client.
    """

    def __init__(
        self,
        selector: StrategySelector,
        extractor: ProspectExtractor,
        merger: ProspectMerger,
        client_factory: ClientFactory = FirecrawlClient,
        fetcher_factory: FetcherFactory | None = None,
    ) -> None:
        self._selector = selector
        self._extractor = extractor
        self._merger = merger
        self._client_factory = client_factory
        self._fetcher_factory = fetcher_factory or self._default_fetchers

    def _default_fetchers(self, client: ScrapeClient) -> dict[str, SourceFetcher]:
        table = self._selector.table
        return build_fetchers(client, table.promising_url_patterns, table.excluded_url_hosts)

    async def generate(self, industry: str, location: str, target_count: int) -> PreviewResult:
        """Generate a prospect preview.

        Args:
            industry: Industry label.
            location: Free-text location.
            target_count: Maximum number of prospects returned.

        Returns:
            The preview; source failures are listed in ``errors``.

        Raises:
            StrategyError: If the industry, location or target is malformed.
        """
        if not isinstance(location, str) or not location.strip():
            raise StrategyError("location must be a non-empty string")
        plans = self._selector.select(industry, target_count)
        industry, location = industry.strip(), location.strip()

        logger.info(
            f"Generating up to {target_count} prospects for "
            f"'{sanitize_for_log(industry)}' in '{sanitize_for_log(location)}'"
        )

        candidates: list[ProspectCandidate] = []
        errors: list[PipelineError] = []

        async with self._client_factory() as client:
            if not getattr(client, "is_configured", True):
                logger.warning("Scrape provider not configured, skipping live sources")
                errors.append(PipelineError("fetch", "scrape provider not configured"))
            else:
                fetchers = self._fetcher_factory(client)
                half = target_count / 2

                for plan in plans:
                    if self._skip_search_engine(plan, plans, len(candidates), half):
                        logger.info(f"Skipping search engine, {len(candidates)} candidates already")
                        continue
                    result = await self._run_stage(plan, fetchers, industry, location)
                    candidates.extend(result.candidates)
                    errors.extend(result.errors)

                if len(candidates) < half:
                    shortfall = target_count - len(candidates)
                    for plan in self._selector.select_fallback(industry, shortfall):
                        result = await self._run_stage(plan, fetchers, industry, location)
                        candidates.extend(result.candidates)
                        errors.extend(result.errors)

        preview = self._merger.merge(
            candidates, industry, location, target_count, [str(e) for e in errors]
        )
        logger.info(
            f"Generated {preview.total_found} prospects from "
            f"{', '.join(preview.sources_used) or 'no source'} ({len(errors)} error(s))"
        )
        return preview

    def _skip_search_engine(
        self, plan: SourcePlan, plans: list[SourcePlan], collected: int, half: float
    ) -> bool:
        # The search engine is a fallback unless it is the only plan
        return plan.category == SEARCH_ENGINE_CATEGORY and len(plans) > 1 and collected >= half

    async def _run_stage(
        self,
        plan: SourcePlan,
        fetchers: dict[str, SourceFetcher],
        industry: str,
        location: str,
    ) -> StageResult:
        """Fetch and extract one category, capped at the plan's quota."""
        result = StageResult(stage=plan.category)
        if plan.quota <= 0 or not plan.targets:
            return result

        fetcher = fetchers.get(plan.category)
        if fetcher is None:
            result.errors.append(PipelineError(plan.category, "no fetcher for category"))
            return result

        try:
            outcome = await fetcher.fetch(plan, location)
        except Exception as e:
            logger.warning(f"{plan.category} stage failed: {e}")
            result.errors.append(PipelineError(plan.category, f"fetch failed: {e}"))
            return result

        result.errors.extend(PipelineError(plan.category, message) for message in outcome.errors)

        for page in outcome.pages:
            try:
                found = self._extractor.extract(
                    page.text, page.source, page.category, industry, page.url
                )
            except Exception as e:
                logger.warning(f"Extraction failed for {page.url}: {e}")
                result.errors.append(PipelineError(plan.category, f"extraction failed for {page.source}"))
                continue
            result.candidates.extend(found)

        result.candidates = result.candidates[: plan.quota]
        logger.info(f"{plan.category}: {len(result.candidates)} candidate(s) kept (quota {plan.quota})")
        return result


def build_prospect_pipeline(
    table: IndustryStrategyTable,
    client_factory: ClientFactory = FirecrawlClient,
    fetcher_factory: FetcherFactory | None = None,
) -> ProspectPipeline:
    """Wire a pipeline around a loaded strategy table."""
    selector = StrategySelector(table)
    backfill = BackfillGenerator(table, resolve_industry=selector.resolve_industry)
    return ProspectPipeline(
        selector=selector,
        extractor=ProspectExtractor(),
        merger=ProspectMerger(backfill),
        client_factory=client_factory,
        fetcher_factory=fetcher_factory,
    )
