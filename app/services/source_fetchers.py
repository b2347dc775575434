"""Source fetchers: one per source category.

A fetcher turns a ``SourcePlan`` into provider requests, waits a fixed delay
before each one, and collects the rendered pages. Failures never escape a
fetcher: each one is logged, recorded as an error string, and the fetcher
moves on to the next target. There are no retries.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol
from urllib.parse import quote

from app.core.config import (
    SLOW_SOURCE_REQUEST_DELAY_SECONDS,
    SOURCE_REQUEST_DELAY_SECONDS,
)
from app.services.industry_strategies import SourceTarget
from app.services.scrape_client import ScrapeError
from app.services.strategy_selector import SourcePlan

logger = logging.getLogger(__name__)

# Search-engine sweep limits
MAX_SEARCH_QUERIES = 3
MAX_URLS_PER_QUERY = 5
MAX_INDUSTRY_VARIATIONS = 3
MAX_LOCATION_VARIATIONS = 2

RESULT_URL_PATTERN = re.compile(r"https?://[^\s)]+")

Sleep = Callable[[float], Awaitable[None]]


class ScrapeClient(Protocol):
    async def scrape(self, url: str) -> str: ...


@dataclass
class FetchedPage:
    """Rendered text of one fetched page."""

    category: str
    source: str
    url: str
    text: str


@dataclass
class FetchOutcome:
    """Pages and error messages collected by one fetcher run."""

    pages: list[FetchedPage] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def extend(self, other: "FetchOutcome") -> None:
        self.pages.extend(other.pages)
        self.errors.extend(other.errors)


def location_variations(location: str) -> list[str]:
    """Split "City, Region" into city, region and "City Region"."""
    city, _, region = location.partition(",")
    city, region = city.strip(), region.strip()
    variations = [city, region, f"{city} {region}".strip()]
    seen: list[str] = []
    for variation in variations:
        if variation and variation not in seen:
            seen.append(variation)
    return seen


def fill_template(template: str, **values: str) -> str:
    """Fill a URL template, percent-encoding every value except the host."""
    encoded = {
        key: value if key == "host" else quote(value, safe="")
        for key, value in values.items()
    }
    return template.format(**encoded)


class SourceFetcher:
    """Base fetcher: fetch each planned URL once, after a fixed delay."""

    category = ""

    def __init__(
        self,
        client: ScrapeClient,
        delay_seconds: float = SOURCE_REQUEST_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def build_requests(
        self, plan: SourcePlan, location: str
    ) -> list[tuple[str, SourceTarget]]:
        """Return ``(url, target)`` pairs to fetch for a plan."""
        query = plan.seed_keywords[0] if plan.seed_keywords else ""
        return [
            (fill_template(target.url_template, host=target.host, query=query, location=location), target)
            for target in plan.targets
        ]

    async def fetch(self, plan: SourcePlan, location: str) -> FetchOutcome:
        """Fetch every page of a plan.

        Args:
            plan: Source plan from the strategy selector.
            location: Free-text location of the request.

        Returns:
            Fetched pages plus one error string per failed request.
        """
        outcome = FetchOutcome()
        for url, target in self.build_requests(plan, location):
            page = await self.fetch_page(url, target.source, outcome)
            if page is not None:
                outcome.pages.append(page)

        logger.info(
            f"{self.category}: fetched {len(outcome.pages)} page(s), "
            f"{len(outcome.errors)} error(s)"
        )
        return outcome

    async def fetch_page(
        self, url: str, source: str, outcome: FetchOutcome
    ) -> FetchedPage | None:
        """Fetch one URL; record a failure in ``outcome`` instead of raising."""
        await self._sleep(self.delay_seconds)
        try:
            text = await self._client.scrape(url)
        except ScrapeError as e:
            logger.warning(f"{self.category} fetch failed for {source}: {e}")
            outcome.errors.append(f"{source}: {e}")
            return None
        except Exception as e:
            logger.warning(f"Unexpected error fetching {url}: {e}")
            outcome.errors.append(f"{source}: unexpected error fetching {url}")
            return None

        if not text:
            logger.debug(f"Empty page from {url}")
        return FetchedPage(category=self.category, source=source, url=url, text=text or "")


class JobBoardFetcher(SourceFetcher):
    category = "job_board"


class DirectoryFetcher(SourceFetcher):
    category = "directory"


class BusinessListingFetcher(SourceFetcher):
    category = "business_listing"


class CompanyGraphFetcher(SourceFetcher):
    """Queries company-graph sites with quoted industry/location searches."""

    category = "company_graph"

    def __init__(
        self,
        client: ScrapeClient,
        delay_seconds: float = SLOW_SOURCE_REQUEST_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        super().__init__(client, delay_seconds, sleep)

    def build_requests(
        self, plan: SourcePlan, location: str
    ) -> list[tuple[str, SourceTarget]]:
        industry = plan.seed_keywords[0] if plan.seed_keywords else ""
        queries = [t.format(industry=industry, location=location) for t in plan.query_templates]
        return [
            (fill_template(target.url_template, host=target.host, query=query, location=location), target)
            for target in plan.targets
            for query in queries
        ]


class SearchEngineFetcher(SourceFetcher):
    """Sweeps a search engine, then fetches the promising result URLs.

    Each promising URL becomes its own page tagged with the engine target's
    source; the result pages themselves are only mined for links.
    """

    category = "search_engine"

    def __init__(
        self,
        client: ScrapeClient,
        promising_url_patterns: list[str] | None = None,
        excluded_url_hosts: list[str] | None = None,
        delay_seconds: float = SLOW_SOURCE_REQUEST_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        super().__init__(client, delay_seconds, sleep)
        self._promising = [re.compile(p, re.IGNORECASE) for p in promising_url_patterns or []]
        self._excluded = list(excluded_url_hosts or [])

    def build_queries(self, plan: SourcePlan, location: str) -> list[str]:
        """Build the search queries: base forms first, then variations."""
        industry = plan.seed_keywords[0] if plan.seed_keywords else ""
        queries = [t.format(industry=industry, location=location) for t in plan.query_templates]

        variations = plan.seed_keywords[1:] or [industry]
        for variation in variations[:MAX_INDUSTRY_VARIATIONS]:
            for place in location_variations(location)[:MAX_LOCATION_VARIATIONS]:
                queries.append(f'"{variation}" "{place}"')
                queries.append(f'"{variation}" "{place}" "contact"')

        return queries[:MAX_SEARCH_QUERIES]

    def filter_promising_urls(self, text: str) -> list[str]:
        """Extract result URLs that point at company or listing pages."""
        urls: list[str] = []
        for match in RESULT_URL_PATTERN.findall(text):
            url = match.rstrip(".,;:!?]")
            if any(host in url for host in self._excluded):
                continue
            if not any(p.search(url) for p in self._promising):
                continue
            if url not in urls:
                urls.append(url)
        return urls

    async def fetch(self, plan: SourcePlan, location: str) -> FetchOutcome:
        outcome = FetchOutcome()
        for target in plan.targets:
            for query in self.build_queries(plan, location):
                url = fill_template(target.url_template, host=target.host, query=query, location=location)
                results = await self.fetch_page(url, target.source, outcome)
                if results is None:
                    continue

                for result_url in self.filter_promising_urls(results.text)[:MAX_URLS_PER_QUERY]:
                    page = await self.fetch_page(result_url, target.source, outcome)
                    if page is not None:
                        outcome.pages.append(page)

        logger.info(
            f"{self.category}: crawled {len(outcome.pages)} result page(s), "
            f"{len(outcome.errors)} error(s)"
        )
        return outcome


def build_fetchers(
    client: ScrapeClient,
    promising_url_patterns: list[str] | None = None,
    excluded_url_hosts: list[str] | None = None,
    delay_seconds: float = SOURCE_REQUEST_DELAY_SECONDS,
    slow_delay_seconds: float = SLOW_SOURCE_REQUEST_DELAY_SECONDS,
    sleep: Sleep = asyncio.sleep,
) -> dict[str, SourceFetcher]:
    """Build one fetcher per source category around a shared client."""
    return {
        "job_board": JobBoardFetcher(client, delay_seconds, sleep),
        "directory": DirectoryFetcher(client, delay_seconds, sleep),
        "company_graph": CompanyGraphFetcher(client, slow_delay_seconds, sleep),
        "search_engine": SearchEngineFetcher(
            client, promising_url_patterns, excluded_url_hosts, slow_delay_seconds, sleep
        ),
        "business_listing": BusinessListingFetcher(client, delay_seconds, sleep),
    }
