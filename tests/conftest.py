"""Pytest fixtures for the prospect list generator tests.

This module provides shared fixtures for testing the FastAPI application and
the pipeline services, including a fake scrape client that never touches the
network.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models import ProspectCandidate
from app.services.industry_strategies import load_industry_strategies
from app.services.scrape_client import ScrapeError
from app.services.strategy_selector import StrategySelector


class FakeScrapeClient:
    """In-memory stand-in for ``FirecrawlClient``.

    ``pages`` maps a URL fragment to the text returned for any URL containing
    it; an exception value is raised instead. Unknown URLs return ``default``.
    """

    def __init__(self, pages=None, default="", configured=True):
        self.pages = pages or {}
        self.default = default
        self.is_configured = configured
        self.requested: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def scrape(self, url: str) -> str:
        self.requested.append(url)
        for fragment, result in self.pages.items():
            if fragment in url:
                if isinstance(result, Exception):
                    raise result
                return result
        if isinstance(self.default, Exception):
            raise self.default
        return self.default


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def client():
    """Create a test client for the FastAPI application.

    Returns:
        TestClient: A test client instance for making requests to the API.
    """
    return TestClient(app)


@pytest.fixture
def strategy_table():
    """The packaged industry strategy table."""
    return load_industry_strategies()


@pytest.fixture
def selector(strategy_table):
    return StrategySelector(strategy_table)


@pytest.fixture
def make_scrape_client():
    """Factory for fake scrape clients."""
    return FakeScrapeClient


@pytest.fixture
def sleep():
    """Sleep replacement that returns immediately."""
    return no_sleep


@pytest.fixture
def empty_scrape_client():
    """Scrape client whose every page renders to an empty string."""
    return FakeScrapeClient(default="")


@pytest.fixture
def failing_scrape_client():
    """Scrape client whose every request fails."""
    return FakeScrapeClient(default=ScrapeError("HTTP 403 from provider"))


@pytest.fixture
def sample_candidate():
    """A valid, contactable candidate.

    Returns:
        ProspectCandidate: Candidate from a directory page.
    """
    return ProspectCandidate(
        name="Cabinet Dentaire Moderne",
        email="contact@dentaire-moderne.fr",
        phone="0478123456",
        address="12 Rue Victor Hugo, 69002 Lyon",
        website="https://dentaire-moderne.fr",
        description="Cabinet dentaire en centre-ville",
        category="Santé & Médical",
        source="annuaire-sante.fr",
        confidence_score=0.7,
    )


@pytest.fixture
def sample_generation_request():
    """Preview request payload as sent by the front end.

    Returns:
        dict: camelCase request body.
    """
    return {
        "industry": "Technologie & IT",
        "location": "Lyon, France",
        "targetCount": 20,
        "listName": "Tech Lyon",
        "preview": True,
    }
