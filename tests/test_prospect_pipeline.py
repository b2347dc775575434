"""End-to-end tests for the ProspectPipeline with a fake scrape client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.prospect_merger import BACKFILL_SOURCE, MOCK_SOURCES
from app.services.prospect_pipeline import (
    PipelineError,
    StageResult,
    build_prospect_pipeline,
)
from app.services.source_fetchers import build_fetchers
from app.services.strategy_selector import StrategyError

JOB_BOARD_TEXT = """Offres d'emploi santé
Clinique du Parc
Centre Médical Bellecour
Cabinet Martin
Laboratoire Analyse Rhône
"""

DIRECTORY_TEXT = """Cabinet Dentaire Moderne
12 Rue Victor Hugo, 69002 Lyon
Tél : 04 78 12 34 56
contact@dentaire-moderne.fr
"""

COMPANY_PAGE = """# Acme Analytics
Contact: hello@acme-analytics.io
Tél: +33 4 78 12 34 56
"""


def _pipeline(table, client, sleep, fetchers=None):
    table_patterns = (table.promising_url_patterns, table.excluded_url_hosts)

    def fetcher_factory(scrape_client):
        built = build_fetchers(
            scrape_client,
            *table_patterns,
            delay_seconds=0,
            slow_delay_seconds=0,
            sleep=sleep,
        )
        built.update(fetchers or {})
        return built

    return build_prospect_pipeline(
        table, client_factory=lambda: client, fetcher_factory=fetcher_factory
    )


class TestStageTypes:
    """Tests for the stage result types."""

    def test_pipeline_error_str(self):
        assert str(PipelineError("directory", "HTTP 403")) == "directory: HTTP 403"

    def test_stage_result_ok(self):
        assert StageResult(stage="job_board").ok
        assert not StageResult(stage="job_board", errors=[PipelineError("job_board", "x")]).ok


class TestScenarios:
    """Generation scenarios with mocked network fetches."""

    @pytest.mark.asyncio
    async def test_empty_pages_give_backfilled_preview(self, strategy_table, empty_scrape_client, sleep):
        """Test that empty fetches still return a usable, mock-only preview."""
        pipeline = _pipeline(strategy_table, empty_scrape_client, sleep)

        result = await pipeline.generate("Technologie & IT", "Lyon, France", 20)

        assert 1 <= len(result.prospects) <= 20
        assert BACKFILL_SOURCE in result.sources_used
        assert all(c.source in MOCK_SOURCES for c in result.prospects)
        assert result.total_found == len(result.prospects)
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_all_fetches_failing(self, strategy_table, failing_scrape_client, sleep):
        """Test that total failure still yields candidates and reports errors."""
        pipeline = _pipeline(strategy_table, failing_scrape_client, sleep)

        result = await pipeline.generate("Technologie & IT", "Lyon, France", 50)

        assert len(result.prospects) >= 1
        assert result.errors
        assert any(e.startswith("job_board: ") for e in result.errors)
        assert any(e.startswith("business_listing: ") for e in result.errors)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "industry",
        ["Aide à domicile", "Support informatique", "Centre de contact", "Carrières et granulats"],
    )
    async def test_failing_fetches_with_menu_words_in_industry(
        self, strategy_table, failing_scrape_client, sleep, industry
    ):
        """Test that labels containing menu words still get a usable preview."""
        pipeline = _pipeline(strategy_table, failing_scrape_client, sleep)

        result = await pipeline.generate(industry, "Lyon, France", 50)

        assert len(result.prospects) >= 1
        assert result.sources_used == [BACKFILL_SOURCE]
        assert result.errors

    @pytest.mark.asyncio
    async def test_job_board_employers_with_contacts_kept(self, strategy_table, make_scrape_client, sleep):
        """Test that job-board entries with contacts reach the final list."""
        page = "\n".join(
            f"Entreprise Numero{i} Solutions\nrecrutement@numero{i}.fr" for i in range(12)
        )
        client = make_scrape_client(
            pages={
                "welcometothejungle.com": page,
                "lesjeudis.com": page,
                "apec.fr": page,
            }
        )
        pipeline = _pipeline(strategy_table, client, sleep)

        result = await pipeline.generate("Technologie & IT", "Lyon", 20)

        assert "welcometothejungle.com" in result.sources_used
        kept = [c for c in result.prospects if c.source == "welcometothejungle.com"]
        assert kept[0].name == "Entreprise Numero0 Solutions"
        assert kept[0].email == "recrutement@numero0.fr"

    @pytest.mark.asyncio
    async def test_search_engine_skipped_when_half_reached(self, strategy_table, make_scrape_client, sleep):
        """Test that the search engine and listings only run on a shortfall."""
        client = make_scrape_client(
            pages={
                "welcometothejungle.com": JOB_BOARD_TEXT,
                "lesjeudis.com": JOB_BOARD_TEXT,
                "apec.fr": JOB_BOARD_TEXT,
                "pagesjaunes.fr": DIRECTORY_TEXT,
                "annuaire-sante.fr": DIRECTORY_TEXT,
                "immobilier.fr": DIRECTORY_TEXT,
            }
        )
        pipeline = _pipeline(strategy_table, client, sleep)

        result = await pipeline.generate("Santé & Médical", "Lyon", 10)

        assert not any("google.com" in url for url in client.requested)
        assert not any("yelp.fr" in url for url in client.requested)
        names = [c.name for c in result.prospects]
        assert names.count("Cabinet Dentaire Moderne") == 1
        live = next(c for c in result.prospects if c.name == "Cabinet Dentaire Moderne")
        assert live.source == "pagesjaunes.fr"
        assert live.phone == "0478123456"
        # Job-board names have no contact and are filtered out
        assert "Clinique du Parc" not in names

    @pytest.mark.asyncio
    async def test_search_engine_crawl(self, strategy_table, make_scrape_client, sleep):
        """Test that promising search results become web crawl candidates."""
        client = make_scrape_client(
            pages={
                "google.com/search": "https://www.crunchbase.com/organization/acme-analytics",
                "crunchbase.com/organization": COMPANY_PAGE,
            }
        )
        pipeline = _pipeline(strategy_table, client, sleep)

        result = await pipeline.generate("Technologie & IT", "Lyon, France", 20)

        crawled = [c for c in result.prospects if c.source == "web_crawl"]
        assert len(crawled) == 1
        assert crawled[0].name == "Acme Analytics"
        assert crawled[0].website == "https://www.crunchbase.com/organization/acme-analytics"
        assert set(result.sources_used) == {"web_crawl", BACKFILL_SOURCE}
        assert any("yelp.fr" in url for url in client.requested)

    @pytest.mark.asyncio
    async def test_unknown_industry_uses_search_engine(self, strategy_table, empty_scrape_client, sleep):
        """Test that unknown industries only query the search engine and listings."""
        pipeline = _pipeline(strategy_table, empty_scrape_client, sleep)

        result = await pipeline.generate("Aquaculture", "Brest", 10)

        requested = empty_scrape_client.requested
        assert any("google.com" in url for url in requested)
        assert not any("apec.fr" in url for url in requested)
        assert result.prospects[0].name.startswith("Aquaculture")

    @pytest.mark.asyncio
    async def test_fetcher_crash_is_recorded(self, strategy_table, empty_scrape_client, sleep):
        """Test that a crashing stage degrades to the next one."""
        broken = MagicMock()
        broken.fetch = AsyncMock(side_effect=RuntimeError("parser exploded"))
        pipeline = _pipeline(strategy_table, empty_scrape_client, sleep, fetchers={"job_board": broken})

        result = await pipeline.generate("Immobilier", "Lyon", 10)

        assert any("parser exploded" in e for e in result.errors)
        assert any("pagesjaunes.fr" in url for url in empty_scrape_client.requested)
        assert result.prospects

    @pytest.mark.asyncio
    async def test_provider_not_configured(self, strategy_table, make_scrape_client, sleep):
        """Test that no request is made without provider credentials."""
        client = make_scrape_client(configured=False)
        pipeline = _pipeline(strategy_table, client, sleep)

        result = await pipeline.generate("Immobilier", "Lyon", 10)

        assert client.requested == []
        assert result.errors == ["fetch: scrape provider not configured"]
        assert all(c.source == BACKFILL_SOURCE for c in result.prospects)

    @pytest.mark.asyncio
    async def test_runs_are_independent(self, strategy_table, empty_scrape_client, sleep):
        """Test that a pipeline keeps no state between runs."""
        pipeline = _pipeline(strategy_table, empty_scrape_client, sleep)

        first = await pipeline.generate("Immobilier", "Lyon", 10)
        second = await pipeline.generate("Immobilier", "Lyon", 10)

        assert first == second


class TestMalformedInput:
    """Tests for the only errors that propagate."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "industry, location, target",
        [("", "Lyon", 10), ("Immobilier", "  ", 10), ("Immobilier", "Lyon", 0)],
    )
    async def test_strategy_error(self, strategy_table, empty_scrape_client, sleep, industry, location, target):
        pipeline = _pipeline(strategy_table, empty_scrape_client, sleep)
        with pytest.raises(StrategyError):
            await pipeline.generate(industry, location, target)
        assert empty_scrape_client.requested == []
