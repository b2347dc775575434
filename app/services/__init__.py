"""Services package for the prospect list generator."""

from app.services.industry_strategies import IndustryStrategyTable, load_industry_strategies
from app.services.prospect_extractor import ProspectExtractor
from app.services.prospect_merger import BackfillGenerator, ProspectMerger, QualityWeights
from app.services.prospect_pipeline import (
    PipelineError,
    ProspectPipeline,
    StageResult,
    build_prospect_pipeline,
)
from app.services.scrape_client import FirecrawlClient, ScrapeError
from app.services.source_fetchers import FetchedPage, FetchOutcome, build_fetchers
from app.services.strategy_selector import SourcePlan, StrategyError, StrategySelector

__all__ = [
    "IndustryStrategyTable",
    "load_industry_strategies",
    "StrategySelector",
    "SourcePlan",
    "StrategyError",
    "FirecrawlClient",
    "ScrapeError",
    "FetchedPage",
    "FetchOutcome",
    "build_fetchers",
    "ProspectExtractor",
    "ProspectMerger",
    "BackfillGenerator",
    "QualityWeights",
    "ProspectPipeline",
    "PipelineError",
    "StageResult",
    "build_prospect_pipeline",
]
