"""Industry strategy configuration table.

The table maps industry labels to keywords, search variations and backfill
name templates, and lists the source categories with their targets. It is
loaded once (in the application lifespan) and injected into the
``StrategySelector``, so adding an industry only means editing the JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from app.core.config import INDUSTRY_STRATEGIES_PATH

logger = logging.getLogger(__name__)

SourceCategory = Literal[
    "job_board",
    "directory",
    "company_graph",
    "search_engine",
    "business_listing",
]


class SourceTarget(BaseModel):
    """A site queried by a fetcher."""

    host: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1, description="Tag stamped on candidates")
    url_template: str = Field(..., min_length=1)
    enabled: bool = True


class CategoryConfig(BaseModel):
    """A source category with its targets and share of the target count."""

    category: SourceCategory
    quota_fraction: float = Field(..., gt=0.0, le=1.0)
    slow: bool = False
    query_templates: list[str] = Field(default_factory=list)
    targets: list[SourceTarget] = Field(default_factory=list)

    @property
    def enabled_targets(self) -> list[SourceTarget]:
        return [t for t in self.targets if t.enabled]


class IndustryConfig(BaseModel):
    """Per-industry keyword and template tables."""

    keywords: list[str] = Field(default_factory=list)
    search_variations: list[str] = Field(default_factory=list)
    backfill_names: list[str] = Field(default_factory=list)


class BackfillConfig(BaseModel):
    streets: list[str] = Field(..., min_length=1)
    generic_suffixes: list[str] = Field(..., min_length=1)


class IndustryStrategyTable(BaseModel):
    """Root of the configuration file."""

    categories: list[CategoryConfig] = Field(..., min_length=1)
    fallback_categories: list[CategoryConfig] = Field(default_factory=list)
    promising_url_patterns: list[str] = Field(default_factory=list)
    excluded_url_hosts: list[str] = Field(default_factory=list)
    industries: dict[str, IndustryConfig] = Field(default_factory=dict)
    backfill: BackfillConfig

    def category(self, name: str) -> CategoryConfig | None:
        """Look up a primary or fallback category by name."""
        for config in [*self.categories, *self.fallback_categories]:
            if config.category == name:
                return config
        return None


def load_industry_strategies(path: Path | str | None = None) -> IndustryStrategyTable:
    """Load and validate the industry strategy table.

    Args:
        path: JSON file to read. Defaults to ``INDUSTRY_STRATEGIES_PATH``.

    Returns:
        The validated table.

    Raises:
        ValueError: If the file is missing, not JSON, or fails validation.
    """
    table_path = Path(path) if path is not None else INDUSTRY_STRATEGIES_PATH
    try:
        raw = json.loads(table_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot read industry strategies from {table_path}: {e}") from e

    try:
        table = IndustryStrategyTable.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid industry strategies in {table_path}: {e}") from e

    logger.info(
        f"Loaded {len(table.industries)} industry strategies "
        f"and {len(table.categories)} source categories from {table_path.name}"
    )
    return table
