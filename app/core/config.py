"""Environment-driven settings for the prospect generation service.

Values are read once at import time. ``app.main`` loads the ``.env`` file
before anything imports this module.
"""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


# Firecrawl (fetch-and-render provider)
FIRECRAWL_API_KEY = os.getenv("FIRECRAWL_API_KEY", "").strip()
FIRECRAWL_BASE_URL = os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev").rstrip("/")

# Per-request provider settings
SCRAPE_TIMEOUT_SECONDS = _env_float("SCRAPE_TIMEOUT_SECONDS", 30.0)
SCRAPE_WAIT_FOR_MS = int(_env_float("SCRAPE_WAIT_FOR_MS", 2000))

# Fixed delay inserted before every provider request (rate-limit avoidance)
SOURCE_REQUEST_DELAY_SECONDS = _env_float("SOURCE_REQUEST_DELAY_SECONDS", 2.0)
SLOW_SOURCE_REQUEST_DELAY_SECONDS = _env_float("SLOW_SOURCE_REQUEST_DELAY_SECONDS", 3.0)

# Industry → strategy configuration table
DEFAULT_INDUSTRY_STRATEGIES_PATH = Path(__file__).resolve().parent.parent / "data" / "industry_strategies.json"
INDUSTRY_STRATEGIES_PATH = Path(
    os.getenv("INDUSTRY_STRATEGIES_PATH", "") or DEFAULT_INDUSTRY_STRATEGIES_PATH
)

# Database (list import)
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "prospects")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_AUTO_CREATE = _env_bool("DB_AUTO_CREATE", False)

# Comma-separated list of allowed origins; empty means the dev defaults
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
