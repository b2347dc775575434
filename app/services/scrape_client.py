"""Firecrawl client: scrape a URL and return its rendered text.

Firecrawl renders the page (JavaScript included) and returns markdown. The
client is the single entry point to the provider; it raises ``ScrapeError``
on any failure and leaves recovery to the caller.

API Documentation: https://docs.firecrawl.dev/api-reference/endpoint/scrape
"""

import logging
import re
from typing import Any

import httpx
from bs4 import BeautifulSoup

from app.core.config import (
    FIRECRAWL_API_KEY,
    FIRECRAWL_BASE_URL,
    SCRAPE_TIMEOUT_SECONDS,
    SCRAPE_WAIT_FOR_MS,
)

logger = logging.getLogger(__name__)

SCRAPE_ENDPOINT = "/v1/scrape"

# Tags kept/dropped by the provider before rendering
INCLUDE_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "div", "span", "a"]
EXCLUDE_TAGS = ["nav", "header", "footer", "aside", "script", "style", "meta", "form", "input", "button"]

HEADING_TAGS = {"h1": "#", "h2": "##", "h3": "###", "h4": "####", "h5": "#####", "h6": "######"}


class ScrapeError(Exception):
    """Raised when a page cannot be fetched or rendered."""


def html_to_text(html: str) -> str:
    """Render HTML into markdown-like text.

    Headings become ``#`` lines and every block element ends up on its own
    line, which is the shape the extractor expects from the provider.
    """
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript", *EXCLUDE_TAGS]):
        tag.decompose()

    for level, marker in HEADING_TAGS.items():
        for heading in soup.find_all(level):
            text = heading.get_text(separator=" ", strip=True)
            heading.replace_with(f"\n{marker} {text}\n" if text else "")

    text = soup.get_text(separator="\n")
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class FirecrawlClient:
    """Async client for the Firecrawl scrape endpoint.

    Use as an async context manager::

        async with FirecrawlClient() as client:
            text = await client.scrape("https://example.com")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = SCRAPE_TIMEOUT_SECONDS,
        wait_for_ms: int = SCRAPE_WAIT_FOR_MS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else FIRECRAWL_API_KEY).strip()
        self.base_url = (base_url or FIRECRAWL_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.wait_for_ms = wait_for_ms
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key)

    async def __aenter__(self) -> "FirecrawlClient":
        """Enter async context and create HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            # Provider-side timeout is in the payload; leave headroom for the round trip
            timeout=self.timeout + 10.0,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context and close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, url: str) -> dict[str, Any]:
        return {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": True,
            "includeTags": INCLUDE_TAGS,
            "excludeTags": EXCLUDE_TAGS,
            "waitFor": self.wait_for_ms,
            "timeout": int(self.timeout * 1000),
        }

    async def scrape(self, url: str) -> str:
        """Scrape one URL and return its rendered text.

        Args:
            url: Absolute URL of the page to render.

        Returns:
            Markdown text of the page (possibly empty).

        Raises:
            ScrapeError: If the client is unusable, the request fails, or the
                provider reports an error.
        """
        if not self._client:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        if not self.is_configured:
            raise ScrapeError("Firecrawl API key not configured")

        try:
            response = await self._client.post(SCRAPE_ENDPOINT, json=self._build_payload(url))
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise ScrapeError(f"HTTP {e.response.status_code} from provider for {url}") from e
        except httpx.HTTPError as e:
            raise ScrapeError(f"Request to provider failed for {url}: {e}") from e
        except ValueError as e:
            raise ScrapeError(f"Provider returned invalid JSON for {url}") from e

        if not isinstance(body, dict) or not body.get("success", False):
            error = body.get("error") if isinstance(body, dict) else None
            raise ScrapeError(f"Provider could not scrape {url}: {error or 'unknown error'}")

        data = body.get("data") or {}
        markdown = data.get("markdown")
        if markdown:
            return markdown

        html = data.get("html") or data.get("rawHtml")
        if html:
            logger.debug(f"No markdown for {url}, rendering HTML locally")
            return html_to_text(html)

        return ""
