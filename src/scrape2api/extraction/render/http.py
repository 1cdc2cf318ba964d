# ABOUTME: Static httpx-based page renderer for pages that do not need JavaScript
# ABOUTME: Shares the navigation retry policy and URL absolutisation with the browser renderer

import httpx

from scrape2api.config import get_config
from scrape2api.core.errors import RendererError
from scrape2api.extraction.base import ProgressCallback, RenderedPage
from scrape2api.extraction.render.html import absolutize_urls, extract_title
from scrape2api.utils.logging import get_logger, log_api_call
from scrape2api.utils.retry import NavigationError, with_navigation_retry


class HttpRenderer:
    """Renderer that fetches raw HTML over HTTP without executing scripts."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        retries: int | None = None,
        retry_delay: float | None = None,
    ):
        config = get_config()
        self.http_client = client or httpx.AsyncClient(  # Allow for dependency injection
            headers={"User-Agent": "scrape2api/1.0"},
            timeout=config.navigation_timeout_ms / 1000,
        )
        self.retries = config.navigation_retries if retries is None else retries
        self.retry_delay = config.retry_delay_seconds if retry_delay is None else retry_delay
        self.logger = get_logger(__name__)

    async def _fetch(self, url: str) -> httpx.Response:
        try:
            response = await self.http_client.get(url, follow_redirects=True)
        except httpx.TransportError as e:
            raise NavigationError(str(e)) from e
        if response.status_code >= 500:
            raise NavigationError(f"Server responded with {response.status_code}")
        return response

    @log_api_call("http")
    async def render(self, url: str, on_progress: ProgressCallback | None = None) -> RenderedPage:
        notify = on_progress or (lambda message: None)
        notify("📄 Fetching target URL...")

        try:
            response = await with_navigation_retry(
                lambda: self._fetch(url),
                retries=self.retries,
                delay_seconds=self.retry_delay,
                on_retry=lambda left: notify(f"⚠️ Navigation failed, retrying... ({left} attempts left)"),
            )
        except NavigationError as e:
            self.logger.error("Fetching failed after retries", url=url, error=str(e))
            raise RendererError(f"Failed to render {url}: {e}") from e

        if response.status_code >= 400:
            raise RendererError(f"Failed to render {url}: HTTP {response.status_code}")

        html = absolutize_urls(response.text, str(response.url))
        notify("✅ Page scraped successfully!")
        return RenderedPage(url=url, html=html, title=extract_title(html))

    async def close(self) -> None:
        await self.http_client.aclose()
