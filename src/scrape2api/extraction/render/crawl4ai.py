# ABOUTME: Crawl4AI-based page renderer
# ABOUTME: Drives a headless browser to fully-rendered HTML with bounded navigation retries

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from scrape2api.config import get_config
from scrape2api.core.errors import RendererError
from scrape2api.extraction.base import ProgressCallback, RenderedPage
from scrape2api.extraction.render.html import absolutize_urls
from scrape2api.utils.logging import get_logger, log_api_call, suppress_library_output
from scrape2api.utils.retry import NavigationError, with_navigation_retry


class Crawl4AIRenderer:
    """Page renderer using a crawl4ai browser session."""

    def __init__(
        self,
        headless: bool | None = None,
        page_timeout_ms: int | None = None,
        retries: int | None = None,
        retry_delay: float | None = None,
        settle_delay: float | None = None,
    ):
        """Initialize the renderer.

        Args:
            headless: Whether to run the browser headless (defaults to config.headless)
            page_timeout_ms: Navigation timeout (defaults to config.navigation_timeout_ms)
            retries: Navigation retries after the first attempt
            retry_delay: Fixed delay between navigation attempts in seconds
            settle_delay: Wait after navigation before the HTML is captured
        """
        config = get_config()
        self.headless = config.headless if headless is None else headless
        self.page_timeout_ms = page_timeout_ms or config.navigation_timeout_ms
        self.retries = config.navigation_retries if retries is None else retries
        self.retry_delay = config.retry_delay_seconds if retry_delay is None else retry_delay
        self.settle_delay = config.settle_delay_seconds if settle_delay is None else settle_delay
        self.logger = get_logger(__name__)

        self.logger.info("Initialized Crawl4AI renderer", headless=self.headless, retries=self.retries)

    @log_api_call("crawl4ai")
    async def render(self, url: str, on_progress: ProgressCallback | None = None) -> RenderedPage:
        notify = on_progress or (lambda message: None)

        notify("🚀 Launching browser session...")
        browser_cfg = BrowserConfig(headless=self.headless)
        run_cfg = CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            wait_until="networkidle",
            page_timeout=self.page_timeout_ms,
            delay_before_return_html=self.settle_delay,
        )

        try:
            with suppress_library_output():
                async with AsyncWebCrawler(config=browser_cfg) as crawler:
                    notify("📄 Navigating to target URL...")

                    async def navigate():
                        result = await crawler.arun(url=url, config=run_cfg)
                        if not result or not result.success:
                            message = result.error_message if result else "No result returned"
                            raise NavigationError(message)
                        return result

                    result = await with_navigation_retry(
                        navigate,
                        retries=self.retries,
                        delay_seconds=self.retry_delay,
                        on_retry=lambda left: notify(f"⚠️ Navigation failed, retrying... ({left} attempts left)"),
                    )
        except NavigationError as e:
            self.logger.error("Rendering failed after retries", url=url, error=str(e))
            raise RendererError(f"Failed to render {url}: {e}") from e
        except Exception as e:
            self.logger.error("Unexpected error during rendering", url=url, error=str(e), error_type=type(e).__name__)
            raise RendererError(f"Unexpected error during rendering: {e}") from e

        metadata = result.metadata or {}
        html = absolutize_urls(result.html or "", url)

        self.logger.debug("Page rendered", url=url, html_length=len(html))
        notify("✅ Page scraped successfully!")

        return RenderedPage(url=url, html=html, title=metadata.get("title") or "")
