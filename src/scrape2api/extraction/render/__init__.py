# ABOUTME: Page renderers: browser-backed (crawl4ai) and static (httpx)
# ABOUTME: create_renderer picks the implementation named in the configuration

from scrape2api.config import get_config
from scrape2api.extraction.base import PageRenderer


def create_renderer(kind: str | None = None) -> PageRenderer:
    """Create the configured page renderer."""
    kind = kind or get_config().renderer
    if kind == "http":
        from scrape2api.extraction.render.http import HttpRenderer

        return HttpRenderer()
    if kind == "browser":
        from scrape2api.extraction.render.crawl4ai import Crawl4AIRenderer

        return Crawl4AIRenderer()
    raise ValueError(f"Unknown renderer: {kind}")


__all__ = ["create_renderer"]
