# ABOUTME: Generation pipeline: render → extract → infer → generate → store → bundle
# ABOUTME: Emits progress events as it advances and finishes with exactly one success or error event

import asyncio
import base64
from collections.abc import AsyncIterator, Callable
from urllib.parse import urlparse

from scrape2api.codegen import EndpointInfo, bundle, coerce_record, generate_artifacts, infer_schema
from scrape2api.config import Config, get_config
from scrape2api.core.errors import InternalError, InvalidUrlError, MissingSelectorsError, Scrape2APIError
from scrape2api.core.models import (
    ErrorEvent,
    GeneratedFiles,
    GenerateRequest,
    GenerationOutcome,
    GenerationResult,
    HtmlChunkEvent,
    HtmlEndEvent,
    HtmlStartEvent,
    ProgressEvent,
    StreamEvent,
    SuccessEvent,
)
from scrape2api.core.refresh import build_refresh_url
from scrape2api.extraction.base import ExtractedRecord, PageRenderer, SelectorRule, parse_rules
from scrape2api.extraction.render.html import chunk_html
from scrape2api.extraction.selectors import extract
from scrape2api.persistence import Store, generate_slug
from scrape2api.utils.logging import get_logger, with_pipeline_context

Emit = Callable[[StreamEvent], None]

_STREAM_END = object()


def validate_url(url: str | None) -> str:
    """Reject missing or non-http(s) URLs before any network call."""
    if not url:
        raise InvalidUrlError("Missing required field: url")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidUrlError()
    return url


def validate_request(request: GenerateRequest) -> list[SelectorRule]:
    """Validate a generate request up front; returns parsed rules (empty for previews)."""
    validate_url(request.url)
    if request.is_preview:
        return []
    if not request.selectors:
        raise MissingSelectorsError()
    return parse_rules(request.selectors)


def is_empty_record(record: ExtractedRecord) -> bool:
    return all(value in (None, []) for value in record.values())


class GenerationPipeline:
    """Runs one linear generate or preview flow per request.

    Concurrent requests for the same URL are independent and each gets its own slug.
    """

    def __init__(self, renderer: PageRenderer, store: Store, config: Config | None = None):
        self.renderer = renderer
        self.store = store
        self.config = config or get_config()
        self.logger = get_logger(__name__)
        self._tasks: set[asyncio.Task] = set()

    def resolve_base_url(self, request_base_url: str) -> str:
        return (self.config.public_base_url or request_base_url).rstrip("/")

    async def preview(self, url: str, emit: Emit) -> None:
        """Render a page and stream its HTML in chunks."""
        emit(ProgressEvent(message="🚀 Starting page crawl..."))
        page = await self.renderer.render(url, on_progress=lambda message: emit(ProgressEvent(message=message)))
        emit(ProgressEvent(message="✅ Page loaded successfully!"))

        chunks = chunk_html(page.html, self.config.html_chunk_size)
        emit(HtmlStartEvent(total_chunks=len(chunks)))
        for index, chunk in enumerate(chunks):
            emit(HtmlChunkEvent(chunk=chunk, chunk_index=index))
        emit(HtmlEndEvent(title=page.title))

    async def generate(
        self, url: str, rules: list[SelectorRule], base_url: str, emit: Emit, refresh_rate=None
    ) -> GenerationOutcome:
        """Run the full generation flow and emit the terminal success event."""
        def progress(message: str) -> None:
            emit(ProgressEvent(message=message))

        base_url = self.resolve_base_url(base_url)

        progress("🚀 Starting page crawl...")
        page = await self.renderer.render(url, on_progress=progress)
        title = page.title or "Scraped Data"

        slug = generate_slug(url)
        with with_pipeline_context("generate", slug=slug, url=url) as logger:
            progress("📊 Extracting data from page...")
            record = extract(page.html, rules)
            if is_empty_record(record):
                logger.warning("No data extracted", rules=len(rules))
                progress("⚠️ No data extracted - check your selectors")
            else:
                progress(f"✅ Extracted {len(record)} data fields")

            progress("🧬 Inferring schema...")
            fields = infer_schema(rules, record)
            data = coerce_record(fields, record)

            progress("🔧 Generating API files...")
            endpoint = EndpointInfo(slug=slug, url=url, title=title, base_url=base_url)
            artifacts = generate_artifacts(fields, endpoint, data)

            progress("💾 Caching data...")
            await self.store.set(slug, data, url)

            progress("📦 Creating download bundle...")
            archive = bundle(
                slug, title, artifacts, data, page_html=page.html, endpoint_url=endpoint.endpoint_url
            )

            result = GenerationResult(
                slug=slug,
                endpoint_url=endpoint.endpoint_url,
                sample_data=data,
                download_url="data:application/zip;base64," + base64.b64encode(archive).decode("ascii"),
                refresh_url=build_refresh_url(base_url, slug, self.config.refresh_secret) if refresh_rate else None,
                files=GeneratedFiles(openapi=artifacts.openapi, sdk=artifacts.sdk, postman=artifacts.postman),
            )

            progress("🎉 API generation complete!")
            emit(SuccessEvent(data=result))
            logger.info("Generation complete", fields=len(fields), archive_bytes=len(archive))

        return GenerationOutcome(result=result, title=title, fields=fields, artifacts=artifacts, archive=archive)

    async def run(self, request: GenerateRequest, base_url: str, emit: Emit) -> None:
        """Run a request to completion, converting any failure into one error event."""
        try:
            rules = validate_request(request)
            if request.is_preview:
                await self.preview(request.url, emit)
            else:
                await self.generate(request.url, rules, base_url, emit, refresh_rate=request.refresh_rate)
        except Scrape2APIError as e:
            self.logger.error("Generation failed", url=request.url, error=e.message, error_type=type(e).__name__)
            emit(ErrorEvent(error=e.message))
        except Exception as e:
            self.logger.error(
                "Unexpected generation failure", url=request.url, error=str(e), error_type=type(e).__name__
            )
            emit(ErrorEvent(error=InternalError(str(e) or type(e).__name__).message))

    async def stream(self, request: GenerateRequest, base_url: str) -> AsyncIterator[StreamEvent]:
        """Run a request in a background task and yield its events.

        The task is not tied to the consumer: if the caller stops iterating, the run
        still completes server-side.
        """
        queue: asyncio.Queue = asyncio.Queue()

        async def _run():
            try:
                await self.run(request, base_url, queue.put_nowait)
            finally:
                queue.put_nowait(_STREAM_END)

        task = asyncio.create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        while True:
            event = await queue.get()
            if event is _STREAM_END:
                return
            yield event
