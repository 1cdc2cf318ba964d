# ABOUTME: FastAPI application serving generation, data reads and refresh requests
# ABOUTME: The store sweep is started and stopped by the application lifespan

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import ValidationError

from scrape2api.config import Config, get_config
from scrape2api.core.errors import Scrape2APIError
from scrape2api.core.models import GenerateRequest, format_sse
from scrape2api.core.pipeline import GenerationPipeline, validate_request
from scrape2api.core.refresh import RefreshGate
from scrape2api.extraction.base import PageRenderer
from scrape2api.extraction.render import create_renderer
from scrape2api.persistence import Store, create_store
from scrape2api.persistence.models import to_epoch_ms, utcnow
from scrape2api.utils.logging import get_logger

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

NOT_FOUND_MESSAGE = (
    "This API endpoint may have expired or never existed. Generate a new API at the main page."
)

logger = get_logger(__name__)


def create_app(
    store: Store | None = None,
    renderer: PageRenderer | None = None,
    config: Config | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        store: Store to serve from; when omitted one is built from config and loaded at startup
        renderer: Page renderer for the generate endpoint (defaults to the configured one)
        config: Settings (defaults to the global configuration)
    """
    config = config or get_config()
    owns_store = store is None
    store = store or create_store(config)
    renderer = renderer or create_renderer(config.renderer)
    pipeline = GenerationPipeline(renderer, store, config)
    gate = RefreshGate(store, config.refresh_secret, cooldown=timedelta(seconds=config.refresh_cooldown_seconds))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_store:
            await store.load()
        store.start_sweeper(timedelta(seconds=config.sweep_interval_seconds))
        try:
            yield
        finally:
            close_renderer = getattr(renderer, "close", None)
            if close_renderer is not None:
                await close_renderer()
            if owns_store:
                await store.close()
            else:
                await store.stop_sweeper()

    app = FastAPI(title="scrape2api", lifespan=lifespan)
    app.state.store = store
    app.state.pipeline = pipeline
    app.state.gate = gate

    @app.exception_handler(Scrape2APIError)
    async def scrape2api_error_handler(request: Request, exc: Scrape2APIError):
        return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=CORS_HEADERS)

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled request error", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(
            {"error": "Internal server error", "message": "Failed to process request"},
            status_code=500,
            headers=CORS_HEADERS,
        )

    # --- Generation ------------------------------------------------------------------
    @app.get("/api/generate")
    async def generate_usage():
        return {
            "message": "Scrape2API Generate Endpoint",
            "method": "POST",
            "usage": "Send POST request with url and selectors, or mode='preview' with url",
        }

    @app.post("/api/generate")
    async def generate(request: Request):
        try:
            body = GenerateRequest.model_validate(await request.json())
        except (ValidationError, ValueError) as e:
            return JSONResponse({"error": "Invalid request body", "message": str(e)}, status_code=400)

        validate_request(body)
        base_url = f"{request.url.scheme}://{request.url.netloc}"

        async def event_stream():
            async for event in pipeline.stream(body, base_url):
                yield format_sse(event)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    # --- Data ------------------------------------------------------------------------
    @app.get("/api/data/{slug}")
    async def get_data(slug: str):
        entry = await store.get(slug)
        if entry is None:
            return JSONResponse(
                {"error": "Data not found", "message": NOT_FOUND_MESSAGE}, status_code=404, headers=CORS_HEADERS
            )

        now = utcnow()
        payload = {
            "data": entry.data,
            "meta": {
                "url": entry.url,
                "lastUpdated": entry.last_updated.isoformat(),
                "slug": entry.slug,
                "cacheAge": entry.age_ms(now),
                "generatedAt": now.isoformat(),
            },
        }
        headers = {**CORS_HEADERS, "Cache-Control": f"public, max-age={config.response_max_age_seconds}"}
        return JSONResponse(payload, headers=headers)

    @app.options("/api/data/{slug}")
    async def data_preflight(slug: str):
        return Response(status_code=200, headers=CORS_HEADERS)

    # --- Refresh ---------------------------------------------------------------------
    @app.get("/api/refresh")
    async def refresh(slug: str | None = None, token: str | None = None):
        if not slug or not token:
            return JSONResponse(
                {"error": "Missing required parameters", "message": "Both slug and token are required"},
                status_code=400,
            )
        result = await gate.refresh(slug, token)
        return JSONResponse(result.to_payload())

    @app.post("/api/refresh")
    async def refresh_wrong_method():
        return JSONResponse(
            {"error": "Method not allowed", "message": "Use GET method for refresh endpoint"}, status_code=405
        )

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "entries": store.size(), "time": to_epoch_ms(utcnow())}

    return app
