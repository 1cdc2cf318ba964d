# ABOUTME: Tests for the HTTP application using FastAPI's TestClient
# ABOUTME: Covers data reads with CORS/cache headers, refresh gating and the streamed generate endpoint

import asyncio
import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from scrape2api.config import Config
from scrape2api.core.refresh import generate_refresh_token
from scrape2api.extraction.base import RenderedPage
from scrape2api.persistence import MemoryBackend, Store
from scrape2api.persistence.models import utcnow
from scrape2api.server import create_app

SECRET = "s3cret"
PAGE_HTML = (
    "<html><head><title>Shop</title></head><body><h1>Hello</h1><li class='item'>A</li>"
    "<span class='p'>12.50</span><span class='s'>true</span></body></html>"
)


class FakeRenderer:
    async def render(self, url, on_progress=None):
        if on_progress:
            on_progress("📄 Navigating to target URL...")
        return RenderedPage(url=url, html=PAGE_HTML, title="Shop")


@pytest.fixture
def config() -> Config:
    return Config(refresh_secret=SECRET, response_max_age_seconds=300)


@pytest.fixture
def store() -> Store:
    store = Store(MemoryBackend())
    asyncio.run(store.set("shop-abc", {"title": "Hello", "items": ["A"]}, "https://example.com/shop"))
    return store


@pytest.fixture
def client(store, config):
    with TestClient(create_app(store=store, renderer=FakeRenderer(), config=config)) as client:
        yield client


def _sse_events(body: str) -> list[dict]:
    return [json.loads(frame[len("data: ") :]) for frame in body.split("\n\n") if frame.startswith("data: ")]


class TestDataEndpoint:
    """Test GET/OPTIONS /api/data/{slug}."""

    def test_returns_data_and_meta(self, client):
        response = client.get("/api/data/shop-abc")

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == {"title": "Hello", "items": ["A"]}
        meta = body["meta"]
        assert meta["url"] == "https://example.com/shop"
        assert meta["slug"] == "shop-abc"
        assert isinstance(meta["cacheAge"], int)
        assert meta["cacheAge"] >= 0
        assert "lastUpdated" in meta
        assert "generatedAt" in meta

    def test_cors_and_cache_headers(self, client):
        response = client.get("/api/data/shop-abc")

        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert response.headers["cache-control"] == "public, max-age=300"

    def test_unknown_slug_is_404(self, client):
        response = client.get("/api/data/unknown-slug")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Data not found",
            "message": "This API endpoint may have expired or never existed. Generate a new API at the main page.",
        }

    def test_expired_slug_is_404(self, config):
        store = Store(MemoryBackend(), clock=lambda: utcnow() - timedelta(days=8))
        asyncio.run(store.set("old", {"a": "1"}, "https://example.com"))
        store.clock = utcnow

        with TestClient(create_app(store=store, renderer=FakeRenderer(), config=config)) as client:
            assert client.get("/api/data/old").status_code == 404
        assert not store.has("old")

    def test_options_preflight(self, client):
        response = client.options("/api/data/shop-abc")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"


class TestRefreshEndpoint:
    """Test GET/POST /api/refresh."""

    def test_missing_parameters(self, client):
        assert client.get("/api/refresh").status_code == 400
        assert client.get("/api/refresh", params={"slug": "shop-abc"}).status_code == 400

    def test_bad_token_for_existing_fresh_slug(self, client):
        response = client.get("/api/refresh", params={"slug": "shop-abc", "token": "bad"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid refresh token"

    def test_non_ascii_token_is_401(self, client):
        response = client.get("/api/refresh", params={"slug": "shop-abc", "token": "é"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid refresh token"

    def test_bad_token_for_unknown_slug(self, client):
        response = client.get("/api/refresh", params={"slug": "ghost", "token": "bad"})
        assert response.status_code == 401

    def test_valid_token_for_unknown_slug(self, client):
        token = generate_refresh_token("ghost", SECRET)
        response = client.get("/api/refresh", params={"slug": "ghost", "token": token})
        assert response.status_code == 404

    def test_fresh_entry(self, client):
        token = generate_refresh_token("shop-abc", SECRET)
        response = client.get("/api/refresh", params={"slug": "shop-abc", "token": token})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Data is still fresh, no refresh needed"
        assert body["data"] == {"title": "Hello", "items": ["A"]}
        assert "nextRefreshAvailable" in body

    def test_stale_entry_is_501(self, config):
        store = Store(MemoryBackend(), clock=lambda: utcnow() - timedelta(hours=2))
        asyncio.run(store.set("stale", {"a": "1"}, "https://example.com"))

        with TestClient(create_app(store=store, renderer=FakeRenderer(), config=config)) as client:
            token = generate_refresh_token("stale", SECRET)
            response = client.get("/api/refresh", params={"slug": "stale", "token": token})

        assert response.status_code == 501
        body = response.json()
        assert body["error"] == "Automatic refresh not available"
        assert body["currentData"] == {"a": "1"}

    def test_post_not_allowed(self, client):
        assert client.post("/api/refresh").status_code == 405


class TestGenerateEndpoint:
    """Test the streamed generate endpoint."""

    def test_usage(self, client):
        body = client.get("/api/generate").json()
        assert body["method"] == "POST"

    def test_invalid_url_rejected_before_streaming(self, client):
        response = client.post("/api/generate", json={"url": "nope", "selectors": [{"selector": "h1", "name": "t"}]})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid URL provided"

    def test_missing_selectors(self, client):
        response = client.post("/api/generate", json={"url": "https://example.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing selectors for API generation"

    def test_wrongly_typed_selector_is_400(self, client):
        payload = {"url": "https://example.com", "selectors": [{"selector": 5, "name": "x"}]}
        response = client.post("/api/generate", json=payload)

        assert response.status_code == 400
        assert "#0" in response.json()["message"]

    def test_malformed_body(self, client):
        response = client.post("/api/generate", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_generate_stream(self, client, store):
        payload = {
            "url": "https://example.com/shop",
            "selectors": [
                {"id": "1", "selector": "h1", "name": "title", "attribute": "text", "multiple": False},
                {"id": "2", "selector": ".item", "name": "items", "attribute": "text", "multiple": True},
            ],
        }
        response = client.post("/api/generate", json=payload)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _sse_events(response.text)
        assert events[0]["type"] == "progress"
        assert events[-1]["type"] == "success"

        result = events[-1]["data"]
        assert result["sampleData"] == {"title": "Hello", "items": ["A"]}
        assert result["endpointUrl"] == f"http://testserver/api/data/{result['slug']}"
        assert result["downloadUrl"].startswith("data:application/zip;base64,")
        assert "refreshUrl" in result
        assert set(result["files"]) == {"openapi", "sdk", "postman"}

        data = client.get(f"/api/data/{result['slug']}").json()
        assert data["data"] == result["sampleData"]

    def test_served_data_matches_generated_types(self, client):
        payload = {
            "url": "https://example.com/shop",
            "selectors": [{"selector": ".p", "name": "price"}, {"selector": ".s", "name": "in_stock"}],
        }
        result = _sse_events(client.post("/api/generate", json=payload).text)[-1]["data"]

        data = client.get(f"/api/data/{result['slug']}").json()["data"]
        assert data == {"price": 12.5, "in_stock": True}

        collection = json.loads(result["files"]["postman"])
        schema = json.loads(next(v["value"] for v in collection["variable"] if v["key"] == "dataSchema"))
        assert schema["properties"]["price"]["type"] == "number"
        assert schema["properties"]["in_stock"]["type"] == "boolean"
        assert set(schema["required"]) == set(data)

    def test_preview_stream(self, client):
        response = client.post("/api/generate", json={"url": "https://example.com/shop", "mode": "preview"})

        events = _sse_events(response.text)
        types = [event["type"] for event in events]
        assert "html_start" in types
        assert types[-1] == "html_end"
        assert events[-1]["title"] == "Shop"
