# ABOUTME: Tests for the slug store: slug shape, TTL expiry, idempotent reads and the sweep task
# ABOUTME: Uses an in-memory backend and an injectable clock so time can be advanced deterministically

import asyncio
import re
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from scrape2api.persistence import MemoryBackend, Store, generate_slug
from scrape2api.persistence.store import to_base36

SLUG_PATTERN = re.compile(r"^example-com-page-[0-9a-z]+-[0-9a-z]{4}$")


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, tzinfo=UTC))


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest_asyncio.fixture
async def store(backend, clock) -> Store:
    store = Store(backend, clock=clock)
    await store.load()
    yield store
    await store.close()


class TestGenerateSlug:
    """Test slug generation."""

    def test_slug_shape(self):
        slug = generate_slug("https://example.com/page")
        assert SLUG_PATTERN.match(slug), slug

    def test_timestamp_component(self):
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        slug = generate_slug("http://example.com/page", now=moment)
        assert slug.split("-")[-2] == to_base36(int(moment.timestamp() * 1000))

    def test_same_url_gives_different_slugs(self):
        assert generate_slug("https://example.com/page") != generate_slug("https://example.com/page")

    def test_long_url_is_bounded(self):
        slug = generate_slug("https://example.com/" + "a" * 500)
        url_part = slug.rsplit("-", 2)[0]
        assert len(url_part) == 30
        assert len(slug) <= 30 + 1 + 11 + 1 + 4

    def test_only_url_safe_characters(self):
        slug = generate_slug("https://exämple.com/a b?c=d&e#f")
        assert re.fullmatch(r"[A-Za-z0-9-]+", slug)

    @pytest.mark.parametrize("value,expected", [(0, "0"), (35, "z"), (36, "10"), (1295, "zz")])
    def test_base36(self, value, expected):
        assert to_base36(value) == expected


class TestStoreTtl:
    """Test lazy TTL expiration."""

    @pytest.mark.asyncio
    async def test_entry_readable_before_ttl(self, store, clock):
        await store.set("s1", {"title": "Hello"}, "https://example.com")
        clock.advance(timedelta(days=7) - timedelta(milliseconds=1))

        entry = await store.get("s1")
        assert entry is not None
        assert entry.data == {"title": "Hello"}

    @pytest.mark.asyncio
    async def test_entry_expires_at_ttl(self, store, clock):
        await store.set("s1", {"title": "Hello"}, "https://example.com")
        clock.advance(timedelta(days=7))

        assert await store.get("s1") is None
        assert not store.has("s1")

    @pytest.mark.asyncio
    async def test_expired_read_persists_removal(self, store, clock, backend):
        await store.set("s1", {"title": "Hello"}, "https://example.com")
        clock.advance(timedelta(days=8))

        await store.get("s1")
        assert backend.snapshot == {}

    @pytest.mark.asyncio
    async def test_custom_ttl(self, backend, clock):
        store = Store(backend, ttl=timedelta(minutes=5), clock=clock)
        await store.set("s1", {}, "https://example.com")
        clock.advance(timedelta(minutes=5))
        assert await store.get("s1") is None


class TestStoreOperations:
    """Test store reads and writes."""

    @pytest.mark.asyncio
    async def test_get_unknown_is_none(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_get_does_not_touch_last_updated(self, store, clock):
        written = await store.set("s1", {"a": "1"}, "https://example.com")
        clock.advance(timedelta(hours=3))

        first = await store.get("s1")
        second = await store.get("s1")
        assert first.last_updated == second.last_updated == written.last_updated

    @pytest.mark.asyncio
    async def test_set_replaces_entry(self, store, clock):
        await store.set("s1", {"a": "1"}, "https://example.com")
        clock.advance(timedelta(minutes=1))
        await store.set("s1", {"a": "2"}, "https://example.com")

        entry = await store.get("s1")
        assert entry.data == {"a": "2"}
        assert entry.last_updated == clock.now

    @pytest.mark.asyncio
    async def test_set_without_clock_advance_still_moves_last_updated(self, store):
        first = await store.set("s1", {"a": "1"}, "https://example.com")
        second = await store.set("s1", {"a": "2"}, "https://example.com")
        assert second.last_updated > first.last_updated

    @pytest.mark.asyncio
    async def test_sub_millisecond_rewrite_survives_reload(self, backend, clock):
        clock.now = datetime(2024, 1, 1, 0, 0, 0, 400, tzinfo=UTC)
        store = Store(backend, clock=clock)
        await store.set("s1", {"a": "1"}, "https://example.com")
        first_ms = backend.snapshot["s1"]["lastUpdated"]

        clock.advance(timedelta(microseconds=300))
        second = await store.set("s1", {"a": "2"}, "https://example.com")

        assert backend.snapshot["s1"]["lastUpdated"] == first_ms + 1
        reloaded = Store(backend, clock=clock)
        await reloaded.load()
        assert (await reloaded.get("s1")).last_updated == second.last_updated

    @pytest.mark.asyncio
    async def test_every_mutation_is_written_through(self, store, backend):
        await store.set("s1", {"a": "1"}, "https://example.com")
        await store.set("s2", {"a": "2"}, "https://example.com")
        await store.delete("s1")

        assert backend.save_count == 3
        assert list(backend.snapshot) == ["s2"]
        assert backend.snapshot["s2"]["json"] == {"a": "2"}

    @pytest.mark.asyncio
    async def test_list_size_clear(self, store):
        await store.set("s1", {}, "https://a.example")
        await store.set("s2", {}, "https://b.example")

        assert store.size() == 2
        assert {entry.slug for entry in store.list()} == {"s1", "s2"}

        await store.clear()
        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, store):
        await store.set("s1", {}, "https://a.example")
        assert await store.delete("s1") is True
        assert await store.delete("s1") is False

    @pytest.mark.asyncio
    async def test_reload_from_backend(self, backend, clock):
        writer = Store(backend, clock=clock)
        await writer.set("s1", {"items": ["a", "b"]}, "https://example.com")

        reader = Store(backend, clock=clock)
        assert await reader.load() == 1
        entry = await reader.get("s1")
        assert entry.data == {"items": ["a", "b"]}
        assert entry.url == "https://example.com"

    @pytest.mark.asyncio
    async def test_persist_failure_is_logged_not_raised(self, clock):
        class BrokenBackend(MemoryBackend):
            async def save(self, entries):
                raise OSError("disk full")

        store = Store(BrokenBackend(), clock=clock)
        entry = await store.set("s1", {}, "https://example.com")
        assert entry.slug == "s1"
        assert store.has("s1")


class TestStoreSweep:
    """Test bulk cleanup and the background sweep."""

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_expired(self, store, clock):
        await store.set("old", {}, "https://example.com")
        clock.advance(timedelta(days=6))
        await store.set("new", {}, "https://example.com")
        clock.advance(timedelta(days=2))

        assert await store.cleanup() == 1
        assert not store.has("old")
        assert store.has("new")

    @pytest.mark.asyncio
    async def test_sweeper_runs_cleanup(self, store, clock):
        await store.set("old", {}, "https://example.com")
        clock.advance(timedelta(days=8))

        store.start_sweeper(timedelta(milliseconds=10))
        for _ in range(50):
            if not store.has("old"):
                break
            await asyncio.sleep(0.01)

        assert not store.has("old")
        await store.stop_sweeper()

    @pytest.mark.asyncio
    async def test_start_sweeper_is_idempotent(self, store):
        first = store.start_sweeper(timedelta(hours=1))
        second = store.start_sweeper(timedelta(hours=1))
        assert first is second

        await store.stop_sweeper()
        assert first.cancelled()
