# ABOUTME: Slug-addressed store of extracted records with TTL expiry and write-through persistence
# ABOUTME: Expiry is enforced lazily on read and by an explicitly started background sweep

from __future__ import annotations

import asyncio
import contextlib
import re
import secrets
import string
from collections.abc import Callable
from datetime import datetime, timedelta

from scrape2api.extraction.base import DataRecord
from scrape2api.persistence.backends import PersistenceBackend
from scrape2api.persistence.models import CacheEntry, from_epoch_ms, to_epoch_ms, utcnow
from scrape2api.utils.logging import get_logger

DEFAULT_TTL = timedelta(days=7)
DEFAULT_SWEEP_INTERVAL = timedelta(hours=24)

SLUG_URL_LENGTH = 30
SLUG_RANDOM_LENGTH = 4
BASE36_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
        if value == 0:
            return "".join(reversed(digits))


def generate_slug(url: str, now: datetime | None = None) -> str:
    """Create a new slug for a URL.

    Shape: sanitized URL (max 30 chars), base36 epoch milliseconds and 4 random
    alphanumerics. Uniqueness comes from the time and random parts, so the same
    URL always gets a fresh slug.
    """
    clean_url = re.sub(r"[^a-zA-Z0-9]", "-", re.sub(r"^https?://", "", url))
    timestamp = to_base36(to_epoch_ms(now or utcnow()))
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(SLUG_RANDOM_LENGTH))
    return f"{clean_url[:SLUG_URL_LENGTH]}-{timestamp}-{random_part}"


class Store:
    """Cache of extracted records keyed by slug.

    Every mutation writes the full store through to the backend. The store assumes
    a single writer process and takes no locks.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.backend = backend
        self.ttl = ttl
        self.clock = clock
        self.logger = get_logger(__name__)
        self._entries: dict[str, CacheEntry] = {}
        self._sweeper: asyncio.Task | None = None

    async def load(self) -> int:
        """Load persisted entries, replacing anything held in memory."""
        self._entries = await self.backend.load()
        self.logger.info("Store loaded", entries=len(self._entries))
        return len(self._entries)

    async def _persist(self) -> None:
        try:
            await self.backend.save(self._entries)
        except Exception as e:
            self.logger.error("Failed to persist store", error=str(e), error_type=type(e).__name__)

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.last_updated >= self.ttl

    async def set(self, slug: str, data: DataRecord, url: str) -> CacheEntry:
        """Store a record under a slug, replacing any existing entry."""
        now = self.clock()
        previous = self._entries.get(slug)
        # persisted timestamps are whole milliseconds; a rewrite must move forward by at least one
        if previous and to_epoch_ms(now) <= to_epoch_ms(previous.last_updated):
            now = from_epoch_ms(to_epoch_ms(previous.last_updated) + 1)

        entry = CacheEntry(slug=slug, data=dict(data), url=url, last_updated=now)
        self._entries[slug] = entry
        await self._persist()
        self.logger.debug("Stored entry", slug=slug, url=url, fields=len(data))
        return entry

    async def get(self, slug: str) -> CacheEntry | None:
        """Return the entry for a slug, deleting and hiding it once it has expired."""
        entry = self._entries.get(slug)
        if entry is None:
            return None
        if self._is_expired(entry, self.clock()):
            self.logger.info("Entry expired on read", slug=slug)
            await self.delete(slug)
            return None
        return entry

    async def delete(self, slug: str) -> bool:
        existed = self._entries.pop(slug, None) is not None
        await self._persist()
        return existed

    async def clear(self) -> None:
        self._entries.clear()
        await self._persist()

    async def cleanup(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self.clock()
        expired = [slug for slug, entry in self._entries.items() if self._is_expired(entry, now)]
        for slug in expired:
            del self._entries[slug]
        if expired:
            await self._persist()
            self.logger.info("Expired entries removed", count=len(expired))
        return len(expired)

    def has(self, slug: str) -> bool:
        return slug in self._entries

    def list(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def size(self) -> int:
        return len(self._entries)

    # --- Background sweep ------------------------------------------------------------
    def start_sweeper(self, interval: timedelta = DEFAULT_SWEEP_INTERVAL) -> asyncio.Task:
        """Start the periodic expiration sweep on the running event loop."""
        if self._sweeper and not self._sweeper.done():
            return self._sweeper

        async def _sweep_forever():
            while True:
                await asyncio.sleep(interval.total_seconds())
                try:
                    await self.cleanup()
                except Exception as e:
                    self.logger.error("Sweep failed", error=str(e), error_type=type(e).__name__)

        self._sweeper = asyncio.create_task(_sweep_forever(), name="scrape2api-store-sweeper")
        self.logger.info("Store sweeper started", interval_seconds=interval.total_seconds())
        return self._sweeper

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def close(self) -> None:
        await self.stop_sweeper()
        await self.backend.close()


def create_store(config=None) -> Store:
    """Create the store described by the configuration (entries are not loaded yet)."""
    from scrape2api.config import get_config
    from scrape2api.persistence.backends import create_backend

    config = config or get_config()
    backend = create_backend(config.store_backend, path=config.store_path, database_url=config.database_url)
    return Store(backend, ttl=timedelta(seconds=config.cache_ttl_seconds))
