# ABOUTME: Durable persistence backends for the slug store
# ABOUTME: JSON file (default) and SQLModel database backends; both rewrite the full store on save

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from scrape2api.persistence.models import CacheEntry, CacheRecord
from scrape2api.utils.logging import get_logger


class PersistenceBackend(Protocol):
    """Durable storage for the complete set of cache entries."""

    async def load(self) -> dict[str, CacheEntry]:
        """Load every persisted entry keyed by slug."""
        ...

    async def save(self, entries: dict[str, CacheEntry]) -> None:
        """Replace the persisted state with the given entries."""
        ...

    async def close(self) -> None: ...


class MemoryBackend:
    """Non-durable backend holding the last saved snapshot in memory."""

    def __init__(self):
        self.snapshot: dict[str, dict] = {}
        self.save_count = 0

    async def load(self) -> dict[str, CacheEntry]:
        return {slug: CacheEntry.from_record(record) for slug, record in self.snapshot.items()}

    async def save(self, entries: dict[str, CacheEntry]) -> None:
        self.snapshot = {slug: entry.to_record() for slug, entry in entries.items()}
        self.save_count += 1

    async def close(self) -> None:
        pass


class JsonFileBackend:
    """Stores the whole cache as one JSON object {slug: {json, lastUpdated, url, slug}}."""

    def __init__(self, path: Path | str = ".cache.json"):
        self.path = Path(path)
        self.logger = get_logger(__name__)

    async def load(self) -> dict[str, CacheEntry]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return {slug: CacheEntry.from_record(record) for slug, record in raw.items()}
        except (OSError, ValueError, KeyError, TypeError) as e:
            self.logger.warning("Failed to load cache file, starting empty", path=str(self.path), error=str(e))
            return {}

    async def save(self, entries: dict[str, CacheEntry]) -> None:
        payload = json.dumps({slug: entry.to_record() for slug, entry in entries.items()}, indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file then rename so a crash never leaves a torn file
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def close(self) -> None:
        pass


class DatabaseBackend:
    """Stores entries as rows of the cache_entry table through async SQLModel sessions."""

    def __init__(self, database_url: str = "sqlite+aiosqlite:///./scrape2api.db"):
        self.database_url = database_url
        self.logger = get_logger(__name__)
        self.engine = create_async_engine(database_url, echo=False)
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def load(self) -> dict[str, CacheEntry]:
        await self.create_tables()
        async with self.async_session() as session:
            rows = (await session.execute(select(CacheRecord))).scalars().all()
        return {row.slug: row.to_entry() for row in rows}

    async def save(self, entries: dict[str, CacheEntry]) -> None:
        async with self.async_session() as session:
            await session.execute(delete(CacheRecord))
            session.add_all([CacheRecord.from_entry(entry) for entry in entries.values()])
            await session.commit()

    async def close(self) -> None:
        await self.engine.dispose()


def create_backend(kind: str, path: Path | str | None = None, database_url: str | None = None) -> PersistenceBackend:
    """Create a backend by name ("json", "database" or "memory")."""
    if kind == "json":
        return JsonFileBackend(path or ".cache.json")
    if kind == "database":
        return DatabaseBackend(database_url) if database_url else DatabaseBackend()
    if kind == "memory":
        return MemoryBackend()
    raise ValueError(f"Unknown store backend: {kind}")
