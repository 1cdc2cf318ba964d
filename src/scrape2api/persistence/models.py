# ABOUTME: Cache entry model and its SQLModel table form
# ABOUTME: CacheEntry is replaced wholesale on every set; the durable record shape is {json, lastUpdated, url, slug}

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict
from sqlmodel import JSON, Column, Field, SQLModel

from scrape2api.extraction.base import DataRecord

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utcnow() -> datetime:
    """Returns the current UTC timestamp."""

    return datetime.now(UTC)


def to_epoch_ms(moment: datetime) -> int:
    return (moment.astimezone(UTC) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(value: int | float) -> datetime:
    return EPOCH + timedelta(milliseconds=value)


class CacheEntry(BaseModel):
    """One cached extraction result addressed by its slug."""

    model_config = ConfigDict(frozen=True)

    slug: str
    data: DataRecord
    url: str
    last_updated: datetime

    def age_ms(self, now: datetime) -> int:
        return to_epoch_ms(now) - to_epoch_ms(self.last_updated)

    def to_record(self) -> dict[str, Any]:
        return {
            "json": self.data,
            "lastUpdated": to_epoch_ms(self.last_updated),
            "url": self.url,
            "slug": self.slug,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> CacheEntry:
        return cls(
            slug=record["slug"],
            data=record["json"],
            url=record["url"],
            last_updated=from_epoch_ms(record["lastUpdated"]),
        )


class CacheRecord(SQLModel, table=True):
    """Durable row for a cache entry in the database backend."""

    __tablename__ = "cache_entry"  # type: ignore[assignment]

    slug: str = Field(primary_key=True, description="Unique endpoint slug")
    data_json: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON), description="Extracted record served by the endpoint"
    )
    url: str = Field(description="Page the record was extracted from")
    last_updated_ms: int = Field(description="Epoch milliseconds of the last set")

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> CacheRecord:
        record = entry.to_record()
        return cls(slug=entry.slug, data_json=record["json"], url=entry.url, last_updated_ms=record["lastUpdated"])

    def to_entry(self) -> CacheEntry:
        return CacheEntry.from_record(
            {"json": self.data_json, "lastUpdated": self.last_updated_ms, "url": self.url, "slug": self.slug}
        )
