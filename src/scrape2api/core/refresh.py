# ABOUTME: Refresh gate: deterministic per-slug tokens and rate-limited refresh decisions
# ABOUTME: Selector rules are not retained with cached entries, so stale entries cannot be re-extracted

import hashlib
import hmac
from collections.abc import Callable
from datetime import datetime, timedelta
from urllib.parse import urlencode

from pydantic import BaseModel

from scrape2api.core.errors import DataNotFoundError, InvalidRefreshTokenError, RefreshUnsupportedError
from scrape2api.persistence import CacheEntry, Store
from scrape2api.persistence.models import utcnow
from scrape2api.utils.logging import get_logger

DEFAULT_COOLDOWN = timedelta(hours=1)


def generate_refresh_token(slug: str, secret: str) -> str:
    """Derive the refresh token for a slug. Pure: equal inputs give equal tokens."""
    return hmac.new(secret.encode(), slug.encode(), hashlib.sha256).hexdigest()


def verify_refresh_token(slug: str, token: str, secret: str) -> bool:
    # bytes, since compare_digest rejects non-ASCII str
    return hmac.compare_digest(generate_refresh_token(slug, secret).encode(), token.encode())


def build_refresh_url(base_url: str, slug: str, secret: str) -> str:
    query = urlencode({"slug": slug, "token": generate_refresh_token(slug, secret)})
    return f"{base_url.rstrip('/')}/api/refresh?{query}"


class StaleEntryError(RefreshUnsupportedError):
    """Refresh requested for an entry past its cooldown; carries the current data."""

    def __init__(self, entry: CacheEntry):
        super().__init__("Please regenerate the API from the main page to get fresh data")
        self.entry = entry

    def to_payload(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "currentData": self.entry.data,
            "lastUpdated": self.entry.last_updated.isoformat(),
        }


class FreshRefreshResult(BaseModel):
    """Outcome of a refresh request inside the cooldown window."""

    message: str = "Data is still fresh, no refresh needed"
    data: dict
    last_updated: datetime
    next_refresh_available: datetime

    def to_payload(self) -> dict:
        return {
            "message": self.message,
            "data": self.data,
            "lastUpdated": self.last_updated.isoformat(),
            "nextRefreshAvailable": self.next_refresh_available.isoformat(),
        }


class RefreshGate:
    """Authorizes and rate-limits manual refresh requests."""

    def __init__(
        self,
        store: Store,
        secret: str,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.secret = secret
        self.cooldown = cooldown
        self.clock = clock
        self.logger = get_logger(__name__)

    async def refresh(self, slug: str, token: str) -> FreshRefreshResult:
        """Handle a refresh request.

        Token check runs before any store lookup.

        Raises:
            InvalidRefreshTokenError: Token does not match the slug
            DataNotFoundError: Slug is absent or expired
            StaleEntryError: Entry is past the cooldown and cannot be re-extracted
        """
        if not verify_refresh_token(slug, token, self.secret):
            self.logger.warning("Rejected refresh token", slug=slug)
            raise InvalidRefreshTokenError()

        entry = await self.store.get(slug)
        if entry is None:
            raise DataNotFoundError("Data not found for slug")

        if self.clock() - entry.last_updated < self.cooldown:
            return FreshRefreshResult(
                data=entry.data,
                last_updated=entry.last_updated,
                next_refresh_available=entry.last_updated + self.cooldown,
            )

        self.logger.info("Refresh unavailable for stale entry", slug=slug)
        raise StaleEntryError(entry)
