# ABOUTME: Endpoint metadata and artifact container shared by the generators
# ABOUTME: Naming helpers keep generated identifiers valid across target languages

import keyword
import re
from datetime import UTC, datetime

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Returns the current UTC timestamp."""

    return datetime.now(UTC)


class EndpointInfo(BaseModel):
    """Where a generated API lives and what it was scraped from."""

    slug: str
    url: str
    title: str = "Scraped Data"
    base_url: str
    generated_at: datetime = Field(default_factory=utcnow)

    @property
    def base(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def path(self) -> str:
        return f"/api/data/{self.slug}"

    @property
    def endpoint_url(self) -> str:
        return f"{self.base}{self.path}"


class GeneratedArtifacts(BaseModel):
    """Rendered API description artifacts for one endpoint."""

    openapi: str
    sdk: str
    postman: str
    python_sdk: str


def alnum_slug(slug: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", slug)


def class_prefix(slug: str) -> str:
    """PascalCase-ish class prefix derived from a slug, always a valid identifier."""
    name = alnum_slug(slug) or "Scraped"
    if name[0].isdigit():
        name = "Api" + name
    return name[0].upper() + name[1:]


def python_identifier(name: str) -> str:
    ident = re.sub(r"\W", "_", name)
    if not ident or ident[0].isdigit() or keyword.iskeyword(ident):
        ident = "_" + ident
    return ident


def unique_python_identifiers(names: list[str]) -> dict[str, str]:
    """Map field names to distinct identifiers; later collisions get a numeric suffix."""
    used: set[str] = set()
    idents: dict[str, str] = {}
    for name in names:
        base = ident = python_identifier(name)
        suffix = 2
        while ident in used:
            ident = f"{base}_{suffix}"
            suffix += 1
        used.add(ident)
        idents[name] = ident
    return idents
