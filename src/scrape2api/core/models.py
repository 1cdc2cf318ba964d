# ABOUTME: Request and stream event models for the generation pipeline
# ABOUTME: Events serialize with camelCase keys into server-sent-event frames

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scrape2api.codegen.base import GeneratedArtifacts
from scrape2api.codegen.schema import FieldSchema
from scrape2api.extraction.base import DataRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class GenerateRequest(CamelModel):
    """Body of POST /api/generate."""

    url: str | None = None
    selectors: list[dict[str, Any]] | None = None
    refresh_rate: int | str | None = None
    mode: Literal["preview", "generate"] | None = None

    @property
    def is_preview(self) -> bool:
        return self.mode == "preview"


class ProgressEvent(CamelModel):
    type: Literal["progress"] = "progress"
    message: str


class HtmlStartEvent(CamelModel):
    type: Literal["html_start"] = "html_start"
    total_chunks: int


class HtmlChunkEvent(CamelModel):
    type: Literal["html_chunk"] = "html_chunk"
    chunk: str
    chunk_index: int


class HtmlEndEvent(CamelModel):
    type: Literal["html_end"] = "html_end"
    title: str


class GeneratedFiles(CamelModel):
    openapi: str
    sdk: str
    postman: str


class GenerationResult(CamelModel):
    """Payload of the terminal success event."""

    slug: str
    endpoint_url: str
    sample_data: DataRecord
    download_url: str
    refresh_url: str | None = None
    files: GeneratedFiles


class SuccessEvent(CamelModel):
    type: Literal["success"] = "success"
    data: GenerationResult


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = ProgressEvent | HtmlStartEvent | HtmlChunkEvent | HtmlEndEvent | SuccessEvent | ErrorEvent


def format_sse(event: StreamEvent) -> str:
    """Encode an event as one server-sent-event frame."""
    return f"data: {json.dumps(event.to_payload())}\n\n"


class GenerationOutcome(BaseModel):
    """Everything a generation run produced, for local callers such as the CLI."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    result: GenerationResult
    title: str
    fields: list[FieldSchema] = Field(default_factory=list)
    artifacts: GeneratedArtifacts
    archive: bytes
