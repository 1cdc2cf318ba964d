# ABOUTME: Schema inference and API artifact generation
# ABOUTME: Pipeline Stage 2: rules + sample record → FieldSchema → OpenAPI, SDKs, Postman collection, bundle

"""
Codegen Layer: Describe an extracted record as an API

This layer handles:
- Deterministic schema inference from selector rules and a sample record
- Rendering OpenAPI, TypeScript/Python SDK and Postman documents from that one schema
- Packaging everything into a downloadable archive

Data Flow: extraction/ record → FieldSchema list → artifacts → core/ pipeline
"""

from scrape2api.codegen.base import EndpointInfo, GeneratedArtifacts
from scrape2api.codegen.bundle import bundle
from scrape2api.codegen.openapi import render_openapi
from scrape2api.codegen.postman import render_postman_collection
from scrape2api.codegen.schema import FieldSchema, FieldType, coerce_record, infer_schema
from scrape2api.codegen.sdk import render_python_sdk, render_typescript_sdk
from scrape2api.extraction.base import DataRecord


def generate_artifacts(
    fields: list[FieldSchema], endpoint: EndpointInfo, sample: DataRecord
) -> GeneratedArtifacts:
    """Render every artifact from the same field schema."""
    return GeneratedArtifacts(
        openapi=render_openapi(fields, endpoint),
        sdk=render_typescript_sdk(fields, endpoint),
        postman=render_postman_collection(fields, endpoint, sample),
        python_sdk=render_python_sdk(fields, endpoint),
    )


__all__ = [
    "EndpointInfo",
    "FieldSchema",
    "FieldType",
    "GeneratedArtifacts",
    "bundle",
    "coerce_record",
    "generate_artifacts",
    "infer_schema",
]
