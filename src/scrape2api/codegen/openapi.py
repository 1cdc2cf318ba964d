# ABOUTME: OpenAPI 3.0 document generator for a generated data endpoint
# ABOUTME: Builds the response schema field-by-field from the shared FieldSchema list

import json
from typing import Any

from scrape2api.codegen.base import EndpointInfo, alnum_slug
from scrape2api.codegen.schema import FieldSchema, data_json_schema


def build_openapi(fields: list[FieldSchema], endpoint: EndpointInfo) -> dict[str, Any]:
    """Build the OpenAPI document as a dict."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": f"{endpoint.title} API",
            "version": "1.0.0",
            "description": f"Auto-generated API for scraping data from {endpoint.url}",
        },
        "servers": [{"url": endpoint.base, "description": "Production server"}],
        "paths": {
            endpoint.path: {
                "get": {
                    "summary": f"Get data from {endpoint.title}",
                    "description": f"Retrieve scraped data from {endpoint.url}",
                    "operationId": f"getData{alnum_slug(endpoint.slug)}",
                    "tags": ["Data"],
                    "responses": {
                        "200": {
                            "description": "Successful response",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "data": data_json_schema(fields),
                                            "meta": {"$ref": "#/components/schemas/Meta"},
                                        },
                                        "required": ["data", "meta"],
                                    }
                                }
                            },
                        },
                        "404": {
                            "description": "Data not found",
                            "content": {
                                "application/json": {"schema": {"$ref": "#/components/schemas/Error"}}
                            },
                        },
                    },
                }
            }
        },
        "components": {
            "schemas": {
                "Meta": {
                    "type": "object",
                    "properties": {
                        "url": {"type": "string", "format": "uri"},
                        "lastUpdated": {"type": "string", "format": "date-time"},
                        "slug": {"type": "string"},
                        "cacheAge": {"type": "integer", "description": "Milliseconds since the data was cached"},
                        "generatedAt": {"type": "string", "format": "date-time"},
                    },
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "string"},
                        "message": {"type": "string"},
                    },
                },
            }
        },
    }


def render_openapi(fields: list[FieldSchema], endpoint: EndpointInfo) -> str:
    return json.dumps(build_openapi(fields, endpoint), indent=2)
