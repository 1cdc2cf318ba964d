# ABOUTME: Postman Collection v2.1 generator for a generated endpoint
# ABOUTME: Embeds status/response-time/field assertions and a sample response from the cached record

import json
from typing import Any

from scrape2api.codegen.base import EndpointInfo
from scrape2api.codegen.schema import FieldSchema, data_json_schema
from scrape2api.extraction.base import DataRecord

COLLECTION_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
RESPONSE_TIME_LIMIT_MS = 5000


def _test_script(fields: list[FieldSchema]) -> list[str]:
    lines = [
        'pm.test("Status code is 200", function () {',
        "    pm.response.to.have.status(200);",
        "});",
        "",
        f'pm.test("Response time is below {RESPONSE_TIME_LIMIT_MS}ms", function () {{',
        f"    pm.expect(pm.response.responseTime).to.be.below({RESPONSE_TIME_LIMIT_MS});",
        "});",
        "",
        'pm.test("Response matches data schema", function () {',
        '    const schema = JSON.parse(pm.collectionVariables.get("dataSchema"));',
        "    pm.expect(pm.response.json().data).to.be.jsonSchema(schema);",
        "});",
    ]
    for field in fields:
        if field.required:
            lines += [
                "",
                f"pm.test({json.dumps(f'Field {field.name} is present')}, function () {{",
                f"    pm.expect(pm.response.json().data).to.have.property({json.dumps(field.name)});",
                "});",
            ]
    return lines


def build_postman_collection(
    fields: list[FieldSchema], endpoint: EndpointInfo, sample: DataRecord
) -> dict[str, Any]:
    """Build the collection as a dict."""
    request = {
        "method": "GET",
        "header": [{"key": "Accept", "value": "application/json"}],
        "url": {
            "raw": f"{{{{baseUrl}}}}{endpoint.path}",
            "host": ["{{baseUrl}}"],
            "path": ["api", "data", endpoint.slug],
        },
        "description": f"Retrieve scraped data from {endpoint.url}",
    }
    sample_body = {"data": sample, "meta": {"url": endpoint.url, "slug": endpoint.slug}}

    return {
        "info": {
            "name": f"{endpoint.title} API",
            "description": f"Auto-generated Postman collection for scraping {endpoint.url}",
            "schema": COLLECTION_SCHEMA,
        },
        "item": [
            {
                "name": "Get Data",
                "event": [{"listen": "test", "script": {"type": "text/javascript", "exec": _test_script(fields)}}],
                "request": request,
                "response": [
                    {
                        "name": "Sample response",
                        "originalRequest": request,
                        "status": "OK",
                        "code": 200,
                        "_postman_previewlanguage": "json",
                        "header": [{"key": "Content-Type", "value": "application/json"}],
                        "body": json.dumps(sample_body, indent=2),
                    }
                ],
            }
        ],
        "variable": [
            {"key": "baseUrl", "value": endpoint.base, "type": "string"},
            {"key": "dataSchema", "value": json.dumps(data_json_schema(fields)), "type": "string"},
        ],
    }


def render_postman_collection(fields: list[FieldSchema], endpoint: EndpointInfo, sample: DataRecord) -> str:
    return json.dumps(build_postman_collection(fields, endpoint, sample), indent=2)
