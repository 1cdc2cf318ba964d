# ABOUTME: Typed client SDK generators (TypeScript and Python) for a generated endpoint
# ABOUTME: Field types and optionality come only from the shared FieldSchema list

import json
import re

from scrape2api.codegen.base import EndpointInfo, class_prefix, unique_python_identifiers
from scrape2api.codegen.schema import FieldSchema, FieldType

TS_TYPES = {
    FieldType.STRING: "string",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.ARRAY: "string[]",
}

PY_TYPES = {
    FieldType.STRING: "str",
    FieldType.NUMBER: "float",
    FieldType.BOOLEAN: "bool",
    FieldType.ARRAY: "list[str]",
}

_TS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _ts_property(name: str) -> str:
    return name if _TS_IDENTIFIER.match(name) else json.dumps(name)


def render_typescript_sdk(fields: list[FieldSchema], endpoint: EndpointInfo) -> str:
    """Render a TypeScript data interface plus a fetch-based client class."""
    class_name = f"{class_prefix(endpoint.slug)}Client"
    interface_fields = "\n".join(
        f"  {_ts_property(field.name)}{'' if field.required else '?'}: {TS_TYPES[field.type]};" for field in fields
    )
    first_field = fields[0].name if fields else "field"
    accessor = f".{first_field}" if _TS_IDENTIFIER.match(first_field) else f"[{json.dumps(first_field)}]"

    return f"""// Auto-generated TypeScript SDK for {endpoint.title}
// Source: {endpoint.url}
// Generated: {endpoint.generated_at.isoformat()}

export interface {class_name}Data {{
{interface_fields}
}}

export interface {class_name}Response {{
  data: {class_name}Data;
  meta: {{
    url: string;
    lastUpdated: string;
    slug: string;
    cacheAge: number;
    generatedAt: string;
  }};
}}

export class {class_name} {{
  private baseUrl: string;

  constructor(baseUrl: string = '{endpoint.base}') {{
    this.baseUrl = baseUrl.replace(/\\/$/, '');
  }}

  async getData(): Promise<{class_name}Response> {{
    const response = await fetch(`${{this.baseUrl}}{endpoint.path}`);

    if (!response.ok) {{
      throw new Error(`HTTP error! status: ${{response.status}}`);
    }}

    return response.json();
  }}
}}

// Usage example:
// const client = new {class_name}();
// const data = await client.getData();
// console.log(data.data{accessor});
"""


def render_python_sdk(fields: list[FieldSchema], endpoint: EndpointInfo) -> str:
    """Render a Python dataclass plus an httpx client for the endpoint."""
    class_name = class_prefix(endpoint.slug)
    # Required fields first so the dataclass has no default-before-non-default error
    idents = unique_python_identifiers([field.name for field in fields])
    ordered = sorted(fields, key=lambda field: not field.required)

    attributes = []
    loaders = []
    for field in ordered:
        ident = idents[field.name]
        type_name = PY_TYPES[field.type]
        if field.required:
            attributes.append(f"    {ident}: {type_name}")
            loaders.append(f"            {ident}=payload[{field.name!r}],")
        else:
            attributes.append(f"    {ident}: {type_name} | None = None")
            loaders.append(f"            {ident}=payload.get({field.name!r}),")

    body = "\n".join(attributes) or "    pass"
    load_args = "\n".join(loaders)

    return f'''"""Auto-generated Python SDK for {endpoint.title}.

Source: {endpoint.url}
Generated: {endpoint.generated_at.isoformat()}
"""

from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class {class_name}Data:
{body}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "{class_name}Data":
        return cls(
{load_args}
        )


class {class_name}Client:
    def __init__(self, base_url: str = {endpoint.base!r}, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client()

    def get_data(self) -> tuple[{class_name}Data, dict[str, Any]]:
        response = self.client.get(f"{{self.base_url}}{endpoint.path}")
        response.raise_for_status()
        body = response.json()
        return {class_name}Data.from_dict(body["data"]), body["meta"]
'''
