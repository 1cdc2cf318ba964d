# ABOUTME: Schema inference from selector rules and a sample record
# ABOUTME: Produces the single FieldSchema list every artifact generator renders from

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from scrape2api.extraction.base import (
    AttributeValue,
    DataRecord,
    ExtractedRecord,
    ExtractedValue,
    RecordValue,
    SelectorRule,
)
from scrape2api.utils.logging import log_pipeline_step

NUMERIC_PATTERN = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")
URI_ATTRIBUTES = {"href", "src"}


class FieldType(str, Enum):
    """Wire types a generated field can take."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


class FieldSchema(BaseModel):
    """Inferred contract for one field of the generated API."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType
    required: bool
    example: Any = None
    format: str | None = None
    selector: str = ""

    @property
    def description(self) -> str:
        return f"Data extracted from: {self.selector}"


def is_numeric(value: str) -> bool:
    return bool(NUMERIC_PATTERN.match(value.strip()))


def coerce_value(value: ExtractedValue, field_type: FieldType) -> RecordValue:
    """Convert an extracted string to the wire type of its field."""
    if value is None or isinstance(value, list):
        return value
    if field_type is FieldType.NUMBER:
        text = value.strip()
        return float(text) if any(c in text for c in ".eE") else int(text)
    if field_type is FieldType.BOOLEAN:
        return value == "true"
    return value


def infer_field(rule: SelectorRule, sample: ExtractedValue) -> FieldSchema:
    """Infer one field's schema.

    Precedence: multiple ⇒ array, numeric-looking ⇒ number, "true"/"false" ⇒ boolean,
    href/src attribute ⇒ string with uri format, otherwise string.
    """
    field_format = None
    if rule.multiple:
        field_type = FieldType.ARRAY
    elif isinstance(sample, str) and is_numeric(sample):
        field_type = FieldType.NUMBER
    elif sample in ("true", "false"):
        field_type = FieldType.BOOLEAN
    elif isinstance(rule.attribute_mode, AttributeValue) and rule.attribute_mode.name in URI_ATTRIBUTES:
        field_type = FieldType.STRING
        field_format = "uri"
    else:
        field_type = FieldType.STRING

    required = rule.multiple or sample is not None

    return FieldSchema(
        name=rule.name,
        type=field_type,
        required=required,
        example=coerce_value(sample, field_type),
        format=field_format,
        selector=rule.selector,
    )


@log_pipeline_step("infer_schema")
def infer_schema(rules: list[SelectorRule], sample: ExtractedRecord) -> list[FieldSchema]:
    """Derive the field schema for a rule set, in rule order."""
    return [infer_field(rule, sample.get(rule.name, rule.empty_value())) for rule in rules]


def coerce_record(fields: list[FieldSchema], record: ExtractedRecord) -> DataRecord:
    """Record as served, each value converted to its inferred field type.

    The endpoint, the artifacts and the bundled sample must all carry this record.
    """
    return {field.name: coerce_value(record.get(field.name), field.type) for field in fields}


def field_json_schema(field: FieldSchema) -> dict[str, Any]:
    """JSON Schema fragment for one field, shared by the OpenAPI and collection generators."""
    if field.type is FieldType.ARRAY:
        schema: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
    else:
        schema = {"type": field.type.value}
        if field.format:
            schema["format"] = field.format
    schema["description"] = field.description
    if field.example is not None:
        schema["example"] = field.example
    return schema


def data_json_schema(fields: list[FieldSchema]) -> dict[str, Any]:
    """JSON Schema for the `data` object of a response."""
    return {
        "type": "object",
        "properties": {field.name: field_json_schema(field) for field in fields},
        "required": [field.name for field in fields if field.required],
    }
