# ABOUTME: Tests for schema inference from selector rules and sample records
# ABOUTME: Checks type precedence, requiredness and example coercion

import pytest

from scrape2api.codegen.schema import (
    FieldSchema,
    FieldType,
    coerce_record,
    data_json_schema,
    field_json_schema,
    infer_field,
    infer_schema,
    is_numeric,
)
from scrape2api.extraction.base import AttributeValue, HtmlMode, SelectorRule


def _rule(name: str = "field", **kwargs) -> SelectorRule:
    return SelectorRule(id=f"id-{name}", selector=kwargs.pop("selector", ".x"), name=name, **kwargs)


class TestIsNumeric:
    @pytest.mark.parametrize("value", ["42", "-7", "3.14", "1e10", "2.5E-3", " 12 "])
    def test_numeric(self, value):
        assert is_numeric(value)

    @pytest.mark.parametrize("value", ["", "abc", "1,000", "$5", "1.2.3", "0x10", "NaN"])
    def test_not_numeric(self, value):
        assert not is_numeric(value)


class TestInferField:
    """Test single-field inference precedence."""

    def test_multiple_is_array_even_when_empty(self):
        field = infer_field(_rule(multiple=True), [])
        assert field.type is FieldType.ARRAY
        assert field.required is True
        assert field.example == []

    def test_multiple_numeric_values_stay_array(self):
        assert infer_field(_rule(multiple=True), ["1", "2"]).type is FieldType.ARRAY

    def test_numeric_sample_is_number(self):
        field = infer_field(_rule(), "19.99")
        assert field.type is FieldType.NUMBER
        assert field.example == 19.99

    def test_integer_example_stays_integer(self):
        field = infer_field(_rule(), "42")
        assert field.example == 42
        assert isinstance(field.example, int)

    def test_boolean_sample(self):
        field = infer_field(_rule(), "false")
        assert field.type is FieldType.BOOLEAN
        assert field.example is False

    def test_numeric_wins_over_uri_attribute(self):
        field = infer_field(_rule(attribute_mode=AttributeValue(name="href")), "123")
        assert field.type is FieldType.NUMBER
        assert field.format is None

    def test_href_attribute_is_uri_string(self):
        field = infer_field(_rule(attribute_mode=AttributeValue(name="href")), "https://example.com/a")
        assert field.type is FieldType.STRING
        assert field.format == "uri"

    def test_src_attribute_without_sample_is_optional_uri(self):
        field = infer_field(_rule(attribute_mode=AttributeValue(name="src")), None)
        assert field.type is FieldType.STRING
        assert field.format == "uri"
        assert field.required is False

    def test_other_attribute_is_plain_string(self):
        field = infer_field(_rule(attribute_mode=AttributeValue(name="alt")), "Logo")
        assert field.type is FieldType.STRING
        assert field.format is None

    def test_html_mode_is_string(self):
        assert infer_field(_rule(attribute_mode=HtmlMode()), "<b>x</b>").type is FieldType.STRING

    def test_missing_single_is_optional(self):
        field = infer_field(_rule(), None)
        assert field.required is False
        assert field.example is None

    def test_description_names_selector(self):
        assert infer_field(_rule(selector="h1.title"), "x").description == "Data extracted from: h1.title"


class TestInferSchema:
    def test_fields_follow_rule_order(self):
        rules = [_rule("price"), _rule("tags", multiple=True), _rule("missing")]
        fields = infer_schema(rules, {"price": "10", "tags": ["a"], "missing": None})

        assert [field.name for field in fields] == ["price", "tags", "missing"]
        assert [field.type for field in fields] == [FieldType.NUMBER, FieldType.ARRAY, FieldType.STRING]
        assert [field.required for field in fields] == [True, True, False]

    def test_absent_sample_key_uses_empty_value(self):
        fields = infer_schema([_rule("tags", multiple=True)], {})
        assert fields[0].example == []

    def test_inference_is_deterministic(self):
        rules = [_rule("price"), _rule("tags", multiple=True)]
        sample = {"price": "10", "tags": ["a"]}
        assert infer_schema(rules, sample) == infer_schema(rules, sample)


class TestCoerceRecord:
    """Test conversion of an extracted record to its served form."""

    def test_values_follow_field_types(self):
        rules = [_rule("price"), _rule("count"), _rule("in_stock"), _rule("tags", multiple=True), _rule("gone")]
        record = {"price": "12.50", "count": " 3 ", "in_stock": "false", "tags": ["1", "2"], "gone": None}

        data = coerce_record(infer_schema(rules, record), record)

        assert data == {"price": 12.5, "count": 3, "in_stock": False, "tags": ["1", "2"], "gone": None}
        assert isinstance(data["count"], int)

    def test_examples_match_served_values(self):
        rules = [_rule("price"), _rule("title")]
        record = {"price": "9", "title": "Hello"}
        fields = infer_schema(rules, record)

        data = coerce_record(fields, record)

        assert [field.example for field in fields] == [data["price"], data["title"]]


class TestJsonSchema:
    def test_array_field(self):
        field = FieldSchema(name="tags", type=FieldType.ARRAY, required=True, example=["a"], selector=".tag")
        schema = field_json_schema(field)
        assert schema["type"] == "array"
        assert schema["items"] == {"type": "string"}
        assert schema["example"] == ["a"]

    def test_uri_field_has_format(self):
        field = FieldSchema(name="link", type=FieldType.STRING, required=False, format="uri")
        schema = field_json_schema(field)
        assert schema["format"] == "uri"
        assert "example" not in schema

    def test_data_schema_required_list(self):
        fields = [
            FieldSchema(name="a", type=FieldType.STRING, required=True, example="x"),
            FieldSchema(name="b", type=FieldType.NUMBER, required=False),
        ]
        schema = data_json_schema(fields)
        assert schema["type"] == "object"
        assert list(schema["properties"]) == ["a", "b"]
        assert schema["required"] == ["a"]
