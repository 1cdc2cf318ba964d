# ABOUTME: Tests for selector rule parsing and the attribute mode variant
# ABOUTME: Validates payload normalisation, defaults and rejection of malformed or duplicate rules

import pytest

from scrape2api.core.errors import InvalidSelectorRulesError
from scrape2api.extraction.base import (
    AttributeValue,
    HtmlMode,
    SelectorRule,
    TextMode,
    attribute_mode_from_string,
    attribute_mode_to_string,
    parse_rules,
)


class TestAttributeMode:
    """Test conversion between the wire string and the attribute mode variant."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("text", TextMode()),
            (None, TextMode()),
            ("", TextMode()),
            ("html", HtmlMode()),
            ("href", AttributeValue(name="href")),
            ("data-id", AttributeValue(name="data-id")),
        ],
    )
    def test_from_string(self, value, expected):
        assert attribute_mode_from_string(value) == expected

    @pytest.mark.parametrize("value", ["text", "html", "src"])
    def test_to_string_round_trip(self, value):
        assert attribute_mode_to_string(attribute_mode_from_string(value)) == value

    def test_rule_accepts_tagged_dict(self):
        rule = SelectorRule.model_validate(
            {"id": "1", "selector": "a", "name": "link", "attribute_mode": {"kind": "attribute", "name": "href"}}
        )
        assert rule.attribute_mode == AttributeValue(name="href")


class TestSelectorRule:
    """Test rule construction from request payloads."""

    def test_from_payload_defaults(self):
        rule = SelectorRule.from_payload({"selector": "h1", "name": "title"}, index=3)
        assert rule.id == "selector-3"
        assert rule.attribute_mode == TextMode()
        assert rule.multiple is False
        assert rule.attribute == "text"

    def test_from_payload_full(self):
        rule = SelectorRule.from_payload(
            {"id": "abc", "selector": "img", "name": "images", "attribute": "src", "multiple": True}
        )
        assert rule.id == "abc"
        assert rule.attribute_mode == AttributeValue(name="src")
        assert rule.multiple is True

    def test_empty_value(self):
        assert SelectorRule(id="1", selector="a", name="a").empty_value() is None
        assert SelectorRule(id="1", selector="a", name="a", multiple=True).empty_value() == []

    def test_rules_are_frozen(self):
        rule = SelectorRule(id="1", selector="a", name="a")
        with pytest.raises(ValueError):
            rule.name = "b"


class TestParseRules:
    """Test parsing a list of rule payloads."""

    def test_parses_in_order(self):
        rules = parse_rules(
            [
                {"id": "1", "selector": "h1", "name": "title"},
                {"id": "2", "selector": ".item", "name": "items", "multiple": True},
            ]
        )
        assert [rule.name for rule in rules] == ["title", "items"]

    def test_missing_selector_rejected(self):
        with pytest.raises(InvalidSelectorRulesError, match="#0"):
            parse_rules([{"name": "title"}])

    def test_missing_name_rejected(self):
        with pytest.raises(InvalidSelectorRulesError):
            parse_rules([{"selector": "h1", "name": ""}])

    def test_duplicate_names_rejected(self):
        with pytest.raises(InvalidSelectorRulesError, match="Duplicate selector name: title"):
            parse_rules(
                [
                    {"selector": "h1", "name": "title"},
                    {"selector": "h2", "name": "title"},
                ]
            )

    @pytest.mark.parametrize(
        "payload",
        [
            {"selector": 5, "name": "x"},
            {"selector": "h1", "name": ["x"]},
            {"selector": "h1", "name": "x", "multiple": "maybe"},
            {"selector": "h1", "name": "x", "attribute": 7},
        ],
    )
    def test_wrongly_typed_fields_rejected(self, payload):
        with pytest.raises(InvalidSelectorRulesError, match="#0"):
            parse_rules([payload])

    @pytest.mark.parametrize(("flag", "expected"), [("false", False), ("true", True), (None, False), (1, True)])
    def test_multiple_flag_parsing(self, flag, expected):
        (rule,) = parse_rules([{"selector": "li", "name": "items", "multiple": flag}])
        assert rule.multiple is expected

    def test_error_status(self):
        assert InvalidSelectorRulesError.status_code == 400
