# ABOUTME: Selector-driven extraction engine over rendered HTML using BeautifulSoup CSS selection
# ABOUTME: Evaluates each rule in isolation so one malformed selector never aborts the whole record

import re

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel
from soupsieve import SelectorSyntaxError

from scrape2api.extraction.base import (
    AttributeValue,
    ExtractedRecord,
    ExtractedValue,
    HtmlMode,
    SelectorRule,
    TextMode,
)
from scrape2api.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_CLASS_NAMES = re.compile(r"^(btn|button|text|item|content|wrapper|container)$", re.IGNORECASE)


class SelectorValidation(BaseModel):
    """Outcome of testing a selector against a page."""

    valid: bool
    count: int
    sample: str | None = None


def parse_html(html: str) -> BeautifulSoup:
    # Keep multi-valued attributes such as class as plain strings
    return BeautifulSoup(html, "html.parser", multi_valued_attributes=None)


def _element_value(element: Tag, rule: SelectorRule) -> str | None:
    mode = rule.attribute_mode
    if isinstance(mode, TextMode):
        value = element.get_text().strip()
    elif isinstance(mode, HtmlMode):
        value = element.decode_contents()
    elif isinstance(mode, AttributeValue):
        raw = element.get(mode.name)
        value = " ".join(raw) if isinstance(raw, list) else raw
    else:  # pragma: no cover - AttributeMode is closed
        raise TypeError(f"Unknown attribute mode: {mode!r}")
    return value or None


def evaluate_rule(document: BeautifulSoup, rule: SelectorRule) -> ExtractedValue:
    """Evaluate one rule against a parsed document.

    Raises:
        SelectorSyntaxError: If the selector string is malformed
    """
    values = [value for element in document.select(rule.selector) if (value := _element_value(element, rule))]
    if rule.multiple:
        return values
    return values[0] if values else None


def extract(html: str, rules: list[SelectorRule]) -> ExtractedRecord:
    """Extract a named record from HTML.

    Single rules yield the first non-empty match or None, multiple rules yield every
    non-empty match in document order. A malformed selector degrades to the rule's
    empty value and is logged.
    """
    document = parse_html(html)
    record: ExtractedRecord = {}

    for rule in rules:
        try:
            record[rule.name] = evaluate_rule(document, rule)
        except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
            logger.warning(
                "Selector evaluation failed",
                rule=rule.name,
                selector=rule.selector,
                error=str(e),
                error_type=type(e).__name__,
            )
            record[rule.name] = rule.empty_value()

    return record


def validate_selector(selector: str, html: str) -> SelectorValidation:
    """Test a selector against a page and return the match count and a text sample."""
    try:
        elements = parse_html(html).select(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return SelectorValidation(valid=False, count=0)

    sample = elements[0].get_text().strip()[:100] if elements else None
    return SelectorValidation(valid=bool(elements), count=len(elements), sample=sample)


def clean_selector_name(text: str) -> str:
    """Turn arbitrary text into a snake_case API field name."""
    cleaned = re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")
    return cleaned[:50] or "field"


def suggest_selector_name(selector: str, html: str) -> str:
    """Suggest a field name for a selector from its first match.

    Priority: short id, then a meaningful class, then short text content, then the tag name.
    """
    try:
        element = parse_html(html).select_one(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return "field"
    if element is None:
        return "field"

    element_id = element.get("id")
    if element_id and len(element_id) < 30:
        return clean_selector_name(element_id)

    class_name = element.get("class")
    if class_name:
        classes = [
            cls for cls in class_name.split() if 2 < len(cls) < 20 and not GENERIC_CLASS_NAMES.match(cls)
        ]
        if classes:
            return clean_selector_name(classes[0])

    text = element.get_text().strip()
    if 0 < len(text) < 50:
        return clean_selector_name(text)

    return element.name or "field"
