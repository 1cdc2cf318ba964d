# ABOUTME: Page rendering and selector-driven data extraction
# ABOUTME: Pipeline Stage 1: URL → rendered HTML → named record

"""
Extraction Layer: Get structured data out of rendered pages

This layer handles:
- Rendering pages through a browser or plain HTTP
- Evaluating named CSS selector rules against the HTML
- Selector validation and field name suggestions

Data Flow: URL → RenderedPage → ExtractedRecord → codegen layer
"""

from .base import (
    AttributeValue,
    ExtractedRecord,
    HtmlMode,
    PageRenderer,
    RenderedPage,
    SelectorRule,
    TextMode,
    parse_rules,
)
from .selectors import extract, validate_selector

__all__ = [
    "AttributeValue",
    "ExtractedRecord",
    "HtmlMode",
    "PageRenderer",
    "RenderedPage",
    "SelectorRule",
    "TextMode",
    "extract",
    "parse_rules",
    "validate_selector",
]
