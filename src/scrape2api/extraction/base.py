# ABOUTME: Selector rule model, rendered page result and the renderer protocol
# ABOUTME: AttributeMode is a closed variant (text, html, named attribute) so extraction branching stays exhaustive

from collections.abc import Callable, Iterable
from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scrape2api.core.errors import InvalidSelectorRulesError

ExtractedValue = str | list[str] | None
ExtractedRecord = dict[str, ExtractedValue]

# Extracted values after coercion to their inferred field types
RecordValue = str | bool | int | float | list[str] | None
DataRecord = dict[str, RecordValue]

ProgressCallback = Callable[[str], None]


class TextMode(BaseModel):
    """Trimmed text content of the matched element."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"


class HtmlMode(BaseModel):
    """Raw inner HTML of the matched element."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["html"] = "html"


class AttributeValue(BaseModel):
    """Value of a named attribute of the matched element."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["attribute"] = "attribute"
    name: str


AttributeMode = Annotated[TextMode | HtmlMode | AttributeValue, Field(discriminator="kind")]


def attribute_mode_from_string(value: str | None) -> TextMode | HtmlMode | AttributeValue:
    """Parse the wire form ("text", "html" or an attribute name) into an AttributeMode."""
    if not value or value == "text":
        return TextMode()
    if value == "html":
        return HtmlMode()
    return AttributeValue(name=value)


def attribute_mode_to_string(mode: TextMode | HtmlMode | AttributeValue) -> str:
    if isinstance(mode, AttributeValue):
        return mode.name
    return mode.kind


class SelectorRule(BaseModel):
    """A named CSS selector with an extraction mode and multiplicity flag.

    Selector validity is checked when the rule is evaluated, not here.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    selector: str
    name: str
    attribute_mode: AttributeMode = Field(default_factory=TextMode)
    multiple: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any], index: int = 0) -> "SelectorRule":
        """Build a rule from the request payload shape {id, selector, name, attribute?, multiple?}."""
        return cls(
            id=str(payload.get("id") or f"selector-{index}"),
            selector=payload["selector"],
            name=payload["name"],
            attribute_mode=attribute_mode_from_string(payload.get("attribute")),
            multiple=payload.get("multiple") or False,
        )

    @property
    def attribute(self) -> str:
        return attribute_mode_to_string(self.attribute_mode)

    def empty_value(self) -> ExtractedValue:
        return [] if self.multiple else None


def parse_rules(payloads: Iterable[dict[str, Any]]) -> list[SelectorRule]:
    """Parse selector payloads, rejecting malformed entries and duplicate names."""
    rules: list[SelectorRule] = []
    seen: set[str] = set()
    for index, payload in enumerate(payloads):
        if not isinstance(payload, dict) or not payload.get("selector") or not payload.get("name"):
            raise InvalidSelectorRulesError(f"Selector #{index} needs both 'selector' and 'name'")
        try:
            rule = SelectorRule.from_payload(payload, index)
        except ValidationError as e:
            fields = ", ".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
            raise InvalidSelectorRulesError(f"Selector #{index} has invalid fields: {fields or 'rule'}") from e
        if rule.name in seen:
            raise InvalidSelectorRulesError(f"Duplicate selector name: {rule.name}")
        seen.add(rule.name)
        rules.append(rule)
    return rules


class RenderedPage(BaseModel):
    """Fully-resolved page returned by a renderer."""

    url: str
    html: str
    title: str = ""

    @property
    def has_html(self) -> bool:
        return bool(self.html)


class PageRenderer(Protocol):
    """Protocol for turning a URL into rendered HTML and a title."""

    async def render(self, url: str, on_progress: ProgressCallback | None = None) -> RenderedPage:
        """Render the page at the given URL.

        Args:
            url: Absolute http(s) URL to render
            on_progress: Optional callback receiving human-readable progress messages

        Returns:
            Rendered page with absolutised resource URLs

        Raises:
            RendererError: If the page could not be rendered after retries
        """
        ...
