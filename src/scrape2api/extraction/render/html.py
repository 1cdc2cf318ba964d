# ABOUTME: HTML post-processing for rendered pages: URL absolutisation, preview cleaning and chunking
# ABOUTME: Shared by both renderers and by the preview stream and bundle

import re
from urllib.parse import urljoin

from scrape2api.extraction.selectors import parse_html

URL_ATTRIBUTES = {
    "link": "href",
    "script": "src",
    "img": "src",
    "a": "href",
}

PREVIEW_BASE_STYLES = """
    <style>
      * { box-sizing: border-box; }
      body { margin: 0; padding: 16px; }
      img { max-width: 100%; height: auto; }
      iframe { display: none; }
      video { max-width: 100%; }
      a { color: inherit; text-decoration: none; }
      .selector-highlight {
        outline: 2px solid #F0FF26 !important;
        cursor: pointer !important;
      }
      .selector-selected {
        outline: 2px solid #00ff00 !important;
      }
    </style>
"""

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_HANDLER_DQ = re.compile(r'\s*on\w+\s*=\s*"[^"]*"', re.IGNORECASE)
_EVENT_HANDLER_SQ = re.compile(r"\s*on\w+\s*=\s*'[^']*'", re.IGNORECASE)
_FORM_ACTION = re.compile(r'action\s*=\s*"[^"]*"', re.IGNORECASE)
_FORM_METHOD = re.compile(r'method\s*=\s*"[^"]*"', re.IGNORECASE)


def absolutize_urls(html: str, base_url: str) -> str:
    """Rewrite relative resource URLs (links, scripts, images, anchors) against the page URL."""
    document = parse_html(html)
    for tag_name, attribute in URL_ATTRIBUTES.items():
        for element in document.find_all(tag_name):
            value = element.get(attribute)
            if value:
                element[attribute] = urljoin(base_url, value)
    return str(document)


def clean_html_for_preview(html: str) -> str:
    """Make rendered HTML safe to show in a preview frame.

    Strips scripts and inline event handlers, neutralises forms and injects base styles.
    """
    cleaned = _SCRIPT_BLOCK.sub("", html)
    cleaned = _EVENT_HANDLER_DQ.sub("", cleaned)
    cleaned = _EVENT_HANDLER_SQ.sub("", cleaned)
    cleaned = _FORM_ACTION.sub('action="#"', cleaned)
    cleaned = _FORM_METHOD.sub('method="get"', cleaned)

    if "<head>" in cleaned:
        return cleaned.replace("<head>", "<head>" + PREVIEW_BASE_STYLES, 1)
    if "<body>" in cleaned:
        return cleaned.replace("<body>", "<body>" + PREVIEW_BASE_STYLES, 1)
    return PREVIEW_BASE_STYLES + cleaned


def chunk_html(html: str, chunk_size: int = 50_000) -> list[str]:
    """Split HTML into fixed-size chunks for streaming."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [html[i : i + chunk_size] for i in range(0, len(html), chunk_size)]


def extract_title(html: str) -> str:
    title = parse_html(html).title
    return title.get_text().strip() if title else ""
