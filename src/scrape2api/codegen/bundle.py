# ABOUTME: Packs generated artifacts, sample data and the preview page into one ZIP archive
# ABOUTME: Pure function of its inputs; no network or store access

import io
import json
import zipfile
from datetime import datetime

from scrape2api.codegen.base import GeneratedArtifacts
from scrape2api.extraction.base import DataRecord
from scrape2api.extraction.render.html import clean_html_for_preview

# Fixed timestamp so identical inputs give identical archives
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def _readme(slug: str, title: str, endpoint_url: str | None) -> str:
    endpoint_line = f"Endpoint: `GET {endpoint_url}`\n" if endpoint_url else ""
    return f"""# {title} API

{endpoint_line}Slug: `{slug}`

## Files

- `openapi.json`: OpenAPI 3.0 specification
- `sdk.ts`: TypeScript client
- `sdk.py`: Python client
- `postman_collection.json`: Postman collection with response tests
- `sample-data.json`: data captured when the API was generated
"""


def bundle(
    slug: str,
    title: str,
    artifacts: GeneratedArtifacts,
    sample_data: DataRecord,
    page_html: str | None = None,
    endpoint_url: str | None = None,
) -> bytes:
    """Build the downloadable archive for a generated API.

    Args:
        slug: Endpoint slug
        title: Page title used in the README
        artifacts: Rendered OpenAPI, SDK and collection documents
        sample_data: Extracted record served by the endpoint
        page_html: Rendered page HTML, stored as a cleaned preview when given
        endpoint_url: Public endpoint URL for the README

    Returns:
        ZIP archive bytes
    """
    files: dict[str, str] = {
        "README.md": _readme(slug, title, endpoint_url),
        "openapi.json": artifacts.openapi,
        "sdk.ts": artifacts.sdk,
        "sdk.py": artifacts.python_sdk,
        "postman_collection.json": artifacts.postman,
        "sample-data.json": json.dumps(sample_data, indent=2),
    }
    if page_html:
        files["page.html"] = clean_html_for_preview(page_html)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            info = zipfile.ZipInfo(f"{slug}/{name}", date_time=ZIP_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, content)
    return buffer.getvalue()


def bundle_filename(slug: str, created: datetime | None = None) -> str:
    suffix = f"-{created:%Y%m%d}" if created else ""
    return f"{slug}{suffix}.zip"
