# ABOUTME: Rich table builders for CLI output of schemas, cached entries and logging status
# ABOUTME: Generic key-value and multi-column builders back the domain-specific tables

from datetime import datetime
from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.table import Table


def create_key_value_table(
    title: str,
    data: dict[str, Any],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a two-column Field/Value table.

    Args:
        title: Table title
        data: Ordered pairs to display; values are stringified
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )
    table.add_column("Field", style=key_style, no_wrap=False)
    table.add_column("Value", style=value_style, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a table with named, styled columns and zebra-striped rows."""
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)
    for row in rows:
        table.add_row(*row)

    return table


def _preview(value: Any, limit: int = 60) -> str:
    if value is None:
        return "—"
    text = ", ".join(value) if isinstance(value, list) else str(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def create_field_schema_table(fields: list[Any]) -> Table:
    """Table of inferred fields: name, type, required flag and example."""
    rows = [
        [
            field.name,
            field.type.value,
            "✅" if field.required else "",
            _preview(field.example),
        ]
        for field in fields
    ]
    return create_multi_column_table(
        title="🧬 Inferred Schema",
        columns=[("Field", "bold blue"), ("Type", "magenta"), ("Required", "green"), ("Example", "white")],
        rows=rows,
    )


def create_entries_table(entries: list[Any], now: datetime) -> Table:
    """Table of cached entries with their age."""
    rows = []
    for entry in sorted(entries, key=lambda e: e.last_updated, reverse=True):
        age_minutes = entry.age_ms(now) // 60_000
        rows.append([entry.slug, entry.url, entry.last_updated.isoformat(timespec="seconds"), f"{age_minutes} min"])

    return create_multi_column_table(
        title=f"📦 Cached Endpoints ({len(entries)})",
        columns=[("Slug", "bold cyan"), ("Source URL", "blue"), ("Last Updated", "white"), ("Age", "yellow")],
        rows=rows,
    )


def create_generation_summary_table(outcome: Any, archive_path: str | None = None) -> Table:
    """Summary of a finished generation run."""
    result = outcome.result
    summary = {
        "🏷️ Title": outcome.title,
        "🔑 Slug": result.slug,
        "🌐 Endpoint": result.endpoint_url,
        "📊 Fields": len(outcome.fields),
        "📦 Bundle": f"{len(outcome.archive):,} bytes",
    }
    if result.refresh_url:
        summary["🔄 Refresh URL"] = result.refresh_url
    if archive_path:
        summary["💾 Saved To"] = archive_path

    return create_key_value_table(
        title="🎉 API Generated",
        data=summary,
        title_style="bold green",
        key_style="cyan",
        value_style="white",
        box_style=SIMPLE,
    )


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table."""
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def print_rich_table(console: Console, table: Table) -> None:
    """Print a rich table with a blank line either side."""
    console.print()
    console.print(table)
    console.print()
