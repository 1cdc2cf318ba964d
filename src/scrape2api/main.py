# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Provides commands for serving, generating APIs from the terminal and managing the cache

import json as jsonlib
from pathlib import Path

import asyncclick as click
from rich.console import Console
from rich.panel import Panel

from scrape2api.codegen.bundle import bundle_filename
from scrape2api.config import get_config
from scrape2api.core.errors import Scrape2APIError
from scrape2api.core.models import ProgressEvent
from scrape2api.core.pipeline import GenerationPipeline, validate_url
from scrape2api.extraction.base import parse_rules
from scrape2api.extraction.render import create_renderer
from scrape2api.extraction.render.html import chunk_html
from scrape2api.extraction.selectors import suggest_selector_name, validate_selector
from scrape2api.persistence import create_store
from scrape2api.persistence.models import utcnow
from scrape2api.utils.logging import (
    LoggingMode,
    configure_logging,
    create_smart_progress,
    get_logging_status,
    with_pipeline_context,
)
from scrape2api.utils.rich_tables import (
    create_entries_table,
    create_field_schema_table,
    create_generation_summary_table,
    create_logging_status_table,
    create_multi_column_table,
    print_rich_table,
)

console = Console()


def parse_selector_option(value: str, index: int = 0) -> dict:
    """Parse a ``NAME=CSS[@attribute][*]`` option into a selector payload.

    A trailing ``*`` collects every match; ``@attribute`` reads an attribute (or ``@html``
    for inner HTML) instead of the text content.
    """
    name, sep, selector = value.partition("=")
    if not sep or not name.strip() or not selector.strip():
        raise click.BadParameter(f"Expected NAME=CSS, got {value!r}", param_hint="--selector")

    selector = selector.strip()
    multiple = selector.endswith("*")
    if multiple:
        selector = selector[:-1].rstrip()

    attribute = "text"
    head, at, tail = selector.rpartition("@")
    if at and tail and " " not in tail and "]" not in tail:
        selector, attribute = head.rstrip(), tail

    return {
        "id": f"selector-{index}",
        "name": name.strip(),
        "selector": selector,
        "attribute": attribute,
        "multiple": multiple,
    }


async def _close_renderer(renderer) -> None:
    close = getattr(renderer, "close", None)
    if close is not None:
        await close()


@click.command()
@click.argument("url")
@click.option("--selector", "-s", "selectors", multiple=True, required=True, help="NAME=CSS[@attribute][*]")
@click.option("--base-url", default="http://localhost:8000", show_default=True, help="Public base URL for endpoints")
@click.option("--refresh-rate", type=int, help="Advertise a refresh URL for this endpoint")
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Where to write the ZIP bundle")
@click.pass_context
async def generate(
    ctx, url: str, selectors: tuple[str, ...], base_url: str, refresh_rate: int | None, out: Path | None
):
    """
    🕷️ Generate an API from a web page and CSS selectors.

    Renders the page, extracts the selected values, caches them and writes the
    OpenAPI / SDK / Postman bundle to disk.
    """
    json_output = ctx.obj["json_output"]
    try:
        validate_url(url)
        rules = parse_rules(parse_selector_option(value, i) for i, value in enumerate(selectors))
    except Scrape2APIError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise click.exceptions.Exit(1) from e

    config = get_config()
    store = create_store(config)
    await store.load()
    renderer = create_renderer(config.renderer)
    pipeline = GenerationPipeline(renderer, store, config)

    with with_pipeline_context("cli_generate", url=url) as logger:
        try:
            if json_output:
                outcome = await pipeline.generate(url, rules, base_url, lambda event: None, refresh_rate=refresh_rate)
            else:
                _, _, tracker = create_smart_progress(console)

                def on_event(event) -> None:
                    if isinstance(event, ProgressEvent):
                        tracker.update(event.message)

                with tracker:
                    outcome = await pipeline.generate(url, rules, base_url, on_event, refresh_rate=refresh_rate)
        except Scrape2APIError as e:
            logger.error("Generation failed", error=e.message)
            console.print(f"[red]❌ {e.message}[/red]")
            raise click.exceptions.Exit(1) from e
        finally:
            await _close_renderer(renderer)
            await store.close()

        target = out or Path(bundle_filename(outcome.result.slug))
        if target.is_dir():
            target = target / bundle_filename(outcome.result.slug)
        target.write_bytes(outcome.archive)
        logger.info("Bundle written", path=str(target), bytes=len(outcome.archive))

    if json_output:
        payload = outcome.result.to_payload()
        payload.pop("downloadUrl", None)
        payload["bundlePath"] = str(target)
        click.echo(jsonlib.dumps(payload, indent=2))
        return

    print_rich_table(console, create_field_schema_table(outcome.fields))
    print_rich_table(console, create_generation_summary_table(outcome, str(target)))


@click.command()
@click.argument("url")
@click.option("--check", "-c", "checks", multiple=True, help="CSS selector to test against the rendered page")
@click.option("--show-html", is_flag=True, help="Print the start of the rendered HTML")
@click.pass_context
async def preview(ctx, url: str, checks: tuple[str, ...], show_html: bool):
    """
    👀 Render a page and test selectors against it.
    """
    json_output = ctx.obj["json_output"]
    try:
        validate_url(url)
    except Scrape2APIError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise click.exceptions.Exit(1) from e

    config = get_config()
    renderer = create_renderer(config.renderer)
    try:
        if json_output:
            page = await renderer.render(url)
        else:
            _, _, tracker = create_smart_progress(console)
            with tracker:
                page = await renderer.render(url, on_progress=tracker.update)
    except Scrape2APIError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise click.exceptions.Exit(1) from e
    finally:
        await _close_renderer(renderer)

    results = []
    for selector in checks:
        validation = validate_selector(selector, page.html)
        results.append(
            {
                "selector": selector,
                "valid": validation.valid,
                "count": validation.count,
                "sample": validation.sample,
                "suggestedName": suggest_selector_name(selector, page.html) if validation.valid else None,
            }
        )

    chunks = chunk_html(page.html, config.html_chunk_size)
    if json_output:
        summary = {"url": url, "title": page.title, "htmlBytes": len(page.html), "chunks": len(chunks)}
        click.echo(jsonlib.dumps({**summary, "selectors": results}, indent=2))
        return

    console.print(
        Panel.fit(
            f"🌐 [bold cyan]{page.title or url}[/bold cyan]\n"
            f"{len(page.html):,} bytes of HTML in {len(chunks)} chunk(s)",
            border_style="magenta",
        )
    )
    if results:
        rows = [
            [
                r["selector"],
                "✅" if r["valid"] else "❌",
                str(r["count"]),
                r["suggestedName"] or "",
                r["sample"] or "",
            ]
            for r in results
        ]
        table = create_multi_column_table(
            title="🎯 Selector Check",
            columns=[
                ("Selector", "bold blue"),
                ("Valid", "green"),
                ("Matches", "magenta"),
                ("Name", "cyan"),
                ("Sample", "white"),
            ],
            rows=rows,
        )
        print_rich_table(console, table)
    if show_html:
        console.print(page.html[:2000] + ("..." if len(page.html) > 2000 else ""))


@click.command(name="list")
@click.pass_context
async def list_entries(ctx):
    """📦 List cached endpoints."""
    store = create_store()
    await store.load()
    try:
        entries = store.list()
        if ctx.obj["json_output"]:
            click.echo(jsonlib.dumps([entry.to_record() for entry in entries], indent=2))
            return
        if not entries:
            console.print("[yellow]No cached endpoints.[/yellow]")
            return
        print_rich_table(console, create_entries_table(entries, utcnow()))
    finally:
        await store.close()


@click.command()
@click.pass_context
async def cleanup(ctx):
    """🧹 Remove expired cache entries."""
    store = create_store()
    await store.load()
    try:
        removed = await store.cleanup()
    finally:
        await store.close()

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps({"removed": removed}))
    else:
        console.print(f"[green]🧹 Removed {removed} expired entr{'y' if removed == 1 else 'ies'}[/green]")


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
async def serve(host: str, port: int):
    """
    🚀 Run the HTTP server.
    """
    import uvicorn

    from scrape2api.server import create_app

    server = uvicorn.Server(uvicorn.Config(create_app(), host=host, port=port, log_config=None))
    await server.serve()


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    try:
        config = get_config()
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)

        configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)
    except (FileNotFoundError, PermissionError, OSError):
        # logs/ may be unwritable; fall back to console-only logging
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE
        configure_logging(mode=mode, log_level=log_level or "INFO", log_file=log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    print_rich_table(console, create_logging_status_table(status))


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output structured JSON instead of rich interface")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    🕸️ Scrape2API - turn any web page into a typed JSON API

    Pick elements with CSS selectors and get an endpoint, an OpenAPI document,
    a TypeScript SDK and a Postman collection.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    _initialize_logging(json, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


app.add_command(serve)
app.add_command(generate)
app.add_command(preview)
app.add_command(list_entries)
app.add_command(cleanup)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
