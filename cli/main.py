"""PriceWatch CLI: entry-point for price lookups.

Usage:
    pricewatch --help

Commands:
    price     → look up one food item in the latest bulletin
    bulletin  → show the latest bulletin and its tables
    tables    → dump the tables extracted from any page
"""

from __future__ import annotations

import json

import typer

from pricewatch.config import settings
from pricewatch.errors import FetchError
from pricewatch.log import configure_logging
from pricewatch.models import PriceQueryFailure
from pricewatch.pipeline import PricePipeline
from pricewatch.scraper.fetcher import fetch_html
from pricewatch.scraper.tables import extract_tables

from cli.rendering import render_matches, render_table

app = typer.Typer(
    name="pricewatch",
    help="Market prices from the latest government price bulletin.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging before any command runs."""
    configure_logging("DEBUG" if verbose else settings.log_level)


def _echo_json(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


# ---------------------------------------------------------------------------
# Price lookup
# ---------------------------------------------------------------------------
@app.command("price")
def price(
    item: str = typer.Argument(..., help="Food item name, e.g. 西红柿."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result object."),
    no_assist: bool = typer.Option(
        False, "--no-assist", help="Skip LLM matching; substring/synonym match only."
    ),
) -> None:
    """Look up ITEM in the most recent price bulletin."""
    pipeline = PricePipeline(settings, assisted=False if no_assist else None)
    result = pipeline.get_food_item_price(item)

    if as_json:
        _echo_json(result.to_dict())
        if isinstance(result, PriceQueryFailure):
            raise typer.Exit(1)
        return

    if isinstance(result, PriceQueryFailure):
        typer.echo(f"[price] {result.error}")
        raise typer.Exit(1)

    typer.echo(f"[price] Source : {result.price_source}")
    typer.echo(f"[price] Date   : {result.price_date or '(unknown)'}")
    typer.echo(f"[price] URL    : {result.price_url}")
    if not result.prices:
        typer.echo(f"[price] No rows matched {result.food_item!r}.")
        return
    typer.echo(f"[price] {len(result.prices)} row(s) matched {result.food_item!r}:")
    typer.echo(render_matches(result.prices))


# ---------------------------------------------------------------------------
# Bulletin overview
# ---------------------------------------------------------------------------
@app.command("bulletin")
def bulletin(
    as_json: bool = typer.Option(False, "--json", help="Print the raw result object."),
) -> None:
    """Show the latest bulletin, its tables and the newest bulletin links."""
    pipeline = PricePipeline(settings, assisted=False)
    result = pipeline.get_latest_prices()

    if isinstance(result, PriceQueryFailure):
        if as_json:
            _echo_json(result.to_dict())
        else:
            typer.echo(f"[bulletin] {result.error}")
        raise typer.Exit(1)

    if as_json:
        _echo_json(result.to_dict())
        return

    typer.echo(f"[bulletin] {result.latest.title}  ({result.latest.date_str})")
    typer.echo(f"[bulletin] {result.latest.url}")
    for index, table in enumerate(result.tables, start=1):
        typer.echo(f"\n[table {index}]")
        typer.echo(render_table(table))
    typer.echo("\n[bulletin] Recent bulletins:")
    for link in result.links:
        typer.echo(f"  {link.date_str or '----------'}  {link.title}  {link.url}")


# ---------------------------------------------------------------------------
# Raw table dump
# ---------------------------------------------------------------------------
@app.command("tables")
def tables(
    url: str = typer.Argument(..., help="Page URL to fetch."),
) -> None:
    """Fetch URL and print every table extracted from it."""
    typer.echo(f"[tables] Fetching {url!r} …")
    try:
        raw = fetch_html(url, settings)
    except FetchError as exc:
        typer.echo(f"[tables] {exc}")
        raise typer.Exit(1)

    extracted = extract_tables(raw.html)
    if not extracted:
        typer.echo("[tables] No tables found.")
        return
    for index, table in enumerate(extracted, start=1):
        typer.echo(f"\n[table {index}] {len(table)} row(s)")
        typer.echo(render_table(table))


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
