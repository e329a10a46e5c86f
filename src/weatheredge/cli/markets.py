"""Markets subcommand: catalog, rank, classify, counts, search."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from weatheredge.errors import ConfigurationError, InvalidFilterError
from weatheredge.intel.engine import MarketIntelligence
from weatheredge.models import Catalog, RankedMarket

app = typer.Typer(help="Market catalog, ranking and classification")


def _engine(ctx: typer.Context) -> MarketIntelligence:
    try:
        return MarketIntelligence(ctx.obj["settings"])
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}")
        raise typer.Exit(1)


def _run(coro: Any) -> Any:
    """Run an engine coroutine; invalid caller input becomes a usage error."""
    try:
        return asyncio.run(coro)
    except InvalidFilterError as e:
        typer.echo(f"Invalid input: {e}")
        for err in e.errors:
            typer.echo(f"  {err.get('field')}: {err.get('message')}")
        raise typer.Exit(2)


def _echo_catalog(catalog: Catalog, as_json: bool) -> None:
    if as_json:
        typer.echo(catalog.model_dump_json(indent=2))
        return
    if catalog.error:
        typer.echo(f"Feed unavailable: {catalog.error}")
    for m in catalog.markets:
        title = m.title[:60]
        typer.echo(f"  {m.market_id[:12]:<12}  {m.volume_24h:>12,.0f}  {(m.category or '-'):<10}  {title}")
    source = " (cached)" if catalog.cached else ""
    typer.echo(f"Total: {catalog.total_markets} markets >= {catalog.min_volume:,.0f} 24h volume{source}")


def _echo_ranked(items: list[RankedMarket]) -> None:
    for i, item in enumerate(items, 1):
        book = item.order_book
        price = f"{book.best_bid:.3f}/{book.best_ask:.3f}" if book and book.best_bid is not None else "-"
        capital = item.depth_impact.capital_to_move if item.depth_impact else "N/A"
        typer.echo(
            f"{i:>3}. {item.edge_score:>4.1f} {item.confidence:<6} {(item.category or '-'):<9} "
            f"{price:<11} move5%={capital}  {item.market.title[:60]}"
        )
    typer.echo(f"Returned {len(items)} markets")


@app.command("catalog")
def catalog(
    ctx: typer.Context,
    min_volume: float | None = typer.Option(None, "--min-volume", "-v", help="24h volume floor"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category or sport (e.g. NFL, Soccer)"),
    as_json: bool = typer.Option(False, "--json", help="Print the catalog as JSON"),
) -> None:
    """Build the volume-filtered market catalog (one bulk listing, cached)."""
    engine = _engine(ctx)
    _echo_catalog(_run(engine.build_catalog(min_volume, category)), as_json)


@app.command("rank")
def rank(
    ctx: typer.Context,
    category: str | None = typer.Option(None, "--category", "-c"),
    min_volume: float | None = typer.Option(None, "--min-volume", "-v"),
    confidence: str = typer.Option("all", "--confidence", help="all, LOW, MEDIUM or HIGH"),
    location: str | None = typer.Option(None, "--location", "-l"),
    include_futures: bool = typer.Option(False, "--include-futures", help="Keep season-long futures markets"),
    max_days: int | None = typer.Option(None, "--max-days", help="Only markets resolving within N days"),
    search: str | None = typer.Option(None, "--search", "-s"),
    theme: str = typer.Option("all", "--theme"),
    discovery: bool = typer.Option(False, "--discovery", help="Rank by market efficiency instead of weather"),
    weather: str | None = typer.Option(None, "--weather", "-w", help="Venue weather as JSON"),
    limit: int | None = typer.Option(None, "--limit", "-n"),
    hour: int | None = typer.Option(None, "--hour", help="Hour of day for category rotation (default: now)"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Rank markets by weather edge, diversify near-ties and enrich the top results with live books."""
    raw: dict[str, Any] = {
        "category": category,
        "confidence": confidence,
        "location": location,
        "exclude_futures": not include_futures,
        "max_days_to_resolution": max_days,
        "search_text": search,
        "theme": theme,
        "analysis_type": "discovery" if discovery else "event-weather",
    }
    if min_volume is not None:
        raw["min_volume"] = min_volume
    context = None
    if weather:
        try:
            context = json.loads(weather)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"not valid JSON: {e}", param_hint="--weather")
    engine = _engine(ctx)
    items = _run(engine.rank_markets(raw, limit, weather=context, hour=hour))
    if as_json:
        typer.echo(json.dumps([i.model_dump(mode="json") for i in items], indent=2))
        return
    _echo_ranked(items)


@app.command("classify")
def classify(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market ID"),
) -> None:
    """Show the futures vs single-event verdict for one market."""
    engine = _engine(ctx)
    result = _run(engine.classify_market(market_id))
    if result is None:
        typer.echo(f"Market not found: {market_id}")
        raise typer.Exit(1)
    kind = "futures" if result.is_futures else "single event"
    typer.echo(f"{market_id}: {kind} ({result.confidence}, score {result.total_score:g})")
    for s in result.signals:
        typer.echo(f"  {s.name:<16} {s.score:>4g}  {s.detail}")
    if result.conflicting_signals:
        typer.echo("  conflicting signals: single-event tag overridden")
    typer.echo(f"Reason: {result.reason}")


@app.command("counts")
def counts(
    ctx: typer.Context,
    min_volume: float | None = typer.Option(None, "--min-volume", "-v"),
) -> None:
    """Catalog size per supported sport."""
    engine = _engine(ctx)
    result = _run(engine.category_counts(min_volume))
    for name, n in result.items():
        typer.echo(f"  {name:<10} {n}")
    typer.echo(f"Total: {sum(result.values())}")


@app.command("search")
def search(
    ctx: typer.Context,
    location: str = typer.Argument(..., help="Venue, e.g. Chicago"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Markets held at a venue."""
    engine = _engine(ctx)
    _echo_catalog(_run(engine.search_by_location(location)), as_json)
