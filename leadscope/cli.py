"""CLI interface for the analytics engine."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config.settings import settings
from leadscope.engine import Engine
from leadscope.errors import ApiClientError, SearchError
from leadscope.log import configure
from leadscope.models import FilterSpec, FunnelStage, FunnelSummary, Opportunity, SearchResults

app = typer.Typer(
    name="leadscope",
    help="Search and analyze your lead-generation pipeline"
)
console = Console()

TREND_ARROWS = {"up": "[green]▲ up[/green]", "down": "[red]▼ down[/red]", "stable": "[dim]● stable[/dim]"}


@app.callback()
def main(
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Dashboard API base URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Global options."""
    if api_url:
        settings.api_base_url = api_url
    configure(log_level)


def run_with_engine(work, load: bool = True):
    """Run an async function against a fresh engine, then close it."""
    async def runner():
        engine = Engine()
        try:
            if load:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    console=console,
                    transient=True,
                ) as progress:
                    progress.add_task("Loading opportunities...", total=None)
                    await engine.load()
            return await work(engine)
        finally:
            await engine.close()

    try:
        return asyncio.run(runner())
    except ApiClientError as e:
        console.print(f"[red]API error: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="What are you looking for?"),
):
    """Search opportunities and keyword searches."""

    async def work(engine: Engine):
        try:
            results = await engine.search(query)
        except SearchError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)
        display_search_results(query, results)

    run_with_engine(work, load=False)


@app.command("filter")
def filter_cmd(
    query: str = typer.Option("", "--query", "-q", help="Text to match"),
    status: str = typer.Option("all", "--status", "-s", help="Pipeline status"),
    source: str = typer.Option("all", "--source", help="Source channel"),
    min_score: int = typer.Option(0, "--min-score", "-m", help="Score floor, 0-100"),
    date_range: str = typer.Option("all", "--range", "-r", help="all | today | 7d | 30d"),
    keyword: Optional[list[str]] = typer.Option(None, "--keyword", "-k", help="Matched keyword (repeatable)"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max rows to show"),
):
    """Filter and rank the opportunity list."""
    spec = FilterSpec(
        query=query,
        status=status,
        source=source,
        min_score=min_score,
        date_range=date_range,
        has_keywords=keyword or [],
    )

    async def work(engine: Engine):
        results = engine.filter(spec)
        display_opportunities(results[:limit], total=len(results))

    run_with_engine(work)


@app.command()
def funnel():
    """Show the conversion funnel."""

    async def work(engine: Engine):
        stages, summary = engine.funnel()
        display_funnel(stages, summary)

    run_with_engine(work)


@app.command()
def trend(
    metric: str = typer.Option("total_opportunities", "--metric", help="Snapshot field to chart"),
    days: int = typer.Option(30, "--days", "-d", help="Window in days"),
):
    """Show the trend of a daily metric and the period comparison."""

    async def work(engine: Engine):
        try:
            data = engine.trend(metric, days)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=2)
        comparison = engine.compare(days, days)

        console.print(Panel(
            f"Trend: {TREND_ARROWS[data.trend]} ({data.change_percent:+.1f}%)\n"
            f"Daily average: {data.average:.2f}\n"
            f"Last 7 days: {' '.join(str(n) for n in engine.sparkline(7))}\n\n"
            f"Last {days} days: {comparison.current}  |  Previous {days} days: {comparison.previous}  |  "
            f"Change: {comparison.change:+d} ({comparison.change_percent:+.1f}%)",
            title=f"{metric}",
            border_style="blue"
        ))

    run_with_engine(work)


@app.command()
def snapshot(
    show: int = typer.Option(0, "--show", help="Also list stored snapshots for this many days"),
):
    """Store today's snapshot."""

    async def work(engine: Engine):
        today = engine.record_snapshot()
        console.print(f"[green]Stored snapshot for {today.date.date().isoformat()}[/green]")
        if show:
            display_snapshots(engine.stored_snapshots(show))

    run_with_engine(work)


def display_search_results(query: str, results: SearchResults):
    """Display a global search envelope."""
    if results.total == 0:
        console.print(f"[yellow]No results for {query!r}[/yellow]")
        return

    table = Table(title=f"Results for {query!r}", show_header=True, header_style="bold magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Details", style="dim")
    table.add_column("Link", style="blue")

    for result in results.opportunities + results.keyword_searches:
        table.add_row(
            "Opportunity" if result.type == "opportunity" else "Search",
            result.title[:50],
            result.subtitle or "",
            result.url,
        )

    console.print(table)


def display_opportunities(opportunities: list[Opportunity], total: Optional[int] = None):
    """Display opportunities in a table."""
    table = Table(
        title=f"Opportunities ({total if total is not None else len(opportunities)})",
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Source", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Score", style="red")
    table.add_column("Created", style="dim")

    for opp in opportunities:
        table.add_row(
            (opp.title or opp.content or "-")[:40],
            opp.source or "-",
            opp.status.value,
            f"{opp.total_score * 100:.0f}",
            opp.created_at.strftime("%Y-%m-%d"),
        )

    console.print(table)


def display_funnel(stages: list[FunnelStage], summary: Optional[FunnelSummary]):
    """Display funnel stages and summary."""
    if not stages or summary is None:
        console.print("[yellow]No data available[/yellow]")
        return

    table = Table(title="Conversion Funnel", show_header=True, header_style="bold magenta")
    table.add_column("Stage", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("% of total", justify="right", style="green")
    table.add_column("Drop-off", justify="right", style="red")

    for stage in stages:
        dropoff = f"{stage.dropoff_rate:.1f}%" if stage.dropoff_rate is not None else "-"
        table.add_row(stage.name, str(stage.count), f"{stage.percentage:.1f}%", dropoff)

    console.print(table)
    console.print(Panel(
        f"Total: {summary.total}  |  Conversion rate: {summary.conversion_rate:.1f}%  |  "
        f"Avg drop-off: {summary.average_dropoff:.1f}%  |  Won: {summary.won}",
        title="Summary",
        border_style="green"
    ))


def display_snapshots(snapshots):
    table = Table(title="Stored Snapshots", show_header=True, header_style="bold magenta")
    for column in ("Date", "Total", "New", "Contacted", "Applied", "Won", "Avg score"):
        table.add_column(column)
    for s in snapshots:
        table.add_row(
            s.date.date().isoformat(),
            str(s.total_opportunities),
            str(s.new_opportunities),
            str(s.contacted_opportunities),
            str(s.applied_opportunities),
            str(s.won_opportunities),
            f"{s.average_score:.2f}",
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the API server."""
    import uvicorn

    console.print(f"[bold green]Starting Leadscope API on {host}:{port}[/bold green]")
    uvicorn.run(
        "leadscope.api.routes:app",
        host=host,
        port=port,
        reload=reload
    )


if __name__ == "__main__":
    app()
