"""
CLI for ``vote-spine``: run ingestion, inspect the store, serve artifacts.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from vote_spine import __version__
from vote_spine.errors import VoteSpineError
from vote_spine.factory import Mode, build_pipeline
from vote_spine.logging import configure_logging
from vote_spine.pipeline import IngestionReport
from vote_spine.render import vote_to_json
from vote_spine.settings import Settings, get_settings
from vote_spine.store import VoteStore

app = typer.Typer(
    name="vote-spine",
    help="vote-spine: incremental House of Commons vote ingestion.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vote-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V", help="Show version and exit.",
        callback=_version_callback, is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
) -> None:
    """Ingest new votes and publish the latest ones as JSON, RSS and HTML."""
    settings = get_settings()
    json_format = {"json": True, "console": False}.get(settings.log_format)
    configure_logging(level=(log_level or settings.log_level).upper(), json_format=json_format)


def _settings(database: str | None) -> Settings:
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database_path": Path(database)})
    return settings


def _fail(error: VoteSpineError) -> None:
    err_console.print(f"[bold red]{type(error).__name__}[/bold red]: {error.message}")
    raise typer.Exit(code=1)


def _print_report(report: IngestionReport) -> None:
    table = Table(title=f"Run {report.run_id}", show_header=False)
    table.add_row("State", report.state.value)
    table.add_row("Watermark", str(report.watermark) if report.watermark else "-")
    table.add_row("Fetched", str(report.fetched))
    table.add_row("Selected", str(report.selected))
    table.add_row("Split misses", str(report.split_misses))
    table.add_row("Inserted", str(report.inserted))
    table.add_row("Published", f"{report.published} ({report.publish_failures} failed)")
    table.add_row("Rendered", ", ".join(report.rendered) or "-")
    if report.render_errors:
        table.add_row("Render errors", "\n".join(report.render_errors))
    console.print(table)


@app.command()
def run(
    mode: Mode = typer.Option(Mode.WORKER, "--mode", "-m", help="worker or digest"),
    feed_file: Path | None = typer.Option(
        None, "--feed-file", "-f", help="Read the feed from a local file instead of HTTP"
    ),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Run one ingestion pass."""
    try:
        with build_pipeline(_settings(database), mode, feed_file=feed_file) as pipeline:
            report = pipeline.run()
    except VoteSpineError as exc:
        _fail(exc)
    _print_report(report)


@app.command()
def watermark(database: str | None = typer.Option(None, "--database", "-d")) -> None:
    """Show the highest (parliament, number) already stored."""
    try:
        with VoteStore.open(_settings(database).database_path) as store:
            mark = store.current_watermark()
    except VoteSpineError as exc:
        _fail(exc)
    console.print(f"parliament={mark.parliament} number={mark.number}")


@app.command()
def latest(
    count: int = typer.Option(10, "--count", "-n", min=1),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List the most recently stored votes."""
    try:
        with VoteStore.open(_settings(database).database_path) as store:
            votes = store.latest(count)
    except VoteSpineError as exc:
        _fail(exc)

    if json_out:
        typer.echo(json.dumps([vote_to_json(v) for v in votes], indent=2, ensure_ascii=False))
        return

    table = Table(title="Latest votes")
    for column in ("Id", "Vote", "Date", "Bill", "Decision", "Description"):
        table.add_column(column)
    for vote in votes:
        table.add_row(
            str(vote.id),
            f"{vote.parliament}/{vote.number}",
            vote.date,
            vote.related_bill or "-",
            vote.decision,
            vote.short_description(60),
        )
    console.print(table)


@app.command()
def render(database: str | None = typer.Option(None, "--database", "-d")) -> None:
    """Re-render the artifacts from stored votes without fetching."""
    try:
        with build_pipeline(_settings(database), Mode.DIGEST) as pipeline:
            report = pipeline.render_only()
    except VoteSpineError as exc:
        _fail(exc)
    for path in report.rendered:
        console.print(f"[green]rendered[/green] {path}")
    for error in report.render_errors:
        err_console.print(f"[yellow]failed[/yellow] {error}")
    if report.render_errors:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Serve the output directory over HTTP."""
    import uvicorn

    from vote_spine.web import create_app

    settings = get_settings()
    console.print(f"[bold green]Serving {settings.output_dir}[/bold green]")
    uvicorn.run(
        create_app(settings.output_dir),
        host=host or settings.host,
        port=port or settings.port,
    )


if __name__ == "__main__":
    app()
