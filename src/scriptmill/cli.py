"""CLI commands for scriptmill."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from scriptmill.config import (
    ScriptmillConfig,
    load_config,
    set_config_value,
    validate_config,
)
from scriptmill.models import PipelineOutcome

app = typer.Typer(
    name="scriptmill",
    help="Rewrite the transcripts of YouTube videos into one narration script.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage configuration.")
app.add_typer(config_app, name="config")

console = Console()
logger = logging.getLogger(__name__)


def _get_config() -> ScriptmillConfig:
    return load_config()


def _get_checked_config() -> ScriptmillConfig:
    config = _get_config()
    try:
        validate_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from e
    return config


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
) -> None:
    """Rewrite the transcripts of YouTube videos into one narration script."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )


def _print_outcome(outcome: PipelineOutcome) -> None:
    table = Table(title="Transcripts")
    table.add_column("#", style="dim")
    table.add_column("Source", style="bold")
    table.add_column("Provider")
    table.add_column("Characters")

    for i, transcript in enumerate(outcome.transcripts, start=1):
        provider = transcript.provider if transcript.ok else "[red]unavailable[/red]"
        table.add_row(
            str(i),
            transcript.source_url,
            str(provider),
            str(len(transcript.text)),
        )
    console.print(table)

    if outcome.dropped_count:
        console.print(
            f"[dim]Skipped {outcome.dropped_count} input(s) without a video ID.[/dim]"
        )
    if outcome.result.status == "degraded":
        console.print(
            f"[yellow]Rewrite unavailable ({outcome.result.reason}); "
            "showing transcript preview.[/yellow]"
        )


@app.command()
def rewrite(
    urls: Annotated[
        list[str], typer.Argument(help="YouTube URLs or video IDs")
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the script to this file"),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the HTTP API response shape")
    ] = False,
) -> None:
    """Fetch transcripts for URLS and rewrite them into one script."""
    from scriptmill.pipeline import InputError, run_pipeline_sync
    from scriptmill.server import outcome_payload

    config = _get_checked_config()

    try:
        outcome = run_pipeline_sync(urls, config)
    except InputError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    if as_json:
        console.print_json(json.dumps(outcome_payload(outcome)))
        return

    _print_outcome(outcome)
    if output:
        output.write_text(outcome.result.text)
        console.print(f"[green]Script saved to {output}[/green]")
    else:
        console.print()
        console.print(outcome.result.text, markup=False, highlight=False)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p")] = None,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from scriptmill.server import create_app

    config = _get_checked_config()
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


_SECRET_KEYS = {"api_key", "token"}


@config_app.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = _get_config()
    console.print("[bold]Current Configuration[/bold]\n")

    sections = {
        "server": config.server,
        "transcripts": config.transcripts,
        "whisper": config.whisper,
        "llm": config.llm,
    }

    for name, section in sections.items():
        console.print(f"[bold cyan]\\[{name}][/bold cyan]")
        for key, value in section.__dict__.items():
            if key in _SECRET_KEYS and value:
                value = "********"
            console.print(f"  {key} = {value}", markup=False)
        console.print()


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Config key (e.g., llm.provider)")],
    value: Annotated[str, typer.Argument(help="Value to set")],
) -> None:
    """Set a configuration value."""
    try:
        set_config_value(key, value)
        console.print(f"[green]Set {key}[/green]")
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
