"""Main CLI entry point for collectd-proxy."""

import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from collectd_proxy import __version__
from collectd_proxy.config import Settings, get_settings
from collectd_proxy.exceptions import ProxyError
from collectd_proxy.logging_config import setup_logging

app = typer.Typer(
    name="collectd-proxy",
    help="collectd-proxy - forward collectd metrics to InfluxDB",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console_err = Console(stderr=True)


class OutputFormat(str, Enum):
    """Rendering of the types commands."""

    table = "table"
    json = "json"


class CLIState:
    """Settings and options shared with the sub-commands."""

    output_format: OutputFormat = OutputFormat.table
    settings: Optional[Settings] = None


state = CLIState()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"collectd-proxy version: {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version information and exit",
        callback=version_callback,
        is_eager=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.table, "--output", "-o", help="Output format of the types commands"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace every sample and write"
    ),
) -> None:
    """
    collectd-proxy - collectd to InfluxDB proxy

    Receives collectd network packets, converts COUNTER and DERIVE values to
    rates and writes the points to InfluxDB in batches.
    """
    settings = get_settings(config_path=config, reload=config is not None)
    if verbose:
        settings = settings.model_copy(update={"verbose": True})

    # verbose from any source lowers the level to DEBUG
    setup_logging(settings)

    state.output_format = output
    state.settings = settings
    ctx.obj = state


def main_cli() -> None:
    """Entry point for CLI application with error handling."""
    try:
        app()
    except KeyboardInterrupt:
        console_err.print("\n[yellow]Proxy stopped[/yellow]")
        sys.exit(130)
    except ProxyError as e:
        console_err.print(f"[red]Error:[/red] {e.message}")
        settings = state.settings
        if settings is not None and settings.verbose:
            for key, value in e.context.items():
                console_err.print(f"  {key}: {value}")
        sys.exit(1)


from collectd_proxy.cli import proxy, typesdb  # noqa: E402

app.add_typer(proxy.app, name="proxy", help="Run the collectd proxy")
app.add_typer(typesdb.app, name="types", help="Inspect types.db")


if __name__ == "__main__":
    main_cli()
