"""types.db inspection commands."""

from pathlib import Path
from typing import Optional

import typer

from collectd_proxy.cli.output import print_error, print_json, print_table
from collectd_proxy.config import get_settings
from collectd_proxy.exceptions import TypesDBError
from collectd_proxy.typesdb import TypeResolver, load_types_db

app = typer.Typer(help="Inspect collectd type definitions")


def _load(path: Optional[Path]) -> TypeResolver:
    path = path or get_settings().typesdb_path
    try:
        return load_types_db(path)
    except TypesDBError as e:
        print_error(e.message)
        raise typer.Exit(1)


def _is_json(ctx: typer.Context) -> bool:
    return ctx.obj is not None and ctx.obj.output_format == "json"


@app.command("show")
def show(
    ctx: typer.Context,
    type_name: str = typer.Argument(..., help="Type name, e.g. if_octets"),
    typesdb: Optional[Path] = typer.Option(
        None, "--typesdb", help="Path to types.db (default: from config)"
    ),
) -> None:
    """Show the value labels of a type."""
    resolver = _load(typesdb)
    labels = resolver.labels_for(type_name)
    if labels is None:
        print_error(f"Unknown type: {type_name}")
        raise typer.Exit(1)

    if _is_json(ctx):
        print_json({"type": type_name, "labels": list(labels)})
        return

    print_table(
        [{"slot": i, "label": label} for i, label in enumerate(labels)],
        title=type_name,
    )


@app.command("list")
def list_types(
    ctx: typer.Context,
    typesdb: Optional[Path] = typer.Option(
        None, "--typesdb", help="Path to types.db (default: from config)"
    ),
) -> None:
    """List all types and their value labels."""
    resolver = _load(typesdb)
    rows = [
        {"type": name, "labels": ", ".join(resolver.labels_for(name) or ())}
        for name in resolver
    ]

    if _is_json(ctx):
        print_json(rows)
        return

    print_table(rows, title=f"{len(rows)} types")
