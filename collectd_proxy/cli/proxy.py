"""Proxy commands for collectd-proxy."""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from collectd_proxy.cli.output import print_dict, print_error, print_info
from collectd_proxy.config import Settings, get_settings
from collectd_proxy.exceptions import ProxyError
from collectd_proxy.logging_config import get_logger
from collectd_proxy.server import serve

app = typer.Typer(help="Run the collectd to InfluxDB proxy")
logger = get_logger(__name__)


def _settings_from_context(ctx: typer.Context) -> Settings:
    if ctx.obj is not None and ctx.obj.settings is not None:
        return ctx.obj.settings
    return get_settings()


@app.command()
def start(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="UDP port for collectd", min=1, max=65535
    ),
    typesdb: Optional[Path] = typer.Option(
        None,
        "--typesdb",
        help="Path to collectd's types.db",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    influxdb: Optional[str] = typer.Option(
        None, "--influxdb", help="host:port for InfluxDB"
    ),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="InfluxDB user"),
    password: Optional[str] = typer.Option(None, "--password", help="InfluxDB password"),
    database: Optional[str] = typer.Option(
        None, "--database", "-d", help="InfluxDB database"
    ),
    https: Optional[bool] = typer.Option(
        None, "--https/--http", help="Connect to InfluxDB over https"
    ),
    normalize: Optional[bool] = typer.Option(
        None,
        "--normalize/--no-normalize",
        help="Convert COUNTER and DERIVE values to per-second rates",
    ),
    docker: Optional[str] = typer.Option(
        None,
        "--docker",
        help="Docker socket for container name lookup, e.g. unix:///var/run/docker.sock",
    ),
    write_limit: Optional[int] = typer.Option(
        None, "--write-limit", help="Flush after this many points", min=1
    ),
    write_interval: Optional[float] = typer.Option(
        None, "--write-interval", help="Flush after this many seconds", min=0.001
    ),
) -> None:
    """
    Listen for collectd packets and forward them to InfluxDB.

    Options override the values from the configuration file and environment.

    Example:
        collectd-proxy proxy start --database collectd --typesdb /usr/share/collectd/types.db
    """
    overrides: dict[str, Any] = {
        "proxy_port": port,
        "typesdb_path": typesdb,
        "influxdb_host": influxdb,
        "influxdb_username": username,
        "influxdb_password": password,
        "influxdb_database": database,
        "influxdb_https": https,
        "normalize": normalize,
        "docker_host": docker,
        "write_limit": write_limit,
        "write_interval_seconds": write_interval,
    }
    base = _settings_from_context(ctx)
    try:
        # model_copy(update=...) would skip the field validators
        settings = Settings(
            **{
                **base.model_dump(),
                **{key: value for key, value in overrides.items() if value is not None},
            }
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print_error(f"Invalid option {field}: {error['msg']}")
        raise typer.Exit(1)

    print_info(f"Starting proxy on udp://{settings.proxy_host}:{settings.proxy_port}")
    print_dict(
        {
            "InfluxDB": settings.influxdb_url,
            "Database": settings.influxdb_database or "(none)",
            "types.db": str(settings.typesdb_path),
            "Normalize": settings.normalize,
            "Batch": f"{settings.write_limit} points / {settings.write_interval_seconds}s",
            "Docker": settings.docker_host or "disabled",
        },
        title="Proxy Settings",
    )

    try:
        asyncio.run(serve(settings))
    except ProxyError as e:
        print_error(f"Proxy failed to start: {e.message}")
        logger.error("proxy_start_failed", error=e.message, **e.context)
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Cannot listen on port {settings.proxy_port}: {e}")
        raise typer.Exit(1)
