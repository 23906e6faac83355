"""CLI module for collectd-proxy."""

from collectd_proxy.cli import proxy, typesdb
from collectd_proxy.cli.main import app, main_cli

__all__ = [
    "app",
    "main_cli",
    "proxy",
    "typesdb",
]
