"""Pytest fixtures for CLI tests."""

from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

import collectd_proxy.config


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every CLI test with fresh settings and unconfigured logging."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    collectd_proxy.config.reset_settings()

    # structlog stays unconfigured so other tests can capture logs;
    # captured entries keep log lines out of the command output
    with patch("collectd_proxy.cli.main.setup_logging"), capture_logs():
        yield

    collectd_proxy.config.reset_settings()
    collectd_proxy.config._config_path = None


@pytest.fixture
def typesdb_file(tmp_path):
    path = tmp_path / "types.db"
    path.write_text(
        "cpu        value:DERIVE:0:U\n"
        "if_octets  rx:DERIVE:0:U, tx:DERIVE:0:U\n"
    )
    return path
