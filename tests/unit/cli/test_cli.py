"""Tests for collectd-proxy CLI commands."""

import json
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from collectd_proxy.cli.main import app
from collectd_proxy.exceptions import BackendUnavailableError

runner = CliRunner()


class TestMain:
    """Tests for the top-level callback."""

    def test_version(self):
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "collectd-proxy version" in result.stdout

    def test_invalid_output_format(self, typesdb_file):
        """An unknown output format is rejected."""
        result = runner.invoke(
            app, ["--output", "xml", "types", "list", "--typesdb", str(typesdb_file)]
        )

        assert result.exit_code == 2


class TestTypesCommands:
    """Tests for the types sub-commands."""

    def test_show(self, typesdb_file):
        """show prints the labels of a type."""
        result = runner.invoke(app, ["types", "show", "if_octets", "--typesdb", str(typesdb_file)])

        assert result.exit_code == 0
        assert "rx" in result.stdout
        assert "tx" in result.stdout

    def test_show_json(self, typesdb_file):
        """show honours --output json."""
        result = runner.invoke(
            app,
            ["--output", "json", "types", "show", "cpu", "--typesdb", str(typesdb_file)],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"type": "cpu", "labels": ["value"]}

    def test_show_unknown_type(self, typesdb_file):
        """Unknown types exit with an error."""
        result = runner.invoke(app, ["types", "show", "nope", "--typesdb", str(typesdb_file)])

        assert result.exit_code == 1

    def test_list(self, typesdb_file):
        """list prints every type."""
        result = runner.invoke(app, ["types", "list", "--typesdb", str(typesdb_file)])

        assert result.exit_code == 0
        assert "cpu" in result.stdout
        assert "if_octets" in result.stdout

    def test_missing_types_db(self, tmp_path):
        """A missing types.db exits with an error."""
        result = runner.invoke(app, ["types", "list", "--typesdb", str(tmp_path / "none.db")])

        assert result.exit_code == 1


class TestProxyStart:
    """Tests for proxy start."""

    def test_options_override_settings(self, typesdb_file):
        """Command line options are applied on top of the settings."""
        with patch("collectd_proxy.cli.proxy.serve", new_callable=AsyncMock) as mock_serve:
            result = runner.invoke(
                app,
                [
                    "proxy",
                    "start",
                    "--port",
                    "25826",
                    "--typesdb",
                    str(typesdb_file),
                    "--influxdb",
                    "influx:8086",
                    "--database",
                    "metrics",
                    "--https",
                    "--no-normalize",
                    "--write-limit",
                    "100",
                ],
            )

        assert result.exit_code == 0, result.stdout
        settings = mock_serve.await_args.args[0]
        assert settings.proxy_port == 25826
        assert settings.typesdb_path == typesdb_file
        assert settings.influxdb_url == "https://influx:8086"
        assert settings.influxdb_database == "metrics"
        assert settings.normalize is False
        assert settings.write_limit == 100
        assert settings.write_interval_seconds == 1.0
        assert "Starting proxy on udp://0.0.0.0:25826" in result.stdout

    def test_defaults(self):
        """Without options the configured defaults are used."""
        with patch("collectd_proxy.cli.proxy.serve", new_callable=AsyncMock) as mock_serve:
            result = runner.invoke(app, ["proxy", "start"])

        assert result.exit_code == 0
        settings = mock_serve.await_args.args[0]
        assert settings.proxy_port == 8096
        assert settings.normalize is True
        assert settings.docker_host is None

    def test_verbose_enables_tracing(self):
        """--verbose turns on point tracing."""
        with patch("collectd_proxy.cli.proxy.serve", new_callable=AsyncMock) as mock_serve:
            result = runner.invoke(app, ["--verbose", "proxy", "start"])

        assert result.exit_code == 0
        settings = mock_serve.await_args.args[0]
        assert settings.verbose is True

    def test_startup_failure(self):
        """Startup errors exit with status 1."""
        with patch(
            "collectd_proxy.cli.proxy.serve",
            AsyncMock(side_effect=BackendUnavailableError("http://localhost:8086", "refused")),
        ):
            result = runner.invoke(app, ["proxy", "start"])

        assert result.exit_code == 1
        assert "Proxy failed to start" in result.output

    def test_invalid_override_is_rejected(self):
        """Options go through the same validation as the config file."""
        with patch("collectd_proxy.cli.proxy.serve", new_callable=AsyncMock) as mock_serve:
            result = runner.invoke(
                app, ["proxy", "start", "--influxdb", "http://influx:8086"]
            )

        assert result.exit_code == 1
        assert "influxdb_host" in result.output
        mock_serve.assert_not_called()

    def test_verbose_from_environment(self, monkeypatch):
        """VERBOSE in the environment reaches the proxy without the flag."""
        monkeypatch.setenv("VERBOSE", "true")

        with patch("collectd_proxy.cli.proxy.serve", new_callable=AsyncMock) as mock_serve:
            result = runner.invoke(app, ["proxy", "start"])

        assert result.exit_code == 0
        assert mock_serve.await_args.args[0].verbose is True
