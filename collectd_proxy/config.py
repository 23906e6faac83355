"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any, Literal, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# YAML section -> {yaml key: settings field}
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "proxy": {
        "host": "proxy_host",
        "port": "proxy_port",
        "typesdb": "typesdb_path",
        "queue_size": "packet_queue_size",
        "normalize": "normalize",
        "verbose": "verbose",
    },
    "influxdb": {
        "host": "influxdb_host",
        "username": "influxdb_username",
        "password": "influxdb_password",
        "database": "influxdb_database",
        "https": "influxdb_https",
        "timeout_seconds": "influxdb_timeout_seconds",
    },
    "batching": {
        "write_limit": "write_limit",
        "write_interval_seconds": "write_interval_seconds",
    },
    "docker": {
        "host": "docker_host",
        "refresh_interval_seconds": "docker_refresh_interval_seconds",
    },
    "logging": {
        "level": "log_level",
        "format": "log_format",
        "file": "log_file",
    },
}


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Priority:
    1. Explicitly provided config_path
    2. ~/.collectd-proxy/config.yaml (default location)
    3. Empty dict if no file exists

    Args:
        config_path: Optional path to config file

    Returns:
        Dictionary of configuration values (flattened from nested YAML)
    """
    if config_path is None:
        config_path = Path.home() / ".collectd-proxy" / "config.yaml"

    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            yaml_data = yaml.safe_load(f) or {}

        flattened = {}

        for section, keys in _YAML_SECTIONS.items():
            values = yaml_data.get(section)
            if not isinstance(values, dict):
                continue
            for yaml_key, field_name in keys.items():
                if yaml_key in values:
                    flattened[field_name] = values[yaml_key]

        return flattened

    except Exception as e:
        import warnings

        warnings.warn(f"Failed to load config from {config_path}: {e}")
        return {}


_config_path: Path | None = None


class YamlSettingsSource(PydanticBaseSettingsSource):
    """
    Custom settings source that loads configuration from YAML file.

    This allows YAML config to be loaded with proper priority in the settings chain.
    """

    def get_field_value(self, field: Any, field_name: str) -> Tuple[Any, str, bool]:
        """Not used since we override __call__."""
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        return load_yaml_config(_config_path)


class Settings(BaseSettings):
    """
    collectd-proxy configuration settings.

    Configuration priority (highest to lowest):
    1. Environment variables (e.g., PROXY_PORT=25826)
    2. YAML configuration file (~/.collectd-proxy/config.yaml)
    3. Default values defined in this class
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    proxy_host: str = Field(default="0.0.0.0", description="UDP bind address")
    proxy_port: int = Field(default=8096, ge=1, le=65535, description="UDP port for collectd")
    typesdb_path: Path = Field(
        default=Path("types.db"),
        description="Path to collectd's types.db",
    )
    packet_queue_size: int = Field(
        default=100,
        ge=1,
        description="Decoded samples buffered between listener and pipeline",
    )
    normalize: bool = Field(
        default=True,
        description="Convert COUNTER and DERIVE values to per-second rates",
    )
    verbose: bool = Field(default=False, description="Trace every sample and point")

    influxdb_host: str = Field(default="localhost:8086", description="InfluxDB host:port")
    influxdb_username: str = Field(default="root", description="InfluxDB user")
    influxdb_password: str = Field(default="root", description="InfluxDB password")
    influxdb_database: str = Field(default="", description="InfluxDB database")
    influxdb_https: bool = Field(default=False, description="Connect to InfluxDB over https")
    influxdb_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="HTTP timeout for InfluxDB writes (None waits forever)",
    )

    write_limit: int = Field(
        default=50,
        ge=1,
        description="Flush once this many points are pending",
    )
    write_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Flush once this much time passed since the last flush",
    )

    docker_host: str | None = Field(
        default=None,
        description="Docker daemon socket, e.g. unix:///var/run/docker.sock",
    )
    docker_refresh_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between container name refreshes",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(default="text", description="Log format")
    log_file: Path | None = Field(default=None, description="Log file (stderr if unset)")

    @field_validator("typesdb_path", "log_file")
    @classmethod
    def validate_paths(cls, v: Path | None) -> Path | None:
        """Expand ~ in paths."""
        if v is not None and not v.is_absolute():
            v = v.expanduser()
        return v

    @field_validator("influxdb_host")
    @classmethod
    def validate_influxdb_host(cls, v: str) -> str:
        """Reject hosts given with a URL scheme; use influxdb_https instead."""
        if "://" in v:
            raise ValueError("InfluxDB host must be host:port without a scheme")
        return v

    @property
    def influxdb_url(self) -> str:
        """Base URL of the InfluxDB HTTP API."""
        scheme = "https" if self.influxdb_https else "http"
        return f"{scheme}://{self.influxdb_host}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources priority.

        Priority order (highest to lowest):
        1. Explicit kwargs (init_settings) - for testing and programmatic config
        2. Environment variables
        3. YAML configuration file
        4. .env file
        5. Field defaults
        """
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls),
            dotenv_settings,
        )


_settings: Settings | None = None


def get_settings(config_path: Path | None = None, reload: bool = False) -> Settings:
    """
    Get global settings instance.

    Configuration loading order (highest to lowest priority):
    1. Environment variables (e.g., PROXY_PORT=25826)
    2. YAML configuration file (~/.collectd-proxy/config.yaml)
    3. .env file
    4. Default values defined in Settings class

    Args:
        config_path: Optional path to YAML config file
        reload: If True, force reload settings (useful for testing)

    Returns:
        Settings instance with merged configuration
    """
    global _settings, _config_path
    if _settings is None or reload:
        _config_path = config_path

        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
