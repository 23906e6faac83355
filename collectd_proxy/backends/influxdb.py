"""InfluxDB 0.8 HTTP writer."""

from typing import Any, Optional, Sequence

import httpx

from collectd_proxy.backends.base import BackendWriter
from collectd_proxy.exceptions import BackendUnavailableError, BackendWriteError
from collectd_proxy.logging_config import get_logger
from collectd_proxy.backends.models import OutputPoint

logger = get_logger(__name__)


class InfluxDBWriter(BackendWriter):
    """Write points through the InfluxDB 0.8 series API.

    Every point is sent as its own series object::

        {"name": "cpu-0.cpu-idle",
         "columns": ["time", "value", "host"],
         "points": [[1700000000000, 98.5, "web_01"]]}

    Usage:
        writer = InfluxDBWriter("http://localhost:8086", "collectd", "root", "root")
        await writer.ping()
        await writer.write(points)
        await writer.close()
    """

    def __init__(
        self,
        base_url: str,
        database: str,
        username: str = "root",
        password: str = "root",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the writer.

        Args:
            base_url: InfluxDB URL, e.g. "http://localhost:8086"
            database: Target database
            username: InfluxDB user
            password: InfluxDB password
            timeout: Request timeout in seconds (None disables it)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.database = database
        self._auth_params = {"u": username, "p": password}
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def to_series(points: Sequence[OutputPoint]) -> list[dict[str, Any]]:
        """Encode points as InfluxDB series objects."""
        return [
            {
                "name": point.name,
                "columns": list(OutputPoint.COLUMNS),
                "points": [point.to_row()],
            }
            for point in points
        ]

    async def write(self, points: Sequence[OutputPoint]) -> None:
        if not points:
            return

        try:
            response = await self._client.post(
                f"/db/{self.database}/series",
                params={**self._auth_params, "time_precision": "ms"},
                json=self.to_series(points),
            )
        except httpx.HTTPError as e:
            raise BackendWriteError(
                f"Failed to reach InfluxDB: {e}", points=len(points)
            ) from e

        if response.status_code >= 300:
            raise BackendWriteError(
                f"InfluxDB rejected write: {response.status_code} {response.text.strip()}",
                status_code=response.status_code,
                points=len(points),
            )

    async def ping(self) -> None:
        try:
            response = await self._client.get("/ping")
        except httpx.HTTPError as e:
            raise BackendUnavailableError(self.base_url, str(e)) from e

        if response.status_code >= 300:
            raise BackendUnavailableError(
                self.base_url, f"ping returned {response.status_code}"
            )

        logger.debug("influxdb_ping_ok", url=self.base_url)

    async def close(self) -> None:
        await self._client.aclose()
