"""Container id to name refresh via the docker CLI.

collectd agents running inside containers report the container id as their
host name. This module periodically asks the Docker daemon for running
containers and installs an id -> name mapping in the pipeline's NameIndex.
"""

import asyncio
import json
from typing import Any, Optional

from collectd_proxy.exceptions import DockerError
from collectd_proxy.logging_config import get_logger, log_error
from collectd_proxy.pipeline.names import NameIndex

logger = get_logger(__name__)


class DockerNameRefresher:
    """
    Keep a NameIndex in sync with running Docker containers.

    A failed refresh leaves the previously installed mapping in place.

    Usage:
        refresher = DockerNameRefresher(names, docker_host="unix:///var/run/docker.sock")
        task = asyncio.create_task(refresher.run())
    """

    def __init__(
        self,
        name_index: NameIndex,
        docker_host: Optional[str] = None,
        interval: float = 60.0,
        command_timeout: float = 30.0,
    ):
        """
        Initialize refresher.

        Args:
            name_index: Index receiving the mapping
            docker_host: Daemon address passed as ``docker -H``; None uses the CLI default
            interval: Seconds between refreshes
            command_timeout: Timeout for each docker invocation
        """
        self.name_index = name_index
        self.docker_host = docker_host
        self.interval = interval
        self.command_timeout = command_timeout

    def _base_command(self) -> list[str]:
        command = ["docker"]
        if self.docker_host:
            command += ["-H", self.docker_host]
        return command

    async def _docker(self, *args: str) -> str:
        command = self._base_command() + list(args)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.command_timeout
            )
        except asyncio.TimeoutError:
            raise DockerError(
                f"docker {args[0]} timed out after {self.command_timeout}s",
                command=" ".join(command),
            )
        except OSError as e:
            raise DockerError(f"Failed to run docker: {e}", command=" ".join(command)) from e

        if process.returncode != 0:
            error_msg = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            raise DockerError(
                f"docker {args[0]} failed: {error_msg or 'Unknown error'}",
                command=" ".join(command),
                returncode=process.returncode,
            )

        return stdout.decode("utf-8", errors="replace")

    @staticmethod
    def names_from_inspect(containers: list[dict[str, Any]]) -> dict[str, str]:
        """Map ids of running containers to their names."""
        names = {}
        for info in containers:
            if not info.get("State", {}).get("Running"):
                continue
            name = info.get("Name", "").lstrip("/")
            if name:
                names[info["Id"]] = name
        return names

    async def fetch_names(self) -> dict[str, str]:
        """
        Query the daemon for running container names.

        Returns:
            Mapping of full container id to container name

        Raises:
            DockerError: If a docker command fails or returns invalid output
        """
        ids = (await self._docker("ps", "--all", "--quiet", "--no-trunc")).split()
        if not ids:
            return {}

        output = await self._docker("inspect", *ids)
        try:
            return self.names_from_inspect(json.loads(output))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise DockerError(f"Invalid docker inspect output: {e!r}") from e

    async def refresh_once(self) -> bool:
        """
        Refresh the name index once.

        Returns:
            True if the mapping was replaced, False if the refresh failed
        """
        try:
            names = await self.fetch_names()
        except DockerError as e:
            logger.warning(
                "docker_names_refresh_failed",
                error=e.message,
                kept_names=len(self.name_index),
            )
            return False

        self.name_index.replace(names)
        logger.debug("docker_names_refreshed", containers=len(names))
        return True

    async def run(self) -> None:
        """Refresh forever, every ``interval`` seconds."""
        while True:
            try:
                await self.refresh_once()
            except Exception as e:
                # a broken refresh must not stop sample ingestion
                log_error(logger, e, "docker_names_refresh", kept_names=len(self.name_index))
            await asyncio.sleep(self.interval)
