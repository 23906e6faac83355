"""Time-series backend interface.

The pipeline hands every flushed batch to a BackendWriter. Writers are
expected to raise on failure; the caller logs and drops the batch.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from collectd_proxy.backends.models import OutputPoint


class BackendWriter(ABC):
    """Abstract base class for time-series backends."""

    @abstractmethod
    async def write(self, points: Sequence[OutputPoint]) -> None:
        """Write a batch of points.

        Args:
            points: Points to write, in arrival order

        Raises:
            BackendWriteError: If the backend rejected or never received the batch
        """
        pass

    @abstractmethod
    async def ping(self) -> None:
        """Check that the backend is reachable.

        Raises:
            BackendUnavailableError: If the backend does not answer
        """
        pass

    async def close(self) -> None:
        """Release connections held by the writer."""
        return None

    async def __aenter__(self) -> "BackendWriter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
