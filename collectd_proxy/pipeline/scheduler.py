"""Point batching with count and interval flush triggers."""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from collectd_proxy.backends.base import BackendWriter
from collectd_proxy.backends.models import OutputPoint
from collectd_proxy.logging_config import get_logger, log_error

logger = get_logger(__name__)


@dataclass
class SchedulerMetrics:
    """Batching and write counters."""

    points_offered: int = 0
    flushes_by_count: int = 0
    flushes_by_interval: int = 0
    batches_written: int = 0
    batches_failed: int = 0
    points_written: int = 0


class BatchScheduler:
    """Accumulate points and write them in the background.

    A flush happens on offer() when either write_limit points are pending or
    write_interval seconds passed since the window started. The detached
    batch is written by its own task; offer() never waits for it and
    concurrent writes are not ordered against each other. Failed writes are
    logged and the batch is dropped.

    There is no timer: pending points are only flushed when the next offer()
    arrives.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        writer: BackendWriter,
        write_limit: int = 50,
        write_interval: float = 1.0,
        verbose: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            writer: Backend receiving flushed batches
            write_limit: Pending point count that triggers a flush
            write_interval: Seconds since the last flush that trigger a flush
            verbose: Log every completed write
            clock: Monotonic time source in seconds
        """
        self.writer = writer
        self.write_limit = write_limit
        self.write_interval = write_interval
        self.verbose = verbose
        self.metrics = SchedulerMetrics()

        self._clock = clock
        self._pending: list[OutputPoint] = []
        self._window_start = clock()
        self._tasks: set[asyncio.Task] = set()

    def offer(self, points: Iterable[OutputPoint]) -> None:
        """Queue points and flush if a trigger fired."""
        before = len(self._pending)
        self._pending.extend(points)
        self.metrics.points_offered += len(self._pending) - before

        by_count = len(self._pending) >= self.write_limit
        by_interval = self._clock() - self._window_start >= self.write_interval
        if not (by_count or by_interval):
            return

        if self._pending:
            if by_count:
                self.metrics.flushes_by_count += 1
            else:
                self.metrics.flushes_by_interval += 1

            batch, self._pending = self._pending, []
            self._dispatch(batch)

        self._window_start = self._clock()

    def _dispatch(self, batch: list[OutputPoint]) -> None:
        task = asyncio.create_task(self._write(batch))
        # keep a reference until done so the task is not garbage collected
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _write(self, batch: list[OutputPoint]) -> None:
        try:
            await self.writer.write(batch)
        except Exception as e:
            self.metrics.batches_failed += 1
            log_error(logger, e, "write_batch", points=len(batch))
            return

        self.metrics.batches_written += 1
        self.metrics.points_written += len(batch)
        if self.verbose:
            logger.debug("batch_written", points=len(batch))

    @property
    def pending(self) -> int:
        """Number of points waiting for the next flush."""
        return len(self._pending)

    @property
    def in_flight(self) -> int:
        """Number of write tasks that have not finished."""
        return len(self._tasks)
