"""Shared fixtures for collectd-proxy tests."""

import asyncio
from typing import Sequence

import pytest

from collectd_proxy.backends.base import BackendWriter
from collectd_proxy.backends.models import OutputPoint
from collectd_proxy.collectd.models import Sample, Value, ValueKind
from collectd_proxy.typesdb.resolver import TypeResolver


class RecordingWriter(BackendWriter):
    """Backend writer that keeps every batch it receives."""

    def __init__(self, fail: bool = False):
        self.batches: list[list[OutputPoint]] = []
        self.fail = fail
        self.pings = 0
        self.closed = False

    async def write(self, points: Sequence[OutputPoint]) -> None:
        if self.fail:
            raise RuntimeError("backend down")
        self.batches.append(list(points))

    async def ping(self) -> None:
        self.pings += 1

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_sample(
    type: str = "if_octets",
    values: Sequence[tuple[ValueKind, float]] = ((ValueKind.GAUGE, 1.0),),
    time: float = 1700000000.0,
    host: str = "web.01",
    plugin: str = "interface",
    plugin_instance: str = "",
    type_instance: str = "",
) -> Sample:
    return Sample(
        host=host,
        plugin=plugin,
        plugin_instance=plugin_instance,
        type=type,
        type_instance=type_instance,
        values=tuple(Value(kind=kind, raw=raw) for kind, raw in values),
        time=time,
    )


async def drain(scheduler) -> None:
    """Let background write tasks finish."""
    while scheduler.in_flight:
        await asyncio.sleep(0)


@pytest.fixture
def types():
    """A small types.db table."""
    return TypeResolver(
        {
            "if_octets": ("rx", "tx"),
            "cpu": ("value",),
            "load": ("shortterm", "midterm", "longterm"),
        }
    )


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def failing_writer():
    return RecordingWriter(fail=True)


@pytest.fixture
def sample_factory():
    """Build samples with sensible defaults."""
    return make_sample


@pytest.fixture
def settle():
    """Await until a scheduler has no write tasks left."""
    return drain
