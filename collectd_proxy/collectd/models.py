"""Decoded collectd samples."""

from dataclasses import dataclass
from enum import IntEnum


class ValueKind(IntEnum):
    """collectd data source types, numbered as on the wire."""

    COUNTER = 0
    GAUGE = 1
    DERIVE = 2
    ABSOLUTE = 3

    @property
    def is_cumulative(self) -> bool:
        """COUNTER and DERIVE values only mean something as a rate."""
        return self in (ValueKind.COUNTER, ValueKind.DERIVE)


@dataclass(frozen=True)
class Value:
    """One value slot of a sample."""

    kind: ValueKind
    raw: float


@dataclass(frozen=True)
class Sample:
    """One metric report as sent by a collectd agent.

    Attributes:
        host: Reporting host (or container id)
        plugin: Plugin name, e.g. "cpu"
        plugin_instance: Optional plugin instance, e.g. "0"
        type: Type name looked up in types.db, e.g. "if_octets"
        type_instance: Optional type instance, e.g. "idle"
        values: Ordered value slots
        time: Seconds since the epoch
    """

    host: str
    plugin: str
    type: str
    values: tuple[Value, ...]
    time: float
    plugin_instance: str = ""
    type_instance: str = ""
    interval: float = 0.0

    @property
    def timestamp_ms(self) -> int:
        """Sample time in milliseconds since the epoch."""
        return int(self.time * 1000)
