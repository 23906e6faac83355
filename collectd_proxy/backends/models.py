"""Points produced by the pipeline."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OutputPoint:
    """One data point ready for the time-series backend.

    Attributes:
        name: Series name, "plugin[-instance].type[-instance]"
        timestamp_ms: Milliseconds since the epoch
        value: Measured (or normalized) value
        host: Host label after name substitution
    """

    name: str
    timestamp_ms: int
    value: float
    host: str

    COLUMNS = ("time", "value", "host")

    def to_row(self) -> list[Any]:
        """Values in COLUMNS order."""
        return [self.timestamp_ms, self.value, self.host]
