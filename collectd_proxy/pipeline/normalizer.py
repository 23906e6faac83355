"""Rate conversion for cumulative collectd values."""

import math
from dataclasses import dataclass
from typing import Optional

from collectd_proxy.collectd.models import ValueKind


@dataclass(frozen=True)
class CacheEntry:
    """Last value seen for a series."""

    timestamp_ms: int
    value: float


class RateNormalizer:
    """Turn COUNTER and DERIVE samples into per-second rates.

    Keeps the previous (timestamp, raw value) for every series key. The first
    sample of a series only seeds the cache and is reported as not ready.
    Entries are never evicted.

    Not thread-safe; the pipeline calls it from a single consumer.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._cache: dict[str, CacheEntry] = {}

    def normalize(
        self,
        key: str,
        kind: ValueKind,
        timestamp_ms: int,
        raw: float,
    ) -> Optional[float]:
        """Normalize one value.

        Args:
            key: Series cache key, "host.plugin[-instance].type[-instance]"
            kind: Value kind from the sample
            timestamp_ms: Sample time in milliseconds
            raw: Raw value

        Returns:
            The value to emit, or None when there is no baseline yet
        """
        if not self.enabled or not kind.is_cumulative:
            return raw

        before = self._cache.get(key)
        # the baseline moves forward even when nothing is emitted
        self._cache[key] = CacheEntry(timestamp_ms=timestamp_ms, value=raw)

        if before is None or math.isnan(before.value):
            return None

        elapsed_ms = timestamp_ms - before.timestamp_ms
        if elapsed_ms > 0:
            return (raw - before.value) / (elapsed_ms / 1000)
        return raw - before.value

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._cache.get(key)

    def __len__(self) -> int:
        return len(self._cache)
