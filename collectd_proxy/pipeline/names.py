"""Host id to display name index."""

import threading
from types import MappingProxyType
from typing import Mapping


class NameIndex:
    """Snapshot of raw host ids to friendly names.

    A refresher installs a complete new mapping with replace(); readers call
    resolve(). Both take the same lock, but only long enough to swap or read
    the snapshot reference, so a reader never sees a half-built mapping.
    """

    def __init__(self, names: Mapping[str, str] | None = None):
        self._lock = threading.Lock()
        self._names: Mapping[str, str] = MappingProxyType(dict(names or {}))

    def resolve(self, raw_host: str) -> str:
        """Return the display name for a host id, or the id itself."""
        with self._lock:
            names = self._names
        return names.get(raw_host, raw_host)

    def replace(self, names: Mapping[str, str]) -> None:
        """Install a new mapping, discarding the previous one."""
        snapshot = MappingProxyType(dict(names))
        with self._lock:
            self._names = snapshot

    def snapshot(self) -> Mapping[str, str]:
        """Current mapping (read-only)."""
        with self._lock:
            return self._names

    def __len__(self) -> int:
        return len(self.snapshot())
