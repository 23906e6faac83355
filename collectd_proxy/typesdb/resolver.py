"""Type name to value label lookup."""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional


class TypeResolver:
    """Read-only table of collectd types and their data source names.

    Example:
        resolver = TypeResolver({"if_octets": ("rx", "tx")})
        resolver.labels_for("if_octets")  # ("rx", "tx")
        resolver.labels_for("nope")       # None
    """

    def __init__(self, table: Mapping[str, tuple[str, ...] | list[str]]):
        self._table = MappingProxyType(
            {name: tuple(labels) for name, labels in table.items()}
        )

    def labels_for(self, type_name: str) -> Optional[tuple[str, ...]]:
        """Return the ordered value labels for a type, or None if unknown."""
        return self._table.get(type_name)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._table))
