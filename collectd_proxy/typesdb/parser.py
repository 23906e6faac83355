"""Parser for collectd's types.db file.

Each non-comment line declares one type::

    if_octets  rx:DERIVE:0:U, tx:DERIVE:0:U

Only the data source names are kept; their order defines the value slots.
"""

from pathlib import Path

from collectd_proxy.exceptions import TypesDBError
from collectd_proxy.logging_config import get_logger
from collectd_proxy.typesdb.resolver import TypeResolver

logger = get_logger(__name__)

_DS_KINDS = {"COUNTER", "GAUGE", "DERIVE", "ABSOLUTE"}


def parse_types_db(text: str, source: str | None = None) -> dict[str, tuple[str, ...]]:
    """Parse types.db content.

    Args:
        text: File content
        source: Optional file name used in error messages

    Returns:
        Mapping of type name to ordered data source names

    Raises:
        TypesDBError: If a line is malformed
    """
    table: dict[str, tuple[str, ...]] = {}

    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue

        parts = line.split(None, 1)
        if len(parts) != 2:
            raise TypesDBError(
                f"Type {parts[0]!r} declares no data sources",
                path=source,
                line=lineno,
            )

        type_name, sources = parts
        labels = []
        for ds in sources.split(","):
            fields = ds.strip().split(":")
            if len(fields) != 4 or not fields[0]:
                raise TypesDBError(
                    f"Malformed data source {ds.strip()!r} for type {type_name!r}",
                    path=source,
                    line=lineno,
                )
            if fields[1].upper() not in _DS_KINDS:
                raise TypesDBError(
                    f"Unknown data source type {fields[1]!r} for type {type_name!r}",
                    path=source,
                    line=lineno,
                )
            labels.append(fields[0])

        table[type_name] = tuple(labels)

    return table


def load_types_db(path: Path) -> TypeResolver:
    """Load a types.db file into a resolver.

    Raises:
        TypesDBError: If the file cannot be read or parsed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TypesDBError(f"Failed to read types.db: {e}", path=str(path)) from e

    resolver = TypeResolver(parse_types_db(text, source=str(path)))
    logger.info("types_db_loaded", path=str(path), types=len(resolver))
    return resolver
