"""collectd type definitions."""

from collectd_proxy.typesdb.parser import load_types_db, parse_types_db
from collectd_proxy.typesdb.resolver import TypeResolver

__all__ = ["TypeResolver", "load_types_db", "parse_types_db"]
