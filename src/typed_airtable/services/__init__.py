"""Service exports."""

from . import client, schema_cache, tables, transport, validation

__all__ = ["client", "schema_cache", "tables", "transport", "validation"]
