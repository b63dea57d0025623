"""Resolve table definitions against the live remote schema."""

from __future__ import annotations

from typed_airtable.core.errors import ResourceNotFoundError
from typed_airtable.mapping.name_mapper import list_requested_column_ids
from typed_airtable.models.tables import RemoteTable, TableDefinition
from typed_airtable.services.schema_cache import SchemaCache


async def get_remote_table(table: TableDefinition, schema_cache: SchemaCache) -> RemoteTable:
    """Pair ``table`` with its remote columns.

    The remote schema decides which coercion pair applies to each column, and
    it is also the only way to tell a column that is empty in every record
    (e.g. an unticked checkbox) from one that does not exist at all.
    """

    tables = await schema_cache.get(table.base_id)
    remote_schema = next((candidate for candidate in tables if candidate.id == table.table_id), None)
    if remote_schema is None:
        raise ResourceNotFoundError(
            f"Table {table.label} does not exist in base {table.base_id}.",
            suggestion="Verify that the base ID and table ID are correct.",
        )

    return RemoteTable(columns=tuple(remote_schema.fields), definition=table)


__all__ = ["get_remote_table", "list_requested_column_ids"]
