"""Typed CRUD operations composed from the mapping engine and the transport."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from typed_airtable.core.config import ClientSettings, get_settings
from typed_airtable.core.errors import InvalidParameterError, ResourceNotFoundError
from typed_airtable.core.logging import get_logger
from typed_airtable.mapping.record_mapper import WarningCallback, map_record_from_remote, map_record_to_remote
from typed_airtable.models.tables import RemoteRecord, RemoteTable, TableDefinition
from typed_airtable.services.schema_cache import Clock, SchemaCache
from typed_airtable.services.tables import get_remote_table, list_requested_column_ids
from typed_airtable.services.transport import HttpTransport, Transport
from typed_airtable.services.validation import assert_matches_schema

logger = get_logger(__name__)


class AirtableClient:
    """Read and write application records for statically defined tables.

    Each client owns its transport and its schema cache. Settings default to
    :func:`get_settings`; keyword overrides are applied on top, e.g.
    ``AirtableClient(api_key="pat...", read_validation="warning")``.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        transport: Transport | None = None,
        on_warning: WarningCallback | None = None,
        clock: Clock | None = None,
        **overrides: Any,
    ) -> None:
        base_settings = settings or get_settings()
        self.settings = base_settings.model_copy(update=overrides) if overrides else base_settings
        self.transport: Transport = transport or HttpTransport(self.settings)
        self.on_warning = on_warning
        self.schema_cache = SchemaCache(
            self.transport.fetch_base_schema,
            ttl_ms=self.settings.schema_cache_ttl_ms,
            max_bases=self.settings.schema_cache_max_bases,
            clock=clock,
        )

    async def __aenter__(self) -> AirtableClient:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def get_remote_table(self, table: TableDefinition) -> RemoteTable:
        return await get_remote_table(table, self.schema_cache)

    def _from_remote(self, table: TableDefinition, record: RemoteRecord, remote_table: RemoteTable) -> dict[str, Any]:
        return map_record_from_remote(
            table,
            record,
            remote_table,
            read_validation=self.settings.read_validation,
            on_warning=self.on_warning,
        )

    async def get(self, table: TableDefinition, record_id: str) -> dict[str, Any]:
        if not record_id:
            raise InvalidParameterError(
                f"The record ID must be supplied when getting a record. This was thrown when trying to get "
                f"a '{table.name}' ({table.table_id}) record.",
                suggestion="Provide a valid record ID when calling get.",
            )

        remote_table = await self.get_remote_table(table)
        record = await self.transport.find_record(table.base_id, table.table_id, record_id)
        if record is None:
            raise ResourceNotFoundError(
                f"No record with ID '{record_id}' exists in table '{table.name}'.",
                suggestion="Verify that the record ID is correct and that the record exists in the table.",
            )
        return self._from_remote(table, record, remote_table)

    async def scan(self, table: TableDefinition, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """List records, requesting only the columns ``table`` maps.

        ``params`` such as ``filterByFormula``, ``sort``, ``view`` or
        ``maxRecords`` are passed to the remote service unchanged.
        """

        remote_table = await self.get_remote_table(table)
        records = await self.transport.list_records(
            table.base_id,
            table.table_id,
            fields=list_requested_column_ids(table, remote_table),
            params=params,
        )
        logger.debug("client.scan", table=table.name, records=len(records))
        return [self._from_remote(table, record, remote_table) for record in records]

    async def insert(self, table: TableDefinition, data: Mapping[str, Any]) -> dict[str, Any]:
        assert_matches_schema(table, data)
        fields_to_write = {key: value for key, value in data.items() if key != "id"}
        remote_table = await self.get_remote_table(table)
        record = await self.transport.create_record(
            table.base_id,
            table.table_id,
            map_record_to_remote(table, fields_to_write, remote_table),
        )
        return self._from_remote(table, record, remote_table)

    async def update(self, table: TableDefinition, data: Mapping[str, Any]) -> dict[str, Any]:
        """Write only the fields present in ``data``; ``data['id']`` names the record."""

        record_id = data.get("id") if isinstance(data, Mapping) else None
        if not record_id:
            raise InvalidParameterError(
                f"The record ID must be supplied when updating a record. This was thrown when trying to update "
                f"a '{table.name}' ({table.table_id}) record.",
                suggestion="Include the record's id in the data passed to update.",
            )

        assert_matches_schema(table, data)
        remote_table = await self.get_remote_table(table)
        record = await self.transport.update_record(
            table.base_id,
            table.table_id,
            record_id,
            map_record_to_remote(table, data, remote_table),
        )
        return self._from_remote(table, record, remote_table)

    async def remove(self, table: TableDefinition, record_id: str) -> dict[str, str]:
        if not record_id:
            raise InvalidParameterError(
                f"The record ID must be supplied when removing a record. This was thrown when trying to remove "
                f"a '{table.name}' ({table.table_id}) record.",
                suggestion="Provide a valid record ID when calling remove.",
            )

        deleted_id = await self.transport.delete_record(table.base_id, table.table_id, record_id)
        return {"id": deleted_id}
