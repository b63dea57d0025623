"""Shared fixtures: a sample table definition and an in-memory transport."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from typed_airtable.core.config import ClientSettings
from typed_airtable.models.tables import RemoteColumn, RemoteRecord, RemoteTable, RemoteTableSchema, TableDefinition

PEOPLE_COLUMNS = [
    RemoteColumn(id="fldName", name="Name", type="singleLineText"),
    RemoteColumn(id="fldAge", name="Age", type="number"),
    RemoteColumn(id="fldActive", name="Active", type="checkbox"),
    RemoteColumn(id="fldTeam", name="Team", type="multipleRecordLinks"),
    RemoteColumn(id="fldScore1", name="Score 1", type="number"),
    RemoteColumn(id="fldScore2", name="Score 2", type="number"),
    RemoteColumn(id="fldTags", name="Tags", type="multipleSelects"),
]


class StubTransport:
    """In-memory transport that records every call it receives."""

    def __init__(self, schemas: dict[str, list[RemoteTableSchema]] | None = None) -> None:
        self.schemas = schemas or {}
        self.records: dict[str, RemoteRecord] = {}
        self.schema_fetches: list[str] = []
        self.calls: list[tuple[str, Any]] = []
        self.closed = False
        self._next_id = 1

    async def fetch_base_schema(self, base_id: str) -> list[RemoteTableSchema]:
        self.schema_fetches.append(base_id)
        return list(self.schemas.get(base_id, []))

    async def find_record(self, base_id: str, table_id: str, record_id: str) -> RemoteRecord | None:
        self.calls.append(("find", record_id))
        return self.records.get(record_id)

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        *,
        fields: Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> list[RemoteRecord]:
        self.calls.append(("list", {"fields": list(fields), "params": dict(params or {})}))
        return list(self.records.values())

    async def create_record(self, base_id: str, table_id: str, fields: Mapping[str, Any]) -> RemoteRecord:
        self.calls.append(("create", dict(fields)))
        record = RemoteRecord(id=f"recNew{self._next_id}", fields=dict(fields))
        self._next_id += 1
        self.records[record.id] = record
        return record

    async def update_record(
        self, base_id: str, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> RemoteRecord:
        self.calls.append(("update", (record_id, dict(fields))))
        existing = self.records[record_id]
        record = RemoteRecord(id=record_id, fields={**existing.fields, **fields})
        self.records[record_id] = record
        return record

    async def delete_record(self, base_id: str, table_id: str, record_id: str) -> str:
        self.calls.append(("delete", record_id))
        self.records.pop(record_id, None)
        return record_id

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def people_table() -> TableDefinition:
    return TableDefinition(
        name="person",
        baseId="app123",
        tableId="tbl456",
        schema={
            "name": "string",
            "age": "number | null",
            "active": "boolean",
            "team": "string | null",
            "scores": "number[]",
            "tags": "string[]",
        },
        mappings={
            "name": "fldName",
            "age": "fldAge",
            "active": "fldActive",
            "team": "fldTeam",
            "scores": ["fldScore1", "fldScore2"],
            "tags": "fldTags",
        },
    )


@pytest.fixture
def people_schema() -> RemoteTableSchema:
    return RemoteTableSchema(id="tbl456", name="People", primaryFieldId="fldName", fields=list(PEOPLE_COLUMNS))


@pytest.fixture
def people_remote(people_table: TableDefinition) -> RemoteTable:
    return RemoteTable(columns=tuple(PEOPLE_COLUMNS), definition=people_table)


@pytest.fixture
def stub_transport(people_schema: RemoteTableSchema) -> StubTransport:
    return StubTransport({"app123": [people_schema]})


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(_env_file=None, api_key="patTest")
