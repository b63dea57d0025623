"""Tests for translating field names to and from remote identifiers."""

from __future__ import annotations

import pytest

from typed_airtable.core.errors import SchemaValidationError
from typed_airtable.mapping.name_mapper import (
    list_requested_column_ids,
    map_field_names_from_remote,
    map_field_names_to_remote,
)
from typed_airtable.models.tables import RemoteColumn, RemoteTable, TableDefinition

MOCK_ITEM = {"id": "rec789", "someProp": "abcd", "otherProps": [314, 159], "another": True}
MOCK_RECORD = {"id": "rec789", "Some_Airtable_Field": "abcd", "Field1": 314, "Field2": 159, "another": True}


@pytest.fixture
def mock_table() -> TableDefinition:
    return TableDefinition(
        name="Mock",
        baseId="app123",
        tableId="tbl456",
        schema={"someProp": "string", "otherProps": "number[]", "another": "boolean"},
    )


@pytest.fixture
def mapped_table(mock_table: TableDefinition) -> TableDefinition:
    return mock_table.model_copy(
        update={"mappings": {"someProp": "Some_Airtable_Field", "otherProps": ["Field1", "Field2"], "another": "another"}}
    )


def test_from_remote_without_mappings(mock_table: TableDefinition) -> None:
    assert map_field_names_from_remote(mock_table, MOCK_ITEM) == MOCK_ITEM


def test_from_remote_folds_list_mappings(mapped_table: TableDefinition) -> None:
    assert map_field_names_from_remote(mapped_table, MOCK_RECORD) == MOCK_ITEM


def test_to_remote_without_mappings(mock_table: TableDefinition) -> None:
    assert map_field_names_to_remote(mock_table, MOCK_ITEM) == MOCK_ITEM


def test_to_remote_spreads_list_mappings(mapped_table: TableDefinition) -> None:
    assert map_field_names_to_remote(mapped_table, MOCK_ITEM) == MOCK_RECORD


def test_to_remote_skips_absent_fields(mapped_table: TableDefinition) -> None:
    assert map_field_names_to_remote(mapped_table, {"id": "rec789", "another": False}) == {
        "id": "rec789",
        "another": False,
    }


def test_to_remote_rejects_array_length_mismatch(mapped_table: TableDefinition) -> None:
    with pytest.raises(SchemaValidationError) as exc_info:
        map_field_names_to_remote(mapped_table, {**MOCK_ITEM, "otherProps": [123, 456, 789]})

    message = str(exc_info.value)
    assert "3 values" in message
    assert "2 mappings" in message
    assert "'otherProps'" in message
    assert exc_info.value.suggestion


def test_to_remote_rejects_non_array_for_list_mapping(mapped_table: TableDefinition) -> None:
    with pytest.raises(SchemaValidationError, match="Expected an array"):
        map_field_names_to_remote(mapped_table, {**MOCK_ITEM, "otherProps": 123})


def test_to_remote_rejects_null_for_non_nullable_list_mapping(mapped_table: TableDefinition) -> None:
    with pytest.raises(SchemaValidationError, match="non-nullable"):
        map_field_names_to_remote(mapped_table, {**MOCK_ITEM, "otherProps": None})


def test_to_remote_spreads_null_over_nullable_list_mapping(mapped_table: TableDefinition) -> None:
    table = mapped_table.model_copy(
        update={"field_types": {**mapped_table.field_types, "otherProps": "number[] | null"}}
    )

    assert map_field_names_to_remote(table, {**MOCK_ITEM, "otherProps": None}) == {
        **MOCK_RECORD,
        "Field1": None,
        "Field2": None,
    }


def test_list_requested_column_ids_uses_names_without_mappings() -> None:
    table = TableDefinition(name="users", baseId="appTest", tableId="tblTest", schema={"name": "string", "age": "number"})
    remote = RemoteTable(
        columns=(
            RemoteColumn(id="fldName", name="name", type="singleLineText"),
            RemoteColumn(id="fldAge", name="age", type="number"),
        ),
        definition=table,
    )

    assert list_requested_column_ids(table, remote) == ["name", "age"]


def test_list_requested_column_ids_uses_mapped_identifiers() -> None:
    table = TableDefinition(
        name="users",
        baseId="appTest",
        tableId="tblTest",
        schema={"firstName": "string", "lastName": "string"},
        mappings={"firstName": "fldFirst", "lastName": "fldLast"},
    )
    remote = RemoteTable(
        columns=(
            RemoteColumn(id="fldFirst", name="First Name", type="singleLineText"),
            RemoteColumn(id="fldLast", name="Last Name", type="singleLineText"),
        ),
        definition=table,
    )

    assert list_requested_column_ids(table, remote) == ["fldFirst", "fldLast"]


def test_list_requested_column_ids_drops_deleted_columns() -> None:
    table = TableDefinition(
        name="records",
        baseId="appTest",
        tableId="tblTest",
        schema={"name": "string", "deletedField": "string", "anotherDeletedField": "number"},
        mappings={"name": "fldName", "deletedField": "fldDeleted", "anotherDeletedField": "fldAnotherDeleted"},
    )
    remote = RemoteTable(columns=(RemoteColumn(id="fldName", name="Name", type="singleLineText"),), definition=table)

    assert list_requested_column_ids(table, remote) == ["fldName"]


def test_list_requested_column_ids_requests_unmapped_fields_by_name() -> None:
    table = TableDefinition(
        name="users",
        baseId="appTest",
        tableId="tblTest",
        schema={"name": "string", "age": "number"},
        mappings={"name": "fldName"},
    )
    remote = RemoteTable(
        columns=(
            RemoteColumn(id="fldName", name="Full Name", type="singleLineText"),
            RemoteColumn(id="fldAge", name="age", type="number"),
        ),
        definition=table,
    )

    assert list_requested_column_ids(table, remote) == ["fldName", "age"]
