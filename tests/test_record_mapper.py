"""Tests for whole-record mapping, including warning mode."""

from __future__ import annotations

import asyncio

import pytest

from typed_airtable.core.errors import (
    AirtableTsError,
    ErrorKind,
    ResourceNotFoundError,
    SchemaValidationError,
)
from typed_airtable.mapping.record_mapper import map_record_from_remote, map_record_to_remote
from typed_airtable.models.tables import RemoteColumn, RemoteRecord, RemoteTable, TableDefinition


@pytest.fixture
def example_table() -> TableDefinition:
    return TableDefinition(
        name="example",
        baseId="app123",
        tableId="tbl456",
        schema={"a": "string", "b": "number", "c": "boolean", "d": "string"},
        mappings={"a": "fldA", "b": "fldB", "c": "fldC", "d": "fldD"},
    )


@pytest.fixture
def example_remote(example_table: TableDefinition) -> RemoteTable:
    return RemoteTable(
        columns=(
            RemoteColumn(id="fldA", name="a", type="singleLineText"),
            RemoteColumn(id="fldB", name="b", type="number"),
            RemoteColumn(id="fldC", name="c", type="checkbox"),
            RemoteColumn(id="fldD", name="d", type="multipleRecordLinks"),
        ),
        definition=example_table,
    )


def test_from_remote_maps_cells_by_column_name(example_table: TableDefinition, example_remote: RemoteTable) -> None:
    # c is an unticked checkbox, so the service omits it
    record = RemoteRecord(id="rec012", fields={"a": "Some text", "b": 123, "d": ["rec345"]})

    assert map_record_from_remote(example_table, record, example_remote) == {
        "id": "rec012",
        "a": "Some text",
        "b": 123,
        "c": False,
        "d": "rec345",
    }


def test_from_remote_maps_cells_by_column_id(example_table: TableDefinition, example_remote: RemoteTable) -> None:
    record = RemoteRecord(id="rec012", fields={"fldA": "x", "fldB": 1, "fldC": True, "fldD": ["rec1"]})

    assert map_record_from_remote(example_table, record, example_remote) == {
        "id": "rec012",
        "a": "x",
        "b": 1,
        "c": True,
        "d": "rec1",
    }


def test_from_remote_folds_list_mapped_columns(people_table: TableDefinition, people_remote: RemoteTable) -> None:
    record = RemoteRecord(
        id="recP1",
        fields={
            "Name": "Ada",
            "Age": 36,
            "Active": True,
            "Team": ["recT1"],
            "Score 1": 9,
            "Score 2": 7.5,
            "Tags": ["math", "engines"],
        },
    )

    assert map_record_from_remote(people_table, record, people_remote) == {
        "id": "recP1",
        "name": "Ada",
        "age": 36,
        "active": True,
        "team": "recT1",
        "scores": [9, 7.5],
        "tags": ["math", "engines"],
    }


def test_from_remote_error_carries_record_and_field_frames(
    example_table: TableDefinition, example_remote: RemoteTable
) -> None:
    record = RemoteRecord(id="rec012", fields={"a": "x", "b": 1, "d": ["rec1", "rec2"]})

    with pytest.raises(SchemaValidationError) as exc_info:
        map_record_from_remote(example_table, record, example_remote)

    error = exc_info.value
    assert error.context == (
        "Failed to map record from Airtable format for table 'example' (tbl456) and record rec012",
        "Failed to map field d (fldD) from Airtable",
    )
    assert str(error).startswith("Failed to map record from Airtable format")
    assert "2 array entries" in str(error)


def test_from_remote_missing_column_raises_in_error_mode(example_table: TableDefinition) -> None:
    remote = RemoteTable(
        columns=(
            RemoteColumn(id="fldA", name="a", type="singleLineText"),
            RemoteColumn(id="fldC", name="c", type="checkbox"),
            RemoteColumn(id="fldD", name="d", type="multipleRecordLinks"),
        ),
        definition=example_table,
    )
    record = RemoteRecord(id="rec012", fields={"a": "x", "d": ["rec1"]})

    with pytest.raises(SchemaValidationError, match="Field 'b \\(fldB\\)' does not exist in the remote table"):
        map_record_from_remote(example_table, record, remote)


def test_warning_mode_substitutes_empty_values() -> None:
    table = TableDefinition(
        name="drift",
        baseId="app123",
        tableId="tbl456",
        schema={
            "title": "string",
            "subtitle": "string | null",
            "count": "number",
            "done": "boolean",
            "links": "string[]",
            "kept": "string",
        },
    )
    remote = RemoteTable(columns=(RemoteColumn(id="fldKept", name="kept", type="singleLineText"),), definition=table)
    record = RemoteRecord(id="rec1", fields={"kept": "still here"})
    warnings: list[AirtableTsError] = []

    item = map_record_from_remote(table, record, remote, read_validation="warning", on_warning=warnings.append)

    assert item == {
        "id": "rec1",
        "title": "",
        "subtitle": None,
        "count": 0,
        "done": False,
        "links": [],
        "kept": "still here",
    }
    assert len(warnings) == 5
    assert all(warning.kind is ErrorKind.SCHEMA_VALIDATION for warning in warnings)
    assert warnings[0].context[0].startswith("Failed to map record from Airtable format for table 'drift'")
    assert "Field 'title' does not exist" in str(warnings[0])


def test_warning_mode_soft_fails_bad_cells() -> None:
    table = TableDefinition(name="t", baseId="app1", tableId="tbl1", schema={"n": "number"})
    remote = RemoteTable(columns=(RemoteColumn(id="fldN", name="n", type="number"),), definition=table)
    record = RemoteRecord(id="rec1", fields={"n": "not a number"})
    warnings: list[AirtableTsError] = []

    item = map_record_from_remote(table, record, remote, read_validation="warning", on_warning=warnings.append)

    assert item == {"id": "rec1", "n": 0}
    assert len(warnings) == 1
    assert "Failed to map field n from Airtable" in warnings[0].context


def test_warning_mode_tolerates_failing_callback() -> None:
    table = TableDefinition(name="t", baseId="app1", tableId="tbl1", schema={"s": "string"})
    remote = RemoteTable(columns=(), definition=table)

    def explode(_error: AirtableTsError) -> None:
        raise RuntimeError("callback failed")

    item = map_record_from_remote(
        table, RemoteRecord(id="rec1"), remote, read_validation="warning", on_warning=explode
    )

    assert item == {"id": "rec1", "s": ""}


@pytest.mark.asyncio
async def test_warning_mode_schedules_async_callback() -> None:
    table = TableDefinition(name="t", baseId="app1", tableId="tbl1", schema={"s": "string | null"})
    remote = RemoteTable(columns=(), definition=table)
    received: list[AirtableTsError] = []

    async def collect(error: AirtableTsError) -> None:
        received.append(error)

    item = map_record_from_remote(
        table, RemoteRecord(id="rec1"), remote, read_validation="warning", on_warning=collect
    )
    await asyncio.sleep(0)

    assert item == {"id": "rec1", "s": None}
    assert len(received) == 1


def test_warning_mode_skips_async_callback_without_running_loop() -> None:
    table = TableDefinition(name="t", baseId="app1", tableId="tbl1", schema={"s": "string | null"})
    remote = RemoteTable(columns=(), definition=table)
    received: list[AirtableTsError] = []

    async def collect(error: AirtableTsError) -> None:
        received.append(error)

    item = map_record_from_remote(
        table, RemoteRecord(id="rec1"), remote, read_validation="warning", on_warning=collect
    )

    assert item == {"id": "rec1", "s": None}
    assert received == []


def test_to_remote_writes_mapped_fields_without_id(
    example_table: TableDefinition, example_remote: RemoteTable
) -> None:
    item = {"id": "rec012", "a": "Some text", "b": 123, "c": False, "d": "rec345"}

    assert map_record_to_remote(example_table, item, example_remote) == {
        "fldA": "Some text",
        "fldB": 123,
        "fldC": False,
        "fldD": ["rec345"],
    }


def test_to_remote_omits_absent_fields(example_table: TableDefinition, example_remote: RemoteTable) -> None:
    fields = map_record_to_remote(example_table, {"id": "rec012", "c": False, "d": "rec345"}, example_remote)

    assert fields == {"fldC": False, "fldD": ["rec345"]}
    assert "fldA" not in fields and "fldB" not in fields


def test_to_remote_writes_array_to_link_column(example_table: TableDefinition, example_remote: RemoteTable) -> None:
    table = example_table.model_copy(update={"field_types": {**example_table.field_types, "d": "string[]"}})

    assert map_record_to_remote(table, {"d": ["rec123", "rec456"]}, example_remote) == {"fldD": ["rec123", "rec456"]}


@pytest.mark.parametrize(
    "item",
    [
        {"b": None},
        {"a": 123},
        {"c": "yes"},
    ],
)
def test_to_remote_rejects_type_mismatches(
    example_table: TableDefinition, example_remote: RemoteTable, item: dict
) -> None:
    with pytest.raises(SchemaValidationError, match="Type mismatch") as exc_info:
        map_record_to_remote(example_table, item, example_remote)

    assert exc_info.value.context == ("Failed to map record to Airtable format for table 'example' (tbl456)",)


def test_to_remote_rejects_bad_array_entries(example_table: TableDefinition, example_remote: RemoteTable) -> None:
    table = example_table.model_copy(update={"field_types": {**example_table.field_types, "d": "string[]"}})

    with pytest.raises(SchemaValidationError):
        map_record_to_remote(table, {"d": ["rec123", 456]}, example_remote)


def test_to_remote_missing_column_is_not_found(example_table: TableDefinition) -> None:
    remote = RemoteTable(columns=(RemoteColumn(id="fldA", name="a", type="singleLineText"),), definition=example_table)

    with pytest.raises(ResourceNotFoundError) as exc_info:
        map_record_to_remote(example_table, {"b": 1}, remote)

    assert exc_info.value.context == ()


def test_to_remote_rejects_read_only_columns(example_table: TableDefinition) -> None:
    remote = RemoteTable(
        columns=(RemoteColumn(id="fldA", name="a", type="formula"),),
        definition=example_table,
    )

    with pytest.raises(SchemaValidationError, match="formula type field is read-only") as exc_info:
        map_record_to_remote(example_table, {"a": "x"}, remote)

    assert exc_info.value.context[-1] == "Failed to map field a (fldA) to Airtable"


def test_to_remote_spreads_list_mapped_arrays(people_table: TableDefinition, people_remote: RemoteTable) -> None:
    assert map_record_to_remote(people_table, {"scores": [1, 2], "team": None}, people_remote) == {
        "fldScore1": 1,
        "fldScore2": 2,
        "fldTeam": [],
    }


def test_to_remote_arity_mismatch(people_table: TableDefinition, people_remote: RemoteTable) -> None:
    with pytest.raises(SchemaValidationError) as exc_info:
        map_record_to_remote(people_table, {"scores": [1, 2, 3]}, people_remote)

    assert "received 3 values but had 2 mappings" in str(exc_info.value)


def test_round_trip_through_remote_shape(people_table: TableDefinition, people_remote: RemoteTable) -> None:
    item = {
        "name": "Grace",
        "age": None,
        "active": True,
        "team": "recT9",
        "scores": [10, 8],
        "tags": ["navy"],
    }

    fields = map_record_to_remote(people_table, item, people_remote)
    read_back = map_record_from_remote(people_table, RemoteRecord(id="recG", fields=fields), people_remote)

    assert read_back == {"id": "recG", **item}


def test_empty_select_cell_writes_back_as_empty_array() -> None:
    table = TableDefinition(name="t", baseId="app1", tableId="tbl1", schema={"tag": "string"})
    remote = RemoteTable(columns=(RemoteColumn(id="fldTag", name="tag", type="multipleSelects"),), definition=table)

    item = map_record_from_remote(table, RemoteRecord(id="rec1"), remote)

    assert item == {"id": "rec1", "tag": ""}
    assert map_record_to_remote(table, item, remote) == {"tag": []}
