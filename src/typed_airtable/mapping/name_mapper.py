"""Translate between application field names and remote column identifiers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from typed_airtable.core.errors import SchemaValidationError
from typed_airtable.mapping.types import MISSING, parse_type, remote_field_types
from typed_airtable.models.tables import RemoteTable, TableDefinition


def map_field_names_from_remote(table: TableDefinition, values: Mapping[str, Any]) -> dict[str, Any]:
    """Fold values keyed by remote identifier back into application shape.

    With mappings ``{'someProp': 'Some_Field', 'otherProps': ['Field1', 'Field2']}``
    the values ``{'Some_Field': 'abcd', 'Field1': 314, 'Field2': 159}`` become
    ``{'someProp': 'abcd', 'otherProps': [314, 159]}``. The ``id`` key is kept.
    """

    item: dict[str, Any] = {}
    for field_name in table.field_types:
        mapping = table.mapping_for(field_name)
        if mapping is None:
            item[field_name] = values.get(field_name, MISSING)
        elif isinstance(mapping, list):
            item[field_name] = [values.get(identifier, MISSING) for identifier in mapping]
        else:
            item[field_name] = values.get(mapping, MISSING)

    if "id" in values:
        item["id"] = values["id"]
    return item


def map_field_names_to_remote(table: TableDefinition, item: Mapping[str, Any]) -> dict[str, Any]:
    """Expand an application record into values keyed by remote identifier.

    Fields absent from ``item`` are skipped entirely rather than written as
    empty, which is what makes partial updates possible. An array field mapped
    to several columns is spread positionally and must match their count.
    """

    values: dict[str, Any] = {}
    for field_name, type_string in table.field_types.items():
        if field_name not in item:
            continue

        value = item[field_name]
        mapping = table.mapping_for(field_name)

        if mapping is None:
            values[field_name] = value
            continue

        if not isinstance(mapping, list):
            values[mapping] = value
            continue

        targets = json.dumps(mapping)
        if value is None:
            if parse_type(type_string).nullable:
                values.update(dict.fromkeys(mapping))
                continue
            raise SchemaValidationError(
                f"Received null for non-nullable field '{field_name}' ({targets}) with type '{type_string}' "
                f"in table {table.label}."
            )

        if not isinstance(value, list):
            raise SchemaValidationError(
                f"Expected an array for field '{field_name}' ({targets}) in table {table.label}, "
                f"but received {type(value).__name__}."
            )

        if len(value) != len(mapping):
            raise SchemaValidationError(
                f"Array length mismatch for field '{field_name}' ({targets}) in table {table.label}: "
                f"received {len(value)} values but had {len(mapping)} mappings.",
                suggestion="Ensure the array length matches the number of mapped fields in the table definition.",
            )

        values.update(zip(mapping, value))

    if "id" in item:
        values["id"] = item["id"]
    return values


def list_requested_column_ids(table: TableDefinition, remote_table: RemoteTable) -> list[str]:
    """Remote identifiers to request when reading records of ``table``.

    Columns that no longer exist remotely are dropped, since asking for an
    unknown field is itself an error on the remote side.
    """

    return [identifier for identifier in remote_field_types(table) if remote_table.has_column(identifier)]
