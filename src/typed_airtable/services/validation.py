"""Runtime checks on application data before it is written."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from typed_airtable.core.errors import SchemaValidationError
from typed_airtable.mapping.types import describe_value, matches_type
from typed_airtable.models.tables import TableDefinition


def assert_matches_schema(
    table: TableDefinition,
    data: Any,
    mode: Literal["full", "partial"] = "partial",
) -> None:
    """Raise unless ``data`` conforms to ``table``'s schema.

    The record mapper checks types again per column, so in practice this
    mostly yields clearer messages naming the application field.
    """

    if not isinstance(data, Mapping):
        raise SchemaValidationError(
            f"Data passed in should be a mapping but received {describe_value(data)}."
        )

    for field_name, type_string in table.field_types.items():
        if field_name not in data:
            if mode == "partial":
                continue
            raise SchemaValidationError(
                f"Data passed in is missing required field '{field_name}' in table '{table.name}' "
                f"(expected type: {type_string})."
            )

        value = data[field_name]
        if not matches_type(value, type_string):
            raise SchemaValidationError(
                f"Invalid value passed in for field '{field_name}' in table '{table.name}' "
                f"(received type: {describe_value(value)}, expected type: {type_string})."
            )
