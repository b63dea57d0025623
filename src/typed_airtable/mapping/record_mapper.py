"""Convert whole records between remote and application shape.

Reading runs ``type coercion -> name folding``; writing runs the inverse,
``name expansion -> type check -> type coercion``. Each step works on values
keyed by remote column identifier, so array fields spread over several
columns are coerced one column at a time using their element type.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from typed_airtable.core.config import ReadValidation
from typed_airtable.core.errors import (
    AirtableTsError,
    ErrorKind,
    ResourceNotFoundError,
    SchemaValidationError,
    error_context,
)
from typed_airtable.core.logging import get_logger
from typed_airtable.mapping.field_mappers import get_mapper
from typed_airtable.mapping.name_mapper import map_field_names_from_remote, map_field_names_to_remote
from typed_airtable.mapping.types import MISSING, describe_value, empty_value, matches_type, remote_field_types
from typed_airtable.models.tables import RemoteRecord, RemoteTable, TableDefinition

logger = get_logger(__name__)

WarningCallback = Callable[[AirtableTsError], Awaitable[None] | None]

# Strong references to in-flight async warning callbacks.
_background_tasks: set[asyncio.Task[None]] = set()


@dataclass(slots=True)
class ValidationContext:
    """Read validation mode plus the warnings collected while mapping one record."""

    read_validation: ReadValidation = "error"
    on_warning: WarningCallback | None = None
    warnings: list[AirtableTsError] = field(default_factory=list)

    def soft_fail(self, error: BaseException) -> bool:
        """Record ``error`` instead of raising it, when the mode allows."""

        if (
            self.read_validation == "warning"
            and isinstance(error, AirtableTsError)
            and error.kind is ErrorKind.SCHEMA_VALIDATION
        ):
            self.warnings.append(error)
            return True
        return False


def _cell_value(record: RemoteRecord, column_name: str, column_id: str) -> Any:
    if column_name in record.fields:
        return record.fields[column_name]
    return record.fields.get(column_id, MISSING)


def _map_types_from_remote(
    table: TableDefinition,
    types: Mapping[str, str],
    record: RemoteRecord,
    remote_table: RemoteTable,
    context: ValidationContext,
) -> dict[str, Any]:
    """Coerce each remote cell to its application type; names are unchanged."""

    values: dict[str, Any] = {}

    for identifier, type_string in types.items():
        column = remote_table.find_column(identifier)
        try:
            if column is None:
                # Usually a column deleted remotely without updating the table definition.
                raise SchemaValidationError(
                    f"Field '{table.describe_field(identifier)}' does not exist in the remote table.",
                    suggestion="Update the table definition to match the remote table.",
                )

            with error_context(f"Failed to map field {table.describe_field(identifier)} from Airtable"):
                mapper = get_mapper(type_string, column.type)
                values[identifier] = mapper.from_remote(_cell_value(record, column.name, column.id))
        except AirtableTsError as exc:
            if not context.soft_fail(exc):
                raise
            values[identifier] = empty_value(type_string)

    values["id"] = record.id
    return values


def _map_types_to_remote(
    table: TableDefinition,
    types: Mapping[str, str],
    values: Mapping[str, Any],
    remote_table: RemoteTable,
) -> dict[str, Any]:
    """Check and coerce each present value into a cell value; names are unchanged."""

    fields: dict[str, Any] = {}

    for identifier, type_string in types.items():
        if identifier not in values:
            continue

        value = values[identifier]
        described = table.describe_field(identifier)

        if not matches_type(value, type_string):
            raise SchemaValidationError(
                f"Type mismatch for field '{described}': expected {type_string} but got a {describe_value(value)}.",
                suggestion="Ensure the value matches the expected type in the table definition.",
            )

        column = remote_table.find_column(identifier)
        if column is None:
            raise ResourceNotFoundError(
                f"Field {described} does not exist in the remote table.",
                suggestion="Verify that the field exists in the base and that the correct field name or id is used.",
            )

        with error_context(f"Failed to map field {described} to Airtable"):
            mapper = get_mapper(type_string, column.type)
            fields[identifier] = mapper.to_remote(value)

    return fields


async def _guarded(result: Awaitable[None]) -> None:
    try:
        await result
    except Exception:
        logger.exception("record_mapper.on_warning_failed")


def _dispatch_warning(on_warning: WarningCallback, error: AirtableTsError) -> None:
    """Invoke the warning callback without letting it affect the read."""

    try:
        result = on_warning(error)
    except Exception:
        logger.exception("record_mapper.on_warning_failed")
        return

    if not inspect.isawaitable(result):
        return

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(result):
            result.close()
        logger.warning(
            "record_mapper.on_warning_skipped",
            message="async on_warning callbacks need a running event loop",
            error=str(error),
        )
        return

    task = loop.create_task(_guarded(result))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def map_record_from_remote(
    table: TableDefinition,
    record: RemoteRecord,
    remote_table: RemoteTable,
    *,
    read_validation: ReadValidation = "error",
    on_warning: WarningCallback | None = None,
) -> dict[str, Any]:
    """Map a remote record to an application record.

    In ``"warning"`` mode, schema validation failures of single fields are
    collected, the field gets an empty value (``''``, ``0``, ``False``, ``[]``
    or ``None`` when nullable), and ``on_warning`` is called once per failure
    after the record is assembled. Async callbacks are scheduled on the running
    loop, not awaited; without a running loop they are skipped with a logged
    warning.
    """

    frame = f"Failed to map record from Airtable format for table {table.label} and record {record.id}"
    context = ValidationContext(read_validation=read_validation, on_warning=on_warning)

    with error_context(frame):
        values = _map_types_from_remote(table, remote_field_types(table), record, remote_table, context)
        item = map_field_names_from_remote(table, values)

    if context.warnings:
        logger.debug("record_mapper.read_warnings", table=table.name, record_id=record.id, count=len(context.warnings))
    if context.on_warning is not None:
        for warning in context.warnings:
            _dispatch_warning(context.on_warning, warning.with_context(frame))

    return item


def map_record_to_remote(
    table: TableDefinition,
    item: Mapping[str, Any],
    remote_table: RemoteTable,
) -> dict[str, Any]:
    """Map a (possibly partial) application record to a remote field set.

    Only fields present in ``item`` are written. The record id is never part
    of the field set. Failures always raise: there is no soft mode for writes.
    """

    with error_context(f"Failed to map record to Airtable format for table {table.label}"):
        values = map_field_names_to_remote(table, item)
        values.pop("id", None)
        return _map_types_to_remote(table, remote_field_types(table), values, remote_table)
