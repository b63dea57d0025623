"""Coercion pairs between application types and remote column types.

``FIELD_MAPPERS[type_string][remote_type]`` holds a :class:`MapperPair` whose
``to_remote`` converts an application value into a cell value for that column
type and whose ``from_remote`` does the reverse. Cell values are treated as a
hint only: anything can come back from the remote service, so every
``from_remote`` either returns a value of the application type or raises.

Non-nullable rows are derived from the nullable rows, which keeps the folding
of empty cells (``''``, ``False``, ``[]`` or an error) in one place.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Final

from typed_airtable.core.errors import SchemaValidationError
from typed_airtable.core.logging import get_logger
from typed_airtable.mapping.dates import from_unix_seconds, parse_datetime, to_iso, to_unix_seconds
from typed_airtable.mapping.types import (
    MISSING,
    UNKNOWN_REMOTE_TYPE,
    describe_value,
    matches_primitive,
    parse_type,
)

logger = get_logger(__name__)

Coercion = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class MapperPair:
    to_remote: Coercion
    from_remote: Coercion
    read_only: bool = False


MapperRow = dict[str, MapperPair]


def _is_empty(value: Any) -> bool:
    return value is None or value is MISSING


def _read_only(remote_type: str) -> Coercion:
    def to_remote(_value: Any) -> Any:
        raise SchemaValidationError(
            f"{remote_type} type field is read-only",
            suggestion="Remove this field from the data being written, or map it to a writable column.",
        )

    return to_remote


def _passthrough(remote_type: str, type_string: str) -> MapperPair:
    """Direct pair for columns whose cells already hold the application type."""

    expected = parse_type(type_string)
    empty_write: Any = [] if expected.array else None

    def check(value: Any) -> Any:
        if _is_empty(value):
            return None
        if expected.array:
            if isinstance(value, list) and all(matches_primitive(v, expected.single) for v in value):
                return list(value)
        elif matches_primitive(value, expected.single):
            return value
        raise SchemaValidationError(
            f"Can't coerce {remote_type} to a {type_string}, as it was of type {describe_value(value)}"
        )

    def to_remote(value: Any) -> Any:
        return empty_write if _is_empty(value) else value

    return MapperPair(to_remote=to_remote, from_remote=check)


def coerce(remote_type: str, type_string: str) -> Coercion:
    """Loose structural coercion used for lookups, formulas and unknown columns.

    Accepts the exact application shape, wraps a scalar for array types and
    unwraps a singleton array for scalar types. Empty input folds to ``None``
    for nullable types; arrays with more than one entry never truncate.
    """

    expected = parse_type(type_string)

    def from_remote(value: Any) -> Any:
        if not expected.array and matches_primitive(value, expected.single):
            return value

        if expected.array and isinstance(value, list) and all(matches_primitive(v, expected.single) for v in value):
            return list(value)

        if expected.nullable and (_is_empty(value) or value == []):
            return None

        if expected.array and matches_primitive(value, expected.single):
            return [value]

        if not expected.array and isinstance(value, list):
            if len(value) == 1 and matches_primitive(value[0], expected.single):
                return value[0]
            if len(value) != 1:
                raise SchemaValidationError(
                    f"Can't coerce {remote_type} to a {type_string}, as there were {len(value)} array entries"
                )

        raise SchemaValidationError(
            f"Can't coerce {remote_type} to a {type_string}, as it was of type {describe_value(value)}"
        )

    return from_remote


def _sub_property(key: str) -> Coercion:
    """Read ``value[key]`` from an object cell, ``None`` if absent or not a string."""

    def from_remote(value: Any) -> Any:
        if isinstance(value, dict) and isinstance(value.get(key), str):
            return value[key]
        return None

    return from_remote


def _sub_properties(key: str) -> Coercion:
    """Reduce an array of object cells to their ``key`` strings, dropping the rest."""

    def from_remote(value: Any) -> Any:
        if not isinstance(value, list):
            return None
        return [entry[key] for entry in value if isinstance(entry, dict) and isinstance(entry.get(key), str)]

    return from_remote


def _then(first: Coercion, second: Coercion) -> Coercion:
    return lambda value: second(first(value))


# Dates and times

def _invalid_datetime(remote_type: str, value: Any) -> SchemaValidationError:
    return SchemaValidationError(
        f"Invalid {remote_type} value {value!r}",
        suggestion="Use an ISO-8601 date-time string such as '2023-04-09T12:34:56.000Z'.",
    )


def _datetime_to_remote(remote_type: str) -> Coercion:
    """Accept a date string or Unix seconds and emit canonical ISO-8601."""

    def to_remote(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            moment = parse_datetime(value)
        elif matches_primitive(value, "number"):
            moment = from_unix_seconds(value)
        else:
            moment = None
        if moment is None:
            raise _invalid_datetime(remote_type, value)
        iso = to_iso(moment)
        return iso[:10] if remote_type == "date" else iso

    return to_remote


def _datetime_from_remote(remote_type: str) -> Coercion:
    def from_remote(value: Any) -> Any:
        if _is_empty(value):
            return None
        moment = parse_datetime(value) if isinstance(value, str) else None
        if moment is None:
            raise _invalid_datetime(remote_type, value)
        return to_iso(moment)

    return from_remote


def _unix_seconds_from_remote(remote_type: str) -> Coercion:
    def from_remote(value: Any) -> Any:
        if _is_empty(value):
            return None
        moment = parse_datetime(value) if isinstance(value, str) else None
        if moment is None:
            raise _invalid_datetime(remote_type, value)
        return to_unix_seconds(moment)

    return from_remote


_DATE_TYPES: Final = ("date", "dateTime", "createdTime", "lastModifiedTime")
_TEXT_TYPES: Final = ("url", "email", "phoneNumber", "singleLineText", "multilineText", "richText", "singleSelect")
_NUMBER_TYPES: Final = ("number", "rating", "duration", "currency", "percent")
_LOOKUP_TYPES: Final = ("multipleLookupValues", "lookup")


def _read_only_pair(remote_type: str, from_remote: Coercion) -> MapperPair:
    return MapperPair(to_remote=_read_only(remote_type), from_remote=from_remote, read_only=True)


def _loose_pair(remote_type: str, type_string: str) -> MapperPair:
    return _read_only_pair(remote_type, coerce(remote_type, type_string))


def _unknown_pair(type_string: str) -> MapperPair:
    return MapperPair(to_remote=lambda value: value, from_remote=coerce(UNKNOWN_REMOTE_TYPE, type_string))


def _build_string_or_null() -> MapperRow:
    type_string = "string | null"
    row: MapperRow = {remote_type: _passthrough(remote_type, type_string) for remote_type in _TEXT_TYPES}

    row["aiText"] = _read_only_pair("aiText", _sub_property("value"))
    row["barcode"] = _read_only_pair("barcode", _sub_property("text"))
    row["button"] = _read_only_pair("button", _sub_property("label"))
    row["createdBy"] = _read_only_pair("createdBy", _sub_property("id"))
    row["lastModifiedBy"] = _read_only_pair("lastModifiedBy", _sub_property("id"))
    row["singleCollaborator"] = MapperPair(
        to_remote=lambda value: None if value is None else {"id": value},
        from_remote=_sub_property("id"),
    )
    row["multipleCollaborators"] = _read_only_pair(
        "multipleCollaborators",
        _then(_sub_properties("id"), coerce("multipleCollaborators", type_string)),
    )
    row["multipleAttachments"] = _read_only_pair(
        "multipleAttachments",
        _then(_sub_properties("url"), coerce("multipleAttachments", type_string)),
    )

    for remote_type in ("multipleSelects", "multipleRecordLinks"):
        row[remote_type] = MapperPair(
            to_remote=lambda value: [value] if value else [],
            from_remote=coerce(remote_type, type_string),
        )

    for remote_type in _DATE_TYPES:
        row[remote_type] = MapperPair(
            to_remote=_datetime_to_remote(remote_type),
            from_remote=_datetime_from_remote(remote_type),
        )

    for remote_type in (*_LOOKUP_TYPES, "externalSyncSource", "rollup", "formula"):
        row[remote_type] = _loose_pair(remote_type, type_string)

    row[UNKNOWN_REMOTE_TYPE] = _unknown_pair(type_string)
    return row


def _build_number_or_null() -> MapperRow:
    type_string = "number | null"
    row: MapperRow = {remote_type: _passthrough(remote_type, type_string) for remote_type in _NUMBER_TYPES}

    for remote_type in ("count", "autoNumber"):
        row[remote_type] = _read_only_pair(remote_type, _passthrough(remote_type, type_string).from_remote)

    for remote_type in _DATE_TYPES:
        row[remote_type] = MapperPair(
            to_remote=_datetime_to_remote(remote_type),
            from_remote=_unix_seconds_from_remote(remote_type),
        )

    for remote_type in (*_LOOKUP_TYPES, "rollup", "formula"):
        row[remote_type] = _loose_pair(remote_type, type_string)

    row[UNKNOWN_REMOTE_TYPE] = _unknown_pair(type_string)
    return row


def _build_boolean_or_null() -> MapperRow:
    type_string = "boolean | null"
    row: MapperRow = {"checkbox": _passthrough("checkbox", type_string)}

    for remote_type in _LOOKUP_TYPES:
        row[remote_type] = _loose_pair(remote_type, type_string)

    row[UNKNOWN_REMOTE_TYPE] = _unknown_pair(type_string)
    return row


def _build_string_array_or_null() -> MapperRow:
    type_string = "string[] | null"
    row: MapperRow = {
        remote_type: _passthrough(remote_type, type_string)
        for remote_type in ("multipleSelects", "multipleRecordLinks")
    }

    row["multipleCollaborators"] = _read_only_pair(
        "multipleCollaborators",
        _then(_sub_properties("id"), coerce("multipleCollaborators", type_string)),
    )
    row["multipleAttachments"] = _read_only_pair(
        "multipleAttachments",
        _then(_sub_properties("url"), coerce("multipleAttachments", type_string)),
    )

    for remote_type in (*_LOOKUP_TYPES, "rollup", "formula"):
        row[remote_type] = _loose_pair(remote_type, type_string)

    row[UNKNOWN_REMOTE_TYPE] = _unknown_pair(type_string)
    return row


# Remote types for which an empty cell can never be a valid non-nullable string.
_REQUIRED_STRING_TYPES: Final = frozenset({"multipleRecordLinks", "dateTime", "createdTime", "lastModifiedTime"})
# Computed numeric columns whose empty cells are read as zero.
_COMPUTED_NUMBER_TYPES: Final = frozenset({"formula", "rollup", *_LOOKUP_TYPES})


def _non_nullable(
    nullable_row: MapperRow,
    fold: Callable[[str, Any], Any],
) -> MapperRow:
    """Derive a non-nullable row whose reads pass ``None`` through ``fold``."""

    def derive(remote_type: str, pair: MapperPair) -> MapperPair:
        def from_remote(value: Any) -> Any:
            result = pair.from_remote(value)
            return fold(remote_type, value) if result is None else result

        return replace(pair, from_remote=from_remote)

    return {remote_type: derive(remote_type, pair) for remote_type, pair in nullable_row.items()}


def _fold_string(remote_type: str, _value: Any) -> str:
    if remote_type in _REQUIRED_STRING_TYPES:
        raise SchemaValidationError(
            f"Expected non-null or non-empty value to map to string for field type {remote_type}"
        )
    return ""


def _fold_number(remote_type: str, _value: Any) -> int:
    if remote_type in _COMPUTED_NUMBER_TYPES:
        return 0
    raise SchemaValidationError(f"Expected non-null or non-empty value to map to number for field type {remote_type}")


def _build_matrix() -> dict[str, MapperRow]:
    string_or_null = _build_string_or_null()
    number_or_null = _build_number_or_null()
    boolean_or_null = _build_boolean_or_null()
    string_array_or_null = _build_string_array_or_null()

    return {
        "string | null": string_or_null,
        "string": _non_nullable(string_or_null, _fold_string),
        "number | null": number_or_null,
        "number": _non_nullable(number_or_null, _fold_number),
        "boolean | null": boolean_or_null,
        "boolean": _non_nullable(boolean_or_null, lambda _remote_type, _value: False),
        "string[] | null": string_array_or_null,
        "string[]": _non_nullable(string_array_or_null, lambda _remote_type, _value: []),
    }


FIELD_MAPPERS: Final[dict[str, MapperRow]] = _build_matrix()


@lru_cache(maxsize=None)
def _advise_unknown_remote_type(type_string: str, remote_type: str) -> None:
    # Cached so the advisory is logged once per pair of types.
    logger.warning(
        "field_mappers.unknown_remote_type",
        type_string=type_string,
        remote_type=remote_type,
        message="Remote column type is not fully supported; mapping behaviour may change in a future release.",
    )


def get_mapper(type_string: str, remote_type: str) -> MapperPair:
    """Look up the coercion pair for an application type and remote column type."""

    row = FIELD_MAPPERS.get(type_string)
    if row is None:
        raise SchemaValidationError(
            f"No mapper exists for application type '{type_string}'.",
            suggestion="Use a supported type in the schema, or map array fields to a list of single-value columns.",
        )

    pair = row.get(remote_type)
    if pair is not None:
        return pair

    fallback = row.get(UNKNOWN_REMOTE_TYPE)
    if fallback is not None:
        _advise_unknown_remote_type(type_string, remote_type)
        return fallback

    raise SchemaValidationError(
        f"Cannot map remote type '{remote_type}' to application type '{type_string}'.",
        suggestion="Check that the schema uses types compatible with the remote column types.",
    )
