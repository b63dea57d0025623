"""Application type strings, remote type tags and runtime type checks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Final, Literal, get_args

if TYPE_CHECKING:
    from typed_airtable.models.tables import TableDefinition

Primitive = Literal["string", "number", "boolean"]

RemoteTypeName = Literal[
    "aiText",
    "autoNumber",
    "barcode",
    "button",
    "checkbox",
    "count",
    "createdBy",
    "createdTime",
    "currency",
    "date",
    "dateTime",
    "duration",
    "email",
    "externalSyncSource",
    "formula",
    "lastModifiedBy",
    "lastModifiedTime",
    "lookup",
    "multipleLookupValues",
    "multilineText",
    "multipleAttachments",
    "multipleCollaborators",
    "multipleRecordLinks",
    "multipleSelects",
    "number",
    "percent",
    "phoneNumber",
    "rating",
    "richText",
    "rollup",
    "singleCollaborator",
    "singleLineText",
    "singleSelect",
    "url",
]

REMOTE_TYPES: Final[frozenset[str]] = frozenset(get_args(RemoteTypeName))
UNKNOWN_REMOTE_TYPE: Final = "unknown"

_PRIMITIVES: Final[frozenset[str]] = frozenset(get_args(Primitive))
_ARRAY_SUFFIX: Final = "[]"
_NULLABLE_SUFFIX: Final = " | null"


class _Missing(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# A cell the remote service did not return at all, as opposed to an explicit null.
MISSING: Final = _Missing.MISSING


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Structured form of a type string such as ``'string[] | null'``."""

    single: Primitive
    array: bool
    nullable: bool

    @property
    def type_string(self) -> str:
        text = self.single + (_ARRAY_SUFFIX if self.array else "")
        return text + (_NULLABLE_SUFFIX if self.nullable else "")

    def element(self) -> TypeDescriptor:
        """Element type of an array type, keeping nullability."""

        if not self.array:
            raise ValueError(f"Not an array type: {self.type_string}")
        return TypeDescriptor(single=self.single, array=False, nullable=self.nullable)


@lru_cache(maxsize=None)
def parse_type(type_string: str) -> TypeDescriptor:
    """Parse ``base ('[]')? (' | null')?`` by suffix stripping.

    >>> parse_type("number[] | null")
    TypeDescriptor(single='number', array=True, nullable=True)
    """

    text = type_string
    nullable = text.endswith(_NULLABLE_SUFFIX)
    if nullable:
        text = text[: -len(_NULLABLE_SUFFIX)]

    array = text.endswith(_ARRAY_SUFFIX)
    if array:
        text = text[: -len(_ARRAY_SUFFIX)]

    if text not in _PRIMITIVES:
        raise ValueError(f"Unsupported type string '{type_string}'")

    return TypeDescriptor(single=text, array=array, nullable=nullable)  # type: ignore[arg-type]


def is_valid_type(type_string: str) -> bool:
    try:
        parse_type(type_string)
    except ValueError:
        return False
    return True


def matches_primitive(value: Any, single: Primitive) -> bool:
    """Python counterpart of a ``typeof`` check; bools are never numbers."""

    if single == "string":
        return isinstance(value, str)
    if single == "boolean":
        return isinstance(value, bool)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def matches_type(value: Any, type_string: str) -> bool:
    """Verify whether ``value`` is assignable to ``type_string``.

    ``None`` only matches nullable types, and :data:`MISSING` never matches:
    an omitted field is handled by the partial-update logic, not here.
    """

    expected = parse_type(type_string)

    if value is None:
        return expected.nullable

    if not expected.array:
        return matches_primitive(value, expected.single)

    return isinstance(value, list) and all(matches_primitive(entry, expected.single) for entry in value)


def describe_value(value: Any) -> str:
    """Name the shape of ``value`` in the vocabulary of type strings."""

    if value is None:
        return "null"
    if value is MISSING:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def array_to_single_type(type_string: str) -> str:
    """``'string[] | null'`` -> ``'string | null'``; ``'number[]'`` -> ``'number'``."""

    return parse_type(type_string).element().type_string


def remote_field_types(table: TableDefinition) -> dict[str, str]:
    """Type of each remote column identifier the table definition refers to.

    Unmapped fields keep their own name. A field mapped to a list of remote
    columns contributes one entry per column, typed as the element type, so
    schema ``{'a': 'number[]'}`` with mappings ``{'a': ['F1', 'F2']}`` gives
    ``{'F1': 'number', 'F2': 'number'}``.
    """

    types: dict[str, str] = {}
    for field_name, type_string in table.field_types.items():
        mapping = table.mapping_for(field_name)
        if mapping is None:
            types[field_name] = type_string
        elif isinstance(mapping, list):
            for identifier in mapping:
                types[identifier] = array_to_single_type(type_string)
        else:
            types[mapping] = type_string
    return types


def empty_value(type_string: str) -> Any:
    """Type-appropriate empty value used when a read is soft-failed."""

    expected = parse_type(type_string)
    if expected.nullable:
        return None
    if expected.array:
        return []
    return {"string": "", "number": 0, "boolean": False}[expected.single]
