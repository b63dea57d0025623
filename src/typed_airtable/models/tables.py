"""Pydantic schemas for table definitions and remote metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from typed_airtable.mapping.types import is_valid_type, parse_type

MappingValue = str | list[str]


class TableDefinition(BaseModel):
    """Static application-side description of one remote table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Label for this table's entities, used in error messages.")
    base_id: str = Field(..., min_length=1, alias="baseId", description="Remote base identifier, e.g. 'app1234'.")
    table_id: str = Field(..., min_length=1, alias="tableId", description="Remote table identifier, e.g. 'tbl1234'.")
    field_types: dict[str, str] = Field(
        ...,
        alias="schema",
        description="Application field name to type string, e.g. {'firstName': 'string'}.",
    )
    mappings: dict[str, MappingValue] | None = Field(
        default=None,
        description="Application field name to remote column name/id, or a list of them for array fields.",
    )

    @model_validator(mode="after")
    def _check_definition(self) -> TableDefinition:
        if "id" in self.field_types:
            raise ValueError("'id' is reserved for the record id and cannot be a schema field")

        for field_name, type_string in self.field_types.items():
            if not is_valid_type(type_string):
                raise ValueError(f"Unsupported type string '{type_string}' for field '{field_name}'")

        for field_name, mapping in (self.mappings or {}).items():
            if field_name not in self.field_types:
                raise ValueError(f"Mapping for '{field_name}' has no matching schema field")
            if isinstance(mapping, list):
                if not parse_type(self.field_types[field_name]).array:
                    raise ValueError(
                        f"Field '{field_name}' is mapped to several columns but its type "
                        f"'{self.field_types[field_name]}' is not an array type"
                    )
                if not mapping:
                    raise ValueError(f"Mapping list for '{field_name}' must not be empty")

        return self

    def mapping_for(self, field_name: str) -> MappingValue | None:
        if not self.mappings:
            return None
        return self.mappings.get(field_name) or None

    def field_name_for(self, identifier: str) -> str | None:
        """Application field mapped to ``identifier``, if any."""

        for field_name, mapping in (self.mappings or {}).items():
            if mapping == identifier or (isinstance(mapping, list) and identifier in mapping):
                return field_name
        return None

    def describe_field(self, identifier: str) -> str:
        """``'appName (remoteId)'`` when the names differ, else just the identifier."""

        field_name = self.field_name_for(identifier)
        if field_name and field_name != identifier:
            return f"{field_name} ({identifier})"
        return identifier

    @property
    def label(self) -> str:
        return f"'{self.name}' ({self.table_id})"


class RemoteColumn(BaseModel):
    """Column metadata as returned by the base schema endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    type: str
    options: dict[str, Any] | None = None


class RemoteTableSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str = ""
    primary_field_id: str | None = Field(default=None, alias="primaryFieldId")
    fields: list[RemoteColumn] = Field(default_factory=list)


class RemoteRecord(BaseModel):
    """Record payload: cells keyed by column name (or id)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_time: str | None = Field(default=None, alias="createdTime")


def find_column(columns: tuple[RemoteColumn, ...] | list[RemoteColumn], identifier: str) -> RemoteColumn | None:
    """Resolve a column by id or by name; both keyspaces address the same column."""

    for column in columns:
        if column.id == identifier or column.name == identifier:
            return column
    return None


@dataclass(frozen=True, slots=True)
class RemoteTable:
    """Schema-resolved handle: a table definition plus its live remote columns."""

    columns: tuple[RemoteColumn, ...]
    definition: TableDefinition

    def find_column(self, identifier: str) -> RemoteColumn | None:
        return find_column(self.columns, identifier)

    def has_column(self, identifier: str) -> bool:
        return self.find_column(identifier) is not None
