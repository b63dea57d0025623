"""Typed data-access layer over remote tables."""

from .core.errors import (
    AirtableTsError,
    ApiError,
    ErrorKind,
    InvalidParameterError,
    ResourceNotFoundError,
    SchemaValidationError,
)
from .mapping.record_mapper import map_record_from_remote, map_record_to_remote
from .models.tables import RemoteTable, TableDefinition
from .services.client import AirtableClient
from .services.schema_cache import SchemaCache
from .services.tables import get_remote_table, list_requested_column_ids

__all__ = [
    "AirtableClient",
    "AirtableTsError",
    "ApiError",
    "ErrorKind",
    "InvalidParameterError",
    "RemoteTable",
    "ResourceNotFoundError",
    "SchemaCache",
    "SchemaValidationError",
    "TableDefinition",
    "get_remote_table",
    "list_requested_column_ids",
    "map_record_from_remote",
    "map_record_to_remote",
]
