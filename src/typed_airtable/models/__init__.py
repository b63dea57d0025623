"""Table definitions and remote metadata models."""

from .tables import RemoteColumn, RemoteRecord, RemoteTable, RemoteTableSchema, TableDefinition, find_column

__all__ = [
    "RemoteColumn",
    "RemoteRecord",
    "RemoteTable",
    "RemoteTableSchema",
    "TableDefinition",
    "find_column",
]
