"""Configuration, logging and error primitives."""

from .config import ClientSettings, ReadValidation, get_settings
from .errors import (
    AirtableTsError,
    ApiError,
    ErrorKind,
    InvalidParameterError,
    ResourceNotFoundError,
    SchemaValidationError,
)

__all__ = [
    "AirtableTsError",
    "ApiError",
    "ClientSettings",
    "ErrorKind",
    "InvalidParameterError",
    "ReadValidation",
    "ResourceNotFoundError",
    "SchemaValidationError",
    "get_settings",
]
