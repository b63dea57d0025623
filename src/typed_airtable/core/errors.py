"""Structured error taxonomy shared by the mapping engine and the client."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable classification of library errors."""

    SCHEMA_VALIDATION = "schema_validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    INVALID_PARAMETER = "invalid_parameter"
    API_ERROR = "api_error"


class AirtableTsError(Exception):
    """Base error carrying a kind, a suggestion and breadcrumb context frames.

    Instances are treated as immutable values: adding context produces a new
    error via :meth:`with_context`, and the frames are only rendered into a
    single sentence when the error is converted to a string.
    """

    kind: ErrorKind = ErrorKind.SCHEMA_VALIDATION

    def __init__(
        self,
        message: str,
        *,
        suggestion: str | None = None,
        context: tuple[str, ...] = (),
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.message = message
        self.suggestion = suggestion
        self.context = tuple(context)
        self.status_code = status_code
        self.body = body
        super().__init__(self.render())

    def render(self) -> str:
        """Render frames, message and suggestion as one human-readable sentence."""

        text = ": ".join([*self.context, self.message])
        if self.suggestion:
            text = f"{text} Suggestion: {self.suggestion}"
        return text

    def __str__(self) -> str:
        return self.render()

    def with_context(self, frame: str) -> AirtableTsError:
        """Return a copy of this error with ``frame`` as the outermost context."""

        return type(self)(
            self.message,
            suggestion=self.suggestion,
            context=(frame, *self.context),
            status_code=self.status_code,
            body=self.body,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""

        return {
            "error_type": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "context": list(self.context),
            "status_code": self.status_code,
            "body": self.body,
        }


class SchemaValidationError(AirtableTsError):
    """Value, shape or arity mismatch, read-only violation or invalid date."""

    kind = ErrorKind.SCHEMA_VALIDATION


class ResourceNotFoundError(AirtableTsError):
    """A table, field or record does not exist remotely."""

    kind = ErrorKind.RESOURCE_NOT_FOUND


class InvalidParameterError(AirtableTsError):
    """A required call argument or setting was not supplied."""

    kind = ErrorKind.INVALID_PARAMETER


class ApiError(AirtableTsError):
    """The remote service answered with a failure or could not be reached."""

    kind = ErrorKind.API_ERROR


def prepend_context(error: BaseException, frame: str) -> BaseException:
    """Add ``frame`` to schema validation errors; leave anything else untouched."""

    if isinstance(error, AirtableTsError) and error.kind is ErrorKind.SCHEMA_VALIDATION:
        return error.with_context(frame)
    return error


@contextmanager
def error_context(frame: str) -> Iterator[None]:
    """Re-raise schema validation errors from the block with ``frame`` prepended.

    The original low-level exception stays reachable as ``__cause__``.
    """

    try:
        yield
    except AirtableTsError as exc:
        wrapped = prepend_context(exc, frame)
        if wrapped is exc:
            raise
        raise wrapped from (exc.__cause__ or exc)
