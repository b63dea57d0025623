"""HTTP transport for the remote tables API."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, ParamSpec, Protocol, TypeVar
from urllib.parse import quote

import httpx

from typed_airtable.core.config import ClientSettings
from typed_airtable.core.errors import AirtableTsError, ApiError, InvalidParameterError
from typed_airtable.core.logging import get_logger
from typed_airtable.models.tables import RemoteRecord, RemoteTableSchema

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

SCHEMA_PERMISSION_HINT = "Ensure the API token is correct, and has `schema.bases:read` permission to the target base."


class Transport(Protocol):
    """Remote operations the mapping layer depends on."""

    async def fetch_base_schema(self, base_id: str) -> list[RemoteTableSchema]: ...

    async def find_record(self, base_id: str, table_id: str, record_id: str) -> RemoteRecord | None: ...

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        *,
        fields: Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> list[RemoteRecord]: ...

    async def create_record(self, base_id: str, table_id: str, fields: Mapping[str, Any]) -> RemoteRecord: ...

    async def update_record(
        self, base_id: str, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> RemoteRecord: ...

    async def delete_record(self, base_id: str, table_id: str, record_id: str) -> str: ...


def wrap_transport_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Convert httpx failures raised by ``func`` into :class:`ApiError`."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except AirtableTsError:
            raise
        except httpx.HTTPStatusError as exc:
            response = exc.response
            logger.warning("transport.api_error", status_code=response.status_code, url=str(exc.request.url))
            raise ApiError(
                f"Request to {exc.request.url.path} failed. Status: {response.status_code}. Data: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        except httpx.TimeoutException as exc:
            raise ApiError(
                f"Request timed out: {exc}",
                suggestion="Increase request_timeout_ms or retry later.",
            ) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Request failed: {exc}") from exc

    return wrapper


def encode_list_params(fields: Sequence[str], params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Encode list parameters as the query string the remote service expects.

    Filter formulas and sort specs are passed through verbatim; only their
    bracketed query-string encoding is produced here.
    """

    encoded: list[tuple[str, str]] = [("fields[]", identifier) for identifier in fields]

    for key, value in (params or {}).items():
        if value is None:
            continue
        if key == "sort":
            for index, spec in enumerate(value):
                for spec_key, spec_value in spec.items():
                    encoded.append((f"sort[{index}][{spec_key}]", str(spec_value)))
        elif isinstance(value, (list, tuple)):
            encoded.extend((f"{key}[]", str(entry)) for entry in value)
        elif isinstance(value, bool):
            encoded.append((key, "true" if value else "false"))
        else:
            encoded.append((key, str(value)))

    return encoded


class HttpTransport:
    """Async transport backed by a shared :class:`httpx.AsyncClient`."""

    def __init__(self, settings: ClientSettings, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        timeout = settings.request_timeout_ms / 1000 if settings.request_timeout_ms else None
        self._client = client or httpx.AsyncClient(base_url=settings.endpoint_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self._settings.api_key:
            raise InvalidParameterError(
                "API key is required but was not provided.",
                suggestion="Set AIRTABLE_API_KEY or pass api_key when creating the client.",
            )
        return {"Authorization": f"Bearer {self._settings.api_key}", **self._settings.custom_headers}

    @wrap_transport_errors
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[tuple[str, str]] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> Any:
        logger.debug("transport.request", method=method, path=path)
        response = await self._client.request(method, path, params=params, json=json, headers=self._headers())
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _table_path(base_id: str, table_id: str) -> str:
        return f"/v0/{quote(base_id, safe='')}/{quote(table_id, safe='')}"

    async def fetch_base_schema(self, base_id: str) -> list[RemoteTableSchema]:
        try:
            payload = await self._request("GET", f"/v0/meta/bases/{quote(base_id, safe='')}/tables")
        except ApiError as exc:
            raise ApiError(
                f"Failed to get base schema: {exc.message}",
                suggestion=SCHEMA_PERMISSION_HINT,
                status_code=exc.status_code,
                body=exc.body,
            ) from exc
        return [RemoteTableSchema.model_validate(table) for table in payload.get("tables", [])]

    async def find_record(self, base_id: str, table_id: str, record_id: str) -> RemoteRecord | None:
        path = f"{self._table_path(base_id, table_id)}/{quote(record_id, safe='')}"
        try:
            payload = await self._request("GET", path)
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        return RemoteRecord.model_validate(payload)

    async def list_records(
        self,
        base_id: str,
        table_id: str,
        *,
        fields: Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> list[RemoteRecord]:
        """Fetch every page of records, following the ``offset`` cursor."""

        path = self._table_path(base_id, table_id)
        query = encode_list_params(fields, params)
        records: list[RemoteRecord] = []
        offset: str | None = None

        while True:
            page_query = [*query, ("offset", offset)] if offset else query
            payload = await self._request("GET", path, params=page_query)
            records.extend(RemoteRecord.model_validate(entry) for entry in payload.get("records", []))
            offset = payload.get("offset")
            if not offset:
                return records

    async def create_record(self, base_id: str, table_id: str, fields: Mapping[str, Any]) -> RemoteRecord:
        payload = await self._request("POST", self._table_path(base_id, table_id), json={"fields": dict(fields)})
        return RemoteRecord.model_validate(payload)

    async def update_record(
        self, base_id: str, table_id: str, record_id: str, fields: Mapping[str, Any]
    ) -> RemoteRecord:
        path = f"{self._table_path(base_id, table_id)}/{quote(record_id, safe='')}"
        payload = await self._request("PATCH", path, json={"fields": dict(fields)})
        return RemoteRecord.model_validate(payload)

    async def delete_record(self, base_id: str, table_id: str, record_id: str) -> str:
        path = f"{self._table_path(base_id, table_id)}/{quote(record_id, safe='')}"
        payload = await self._request("DELETE", path)
        return payload.get("id", record_id)
