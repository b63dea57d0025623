"""Time-bounded cache of remote base schemas."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from typed_airtable.core.logging import get_logger
from typed_airtable.models.tables import RemoteTableSchema

logger = get_logger(__name__)

SchemaFetcher = Callable[[str], Awaitable[list[RemoteTableSchema]]]
Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass(slots=True)
class CachedBaseSchema:
    fetched_at_ms: float
    tables: list[RemoteTableSchema]


class SchemaCache:
    """Cache table schemas per base for ``ttl_ms`` milliseconds.

    When a new base would push the cache past ``max_bases`` entries the whole
    cache is cleared first. This is a coarse guard against unbounded growth
    when one client talks to many bases, not an LRU.

    Concurrent misses for the same base each fetch; the entry is written
    without awaiting in between, so readers never see a partial entry.
    """

    def __init__(
        self,
        fetch: SchemaFetcher,
        *,
        ttl_ms: float = 120_000,
        max_bases: int = 100,
        clock: Clock | None = None,
    ) -> None:
        self._fetch = fetch
        self._entries: dict[str, CachedBaseSchema] = {}
        self.ttl_ms = ttl_ms
        self.max_bases = max_bases
        self._clock = clock or _monotonic_ms

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, base_id: object) -> bool:
        return base_id in self._entries

    async def get(self, base_id: str) -> list[RemoteTableSchema]:
        """Return the tables of ``base_id``, fetching when absent or expired."""

        cached = self._entries.get(base_id)
        if cached is not None and self._clock() - cached.fetched_at_ms < self.ttl_ms:
            logger.debug("schema_cache.hit", base_id=base_id)
            return cached.tables

        logger.debug("schema_cache.miss", base_id=base_id, expired=cached is not None)
        tables = await self._fetch(base_id)

        if base_id not in self._entries and len(self._entries) >= self.max_bases:
            logger.warning(
                "schema_cache.cleared",
                size=len(self._entries),
                max_bases=self.max_bases,
                message="Schema cache cleared to bound memory; not optimised for this many distinct bases.",
            )
            self._entries.clear()

        self._entries[base_id] = CachedBaseSchema(fetched_at_ms=self._clock(), tables=tables)
        return tables

    def invalidate(self, base_id: str) -> None:
        self._entries.pop(base_id, None)

    def clear(self) -> None:
        self._entries.clear()
