from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from loguru import logger
from pydantic import ValidationError

from research_router.models.research import (
    MergedResult,
    RawBackendResult,
    SearchQuery,
    finite_or_zero,
)

BackendRecord = Union[RawBackendResult, Mapping[str, Any]]
RetrievalBackend = Callable[[SearchQuery, int], Awaitable[Sequence[BackendRecord]]]


class RetrievalBackendError(RuntimeError):
    """An injected backend raised or returned records that fail validation."""

    def __init__(self, backend: str, message: str):
        super().__init__(f"{backend} backend failed: {message}")
        self.backend = backend


@dataclass(slots=True)
class FanOutResult:
    """Merged records plus each backend's native ranking (as returned)."""

    merged: dict[str, MergedResult] = field(default_factory=dict)
    sparse_ids: list[str] = field(default_factory=list)
    dense_ids: list[str] = field(default_factory=list)

    @property
    def results(self) -> list[MergedResult]:
        return list(self.merged.values())


def normalize_records(backend: str, records: Sequence[BackendRecord]) -> list[RawBackendResult]:
    normalized: list[RawBackendResult] = []
    for item in records or ():
        if isinstance(item, RawBackendResult):
            normalized.append(item)
            continue
        try:
            normalized.append(RawBackendResult.model_validate(item))
        except ValidationError as e:
            raise RetrievalBackendError(backend, f"invalid record: {e}") from e
    return normalized


def ingest(
    merged: dict[str, MergedResult],
    records: Sequence[RawBackendResult],
    *,
    dense: bool,
) -> list[str]:
    """Merge ``records`` into ``merged`` keyed by id (url when no id).

    The first occurrence of a key creates the record; later occurrences only
    overwrite the score owned by this backend. Returns the keys in backend
    order.
    """
    keys: list[str] = []
    for r in records:
        key = r.key
        keys.append(key)
        item = merged.get(key)
        if item is None:
            item = MergedResult(
                id=key,
                url=r.url,
                title=r.title,
                snippet=r.snippet,
                published_date_iso=r.published_date_iso or None,
            )
            merged[key] = item
        if dense:
            item.dense_score = finite_or_zero(r.dense_score)
        else:
            item.sparse_score = finite_or_zero(r.sparse_score)
    return keys


async def _call_backend(
    name: str,
    backend: RetrievalBackend,
    query: SearchQuery,
    limit: int,
) -> list[RawBackendResult]:
    try:
        records = await backend(query, limit)
    except RetrievalBackendError:
        raise
    except Exception as e:
        raise RetrievalBackendError(name, str(e) or type(e).__name__) from e
    return normalize_records(name, records)


async def fan_out(
    query: SearchQuery,
    limit: int,
    keyword_backend: RetrievalBackend,
    dense_backend: RetrievalBackend,
) -> FanOutResult:
    """Call both backends concurrently and merge their results.

    Either backend failing fails the whole call; there is no partial result.
    The first failure cancels the other backend's call.
    """
    tasks = [
        asyncio.create_task(_call_backend("keyword", keyword_backend, query, limit)),
        asyncio.create_task(_call_backend("dense", dense_backend, query, limit)),
    ]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    sparse_results, dense_results = (task.result() for task in tasks)
    logger.debug(
        "Retrieved {} keyword and {} dense records (limit={})",
        len(sparse_results),
        len(dense_results),
        limit,
    )

    out = FanOutResult()
    out.sparse_ids = ingest(out.merged, sparse_results, dense=False)
    out.dense_ids = ingest(out.merged, dense_results, dense=True)
    return out
