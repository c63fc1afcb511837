from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from loguru import logger

from research_router.config import settings
from research_router.models.research import RawBackendResult, SearchQuery
from research_router.services.retrieval import RetrievalBackend
from research_router.tools import search_provider
from research_router.tools.local_corpus import LocalCorpus


@dataclass(frozen=True)
class BackendPair:
    keyword: RetrievalBackend
    dense: RetrievalBackend


@lru_cache(maxsize=4)
def load_corpus(path: str) -> LocalCorpus:
    logger.info("Loading local corpus from {}", path)
    return LocalCorpus.from_path(path)


async def no_results(query: SearchQuery, limit: int) -> list[RawBackendResult]:
    return []


def get_backends() -> BackendPair:
    """Backends selected by ``SEARCH_PROVIDER`` and ``CORPUS_PATH``."""
    provider = settings.search_provider.lower().strip()
    corpus = load_corpus(settings.corpus_path) if settings.corpus_path else None

    if provider == "corpus":
        if corpus is None:
            raise RuntimeError("SEARCH_PROVIDER=corpus requires CORPUS_PATH")
        keyword = corpus.keyword_backend
    elif provider in ("brave", "tavily"):
        keyword = search_provider.keyword_backend
    else:
        raise ValueError(f"Unsupported SEARCH_PROVIDER: {settings.search_provider}")

    if corpus is None:
        logger.warning("No CORPUS_PATH configured; dense retrieval returns no results")
        return BackendPair(keyword=keyword, dense=no_results)
    return BackendPair(keyword=keyword, dense=corpus.dense_backend)
