"""Offline keyword and dense backends over a local JSON document list.

Each document is an object with ``url`` and optionally ``id``, ``title``,
``snippet`` and ``publishedDateISO``. BM25 and cosine scores are normalized
to the 0-1 range per query, like the web adapters' scores.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from rank_bm25 import BM25Okapi

from research_router.models.research import RawBackendResult, SearchQuery
from research_router.services.embeddings_local import LocalEmbeddingService
from research_router.services.result_curator import as_utc, parse_iso_datetime
from research_router.tools.web_utils import extract_hostname, host_matches

TIME_RANGE_DAYS = {
    "past_day": 1,
    "past_week": 7,
    "past_month": 30,
    "past_year": 365,
}

_TOKEN = re.compile(r"[a-z0-9]+")


def _tokenize(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


@dataclass(frozen=True, slots=True)
class CorpusDocument:
    id: str
    url: str
    title: str = ""
    snippet: str = ""
    published_date_iso: str | None = None

    @property
    def text(self) -> str:
        return f"{self.title} {self.snippet}"


def _normalize(scores: list[float]) -> list[float]:
    max_score = max(scores) if scores else 0.0
    if max_score <= 0:
        return [0.0] * len(scores)
    return [s / max_score for s in scores]


class LocalCorpus:
    def __init__(
        self,
        documents: list[CorpusDocument],
        embeddings: LocalEmbeddingService | None = None,
        *,
        now: datetime | None = None,
    ):
        self.documents = documents
        self._embeddings = embeddings
        self._doc_vectors: list[list[float]] | None = None
        self._bm25 = BM25Okapi([_tokenize(d.text) or [""] for d in documents]) if documents else None
        self._now = as_utc(now) if now else None

    @classmethod
    def from_records(cls, records: list[dict[str, Any]], **kwargs: Any) -> LocalCorpus:
        documents: list[CorpusDocument] = []
        for item in records:
            url = item.get("url")
            if not isinstance(url, str) or not url:
                raise ValueError(f"corpus document without url: {item!r}")
            documents.append(
                CorpusDocument(
                    id=str(item.get("id") or url),
                    url=url,
                    title=item.get("title") or "",
                    snippet=item.get("snippet") or "",
                    published_date_iso=item.get("publishedDateISO") or item.get("published_date_iso"),
                )
            )
        return cls(documents, **kwargs)

    @classmethod
    def from_path(cls, path: str | Path, **kwargs: Any) -> LocalCorpus:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            raw = raw.get("documents", [])
        return cls.from_records(raw, **kwargs)

    def _eligible(self, query: SearchQuery) -> list[int]:
        """Indices of documents passing site, exclusion and time filters."""
        cutoff = None
        days = TIME_RANGE_DAYS.get(query.time_range or "")
        if days:
            cutoff = (self._now or datetime.now(timezone.utc)) - timedelta(days=days)
        excluded = {t.lower() for t in query.excluded_keywords}

        indices: list[int] = []
        for idx, doc in enumerate(self.documents):
            if query.site_filters:
                host = extract_hostname(doc.url)
                if not any(host_matches(host, site) for site in query.site_filters):
                    continue
            if excluded and excluded.intersection(_tokenize(doc.text)):
                continue
            if cutoff is not None:
                published = parse_iso_datetime(doc.published_date_iso) if doc.published_date_iso else None
                if published is None or published < cutoff:
                    continue
            indices.append(idx)
        return indices

    def _to_record(self, doc: CorpusDocument, **score: float) -> RawBackendResult:
        return RawBackendResult(
            id=doc.id,
            url=doc.url,
            title=doc.title,
            snippet=doc.snippet,
            published_date_iso=doc.published_date_iso,
            **score,
        )

    async def keyword_backend(self, query: SearchQuery, limit: int) -> list[RawBackendResult]:
        if self._bm25 is None:
            return []
        terms = _tokenize(" ".join(query.must_keywords + query.should_keywords) or query.user_query)
        if not terms:
            return []
        scores = _normalize([float(s) for s in self._bm25.get_scores(terms)])
        ranked = sorted(
            (i for i in self._eligible(query) if scores[i] > 0),
            key=lambda i: scores[i],
            reverse=True,
        )
        return [self._to_record(self.documents[i], sparse_score=scores[i]) for i in ranked[:limit]]

    async def dense_backend(self, query: SearchQuery, limit: int) -> list[RawBackendResult]:
        if not self.documents or not query.user_query:
            return []
        if self._embeddings is None:
            self._embeddings = LocalEmbeddingService()
        if self._doc_vectors is None:
            self._doc_vectors = await self._embeddings.embed_texts([d.text for d in self.documents])
        query_vector = await self._embeddings.embed_text(query.user_query)

        # Vectors are normalized, so the dot product is the cosine similarity.
        similarities = [
            max(0.0, sum(q * d for q, d in zip(query_vector, vector))) for vector in self._doc_vectors
        ]
        scores = _normalize(similarities)
        ranked = sorted(
            (i for i in self._eligible(query) if scores[i] > 0),
            key=lambda i: scores[i],
            reverse=True,
        )
        return [self._to_record(self.documents[i], dense_score=scores[i]) for i in ranked[:limit]]
