from __future__ import annotations

import asyncio
import time
from typing import Any, Protocol

from research_router.config import settings


class TextEncoder(Protocol):
    def encode(self, sentences: list[str], **kwargs: Any) -> Any: ...


class LocalEmbeddingService:
    """Sentence-transformers embeddings computed off the event loop.

    The model loads lazily on first use. Pass ``encoder`` to supply any
    object with a compatible ``encode`` method instead.
    """

    def __init__(
        self,
        model_name: str | None = None,
        batch_size: int | None = None,
        encoder: TextEncoder | None = None,
    ):
        self.model_name = model_name or settings.local_embed_model
        self.batch_size = batch_size or int(settings.local_embed_batch_size)
        self._model: TextEncoder | None = encoder
        self._lock = asyncio.Lock()

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        async with self._lock:
            if self._model is None:
                self._model = await asyncio.to_thread(self._load_model)
        return await asyncio.to_thread(self._embed_sync, texts)

    async def embed_text(self, text: str) -> list[float]:
        vectors = await self.embed_texts([text])
        return vectors[0]

    def _load_model(self) -> TextEncoder:
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name)

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        if self._model is None:
            raise RuntimeError("embedding model is not loaded")
        retries = 3
        attempt = 0
        while True:
            try:
                vectors = self._model.encode(
                    texts,
                    batch_size=self.batch_size,
                    normalize_embeddings=True,
                    show_progress_bar=False,
                )
                return [list(map(float, row)) for row in vectors]
            except RuntimeError:
                attempt += 1
                if attempt >= retries:
                    raise
                time.sleep(0.2 * attempt)
