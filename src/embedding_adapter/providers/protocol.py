"""Embedding backend protocol implemented by every provider adapter."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from embedding_adapter.types import InputType, Vector


@runtime_checkable
class EmbeddingBackend(Protocol):
    """Protocol for one external embedding service.

    Implementations turn at most ``max_batch_size`` texts into the same
    number of vectors, in input order, with a single request. They raise the
    typed errors from ``embedding_adapter.types`` and never retry on their own.
    """

    name: str
    max_batch_size: int

    async def embed_batch(
        self,
        texts: list[str],
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[Vector]:
        """Embed one provider-sized batch of texts.

        Args:
            texts: Strings to embed; ``len(texts) <= max_batch_size``.
            input_type: Whether the texts are search queries or documents.

        Returns:
            One vector per text, in the same order.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections held by the backend."""
        ...
