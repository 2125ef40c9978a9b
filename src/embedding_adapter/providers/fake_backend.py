"""Fake embedding backend for testing and offline workflows."""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable
from dataclasses import dataclass

from embedding_adapter.types import ConfigurationError, InputType, Vector


@dataclass(slots=True)
class FakeCall:
    """One recorded ``embed_batch`` request."""

    texts: list[str]
    input_type: InputType


class FakeBackend:
    """Backend that returns deterministic vectors derived from a text digest.

    Used for tests and as a placeholder in demo workflows. Every request is
    recorded in ``calls`` when it starts. ``latency`` and ``fail_when`` let
    tests reorder completions and inject provider errors per batch.
    """

    name = "fake"

    def __init__(
        self,
        dimension: int = 8,
        batch_size: int = 16,
        latency: float | Callable[[list[str]], float] = 0.0,
        fail_when: Callable[[list[str]], Exception | None] | None = None,
    ) -> None:
        """Initialize with configured vector dimension and batch limit.

        Args:
            dimension: Number of floats in each returned vector.
            batch_size: Largest batch accepted per request.
            latency: Seconds to sleep per request, or a function of the batch.
            fail_when: Returns an exception to raise for a batch, or None.

        Raises:
            ConfigurationError: If dimension or batch_size is not positive.
        """
        if dimension < 1:
            raise ConfigurationError("dimension must be positive", provider=self.name)
        if batch_size < 1:
            raise ConfigurationError("batch_size must be positive", provider=self.name)
        self._dimension = dimension
        self._batch_size = batch_size
        self._latency = latency
        self._fail_when = fail_when
        self.calls: list[FakeCall] = []
        self.closed = False

    @property
    def max_batch_size(self) -> int:
        return self._batch_size

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed_batch(
        self,
        texts: list[str],
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[Vector]:
        if len(texts) > self._batch_size:
            raise ValueError(
                f"batch of {len(texts)} exceeds fake batch limit {self._batch_size}"
            )
        self.calls.append(FakeCall(texts=list(texts), input_type=input_type))

        delay = self._latency(texts) if callable(self._latency) else self._latency
        if delay > 0:
            await asyncio.sleep(delay)

        if self._fail_when is not None:
            error = self._fail_when(texts)
            if error is not None:
                raise error

        return [self.vector_for(text) for text in texts]

    def vector_for(self, text: str) -> Vector:
        """Return the vector this backend produces for ``text``."""
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:4], "big") % 1000 / 1000.0
        # Mix seed with index to get different values for each dimension
        return [(seed + i * 0.1) % 1.0 for i in range(self._dimension)]

    async def aclose(self) -> None:
        self.closed = True
