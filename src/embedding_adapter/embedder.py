"""Provider-agnostic embedder: chunking, ordered reassembly and failure policy."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from embedding_adapter.context import CallContext
from embedding_adapter.logging import get_logger
from embedding_adapter.providers.protocol import EmbeddingBackend
from embedding_adapter.types import (
    ConfigurationError,
    EmbeddingCancelledError,
    EmbeddingError,
    InputType,
    ProtocolError,
    Vector,
)

logger = get_logger(__name__)


def batch_texts(texts: Sequence[str], batch_size: int) -> list[list[str]]:
    """Split ``texts`` into contiguous chunks of at most ``batch_size`` items.

    Produces ceil(len(texts) / batch_size) chunks, in input order.

    Raises:
        ValueError: If batch_size is not positive.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(texts[i : i + batch_size]) for i in range(0, len(texts), batch_size)]


def _first_error(group: BaseExceptionGroup) -> BaseException:
    error: BaseException = group.exceptions[0]
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


class Embedder:
    """Embeds queries and documents through one bound provider backend.

    One instance may serve many concurrent callers. Every call returns exactly
    one vector per input, in input order, or raises; partial results are never
    returned. The first successful call fixes the vector dimension for the
    lifetime of the instance.
    """

    def __init__(
        self,
        backend: EmbeddingBackend,
        *,
        batch_size: int | None = None,
        strip_new_lines: bool = True,
        max_concurrency: int = 1,
    ) -> None:
        """Bind the embedder to ``backend``.

        Args:
            backend: Provider backend that performs the requests.
            batch_size: Texts per request. Defaults to the backend's limit and
                is clamped to it.
            strip_new_lines: Replace newlines with spaces before sending.
            max_concurrency: Chunk requests in flight at once; 1 is sequential.

        Raises:
            ConfigurationError: If batch_size or max_concurrency is not positive.
        """
        limit = backend.max_batch_size
        if batch_size is None:
            batch_size = limit
        elif batch_size < 1:
            raise ConfigurationError(
                f"batch_size must be positive, got {batch_size}", provider=backend.name
            )
        if max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be positive, got {max_concurrency}",
                provider=backend.name,
            )
        self._backend = backend
        self._batch_size = min(batch_size, limit)
        self._strip_new_lines = strip_new_lines
        self._max_concurrency = max_concurrency
        self._dimension: int | None = None

    @property
    def backend(self) -> EmbeddingBackend:
        return self._backend

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def dimension(self) -> int | None:
        """Vector length fixed by the first successful call, or None before it."""
        return self._dimension

    async def embed_query(self, text: str, ctx: CallContext | None = None) -> Vector:
        """Embed a single search query.

        Returns the same vector as ``embed_documents([text])[0]`` unless the
        backend was configured to encode queries differently.

        Raises:
            EmbeddingError: Any error kind that ``embed_documents`` raises.
        """
        vectors = await self.embed_documents([text], ctx, input_type=InputType.QUERY)
        return vectors[0]

    async def embed_documents(
        self,
        texts: Sequence[str],
        ctx: CallContext | None = None,
        *,
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[Vector]:
        """Embed documents, splitting them into provider-sized chunks.

        Args:
            texts: Strings to embed. May be empty; empty strings are sent as-is.
            ctx: Optional cancellation/deadline context shared with the caller.
            input_type: Hint forwarded to the backend. Only backends configured
                to honor it change their output.

        Returns:
            One vector per input text, in input order.

        Raises:
            EmbeddingCancelledError: If ``ctx`` was cancelled or expired.
            EmbeddingError: The first chunk failure, unchanged.
        """
        return await self._embed(list(texts), input_type, ctx)

    async def aclose(self) -> None:
        await self._backend.aclose()

    async def __aenter__(self) -> Embedder:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _embed(
        self, texts: list[str], input_type: InputType, ctx: CallContext | None
    ) -> list[Vector]:
        for text in texts:
            if not isinstance(text, str):
                raise TypeError(f"texts must be strings, got {type(text).__name__}")

        ctx = ctx or CallContext()
        ctx.raise_if_done()
        if not texts:
            return []

        if self._strip_new_lines:
            texts = [text.replace("\n", " ") for text in texts]

        chunks = batch_texts(texts, self._batch_size)
        logger.debug(
            "embedding_batch_dispatched",
            provider=self._backend.name,
            input_type=input_type.value,
            texts=len(texts),
            chunks=len(chunks),
            batch_size=self._batch_size,
        )

        try:
            results = await ctx.run(self._dispatch(chunks, input_type, ctx))
        except EmbeddingCancelledError as exc:
            logger.info(
                "embedding_cancelled",
                provider=self._backend.name,
                reason=str(exc),
            )
            raise

        vectors = [vector for chunk_vectors in results for vector in chunk_vectors]
        if len(vectors) != len(texts):
            raise ProtocolError(
                f"Got {len(vectors)} embeddings for {len(texts)} inputs",
                provider=self._backend.name,
            )
        dimension = self._dimension if self._dimension is not None else len(vectors[0])
        if any(len(vector) != dimension for vector in vectors):
            raise ProtocolError(
                f"Provider returned vectors of differing dimensions, expected {dimension}",
                provider=self._backend.name,
            )
        self._dimension = dimension
        return vectors

    async def _dispatch(
        self, chunks: list[list[str]], input_type: InputType, ctx: CallContext
    ) -> list[list[Vector]]:
        # Pre-sized and indexed by chunk position, never by completion order.
        results: list[list[Vector]] = [[] for _ in chunks]
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_chunk(index: int, chunk: list[str]) -> None:
            async with semaphore:
                ctx.raise_if_done()
                try:
                    vectors = await self._backend.embed_batch(chunk, input_type)
                except EmbeddingError as exc:
                    logger.warning(
                        "embedding_chunk_failed",
                        provider=self._backend.name,
                        chunk_index=index,
                        chunk_size=len(chunk),
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    raise
            if len(vectors) != len(chunk):
                raise ProtocolError(
                    f"Chunk {index}: got {len(vectors)} embeddings for {len(chunk)} inputs",
                    provider=self._backend.name,
                )
            results[index] = vectors

        try:
            async with asyncio.TaskGroup() as task_group:
                for index, chunk in enumerate(chunks):
                    task_group.create_task(run_chunk(index, chunk))
        except BaseExceptionGroup as group:
            # First failure wins; siblings were cancelled by the task group.
            raise _first_error(group)
        return results
