"""Embed a query and a small document batch through a chosen provider.

This example demonstrates:
- Selecting a provider backend by name at construction time
- Chunked document embedding that keeps input order
- Optional retry wrapping and a per-call deadline

Usage:
  uv run python examples/embed_documents.py

Environment variables:
  EMBEDDING_PROVIDER  — jina, voyageai or openai (default: jina)
  JINA_API_KEY / VOYAGEAI_API_KEY / OPENAI_API_KEY — provider credentials
  EMBEDDING_TIMEOUT   — seconds allowed per call (default: 30)

Without the provider's key the example falls back to FakeBackend.
"""

from __future__ import annotations

import asyncio
import os

from embedding_adapter import (
    CallContext,
    ConfigurationError,
    Embedder,
    EmbeddingError,
    FakeBackend,
    RetryBackend,
    RetryConfig,
    create_backend,
)
from embedding_adapter.logging import configure_logging, get_logger

logger = get_logger(__name__)

DOCUMENTS = ["Hello world", "The world is ending", "good bye"]


async def main() -> None:
    configure_logging(json_output=False, level="DEBUG")

    provider = os.environ.get("EMBEDDING_PROVIDER", "jina")
    timeout = float(os.environ.get("EMBEDDING_TIMEOUT", "30"))

    try:
        backend = create_backend(provider)
    except ConfigurationError as exc:
        print(f"{exc}. Using FakeBackend for demonstration.")
        backend = FakeBackend(dimension=8, batch_size=2)

    retrying = RetryBackend(backend, RetryConfig(max_attempts=3, min_wait=1.0, max_wait=10.0))

    async with Embedder(retrying, batch_size=2, max_concurrency=2) as embedder:
        try:
            query = await embedder.embed_query(
                "Is the world ending?", ctx=CallContext.with_timeout(timeout)
            )
            vectors = await embedder.embed_documents(
                DOCUMENTS, ctx=CallContext.with_timeout(timeout)
            )
        except EmbeddingError as exc:
            logger.error("example_failed", error_type=type(exc).__name__, error=str(exc))
            raise SystemExit(1) from exc

    print(f"Query vector dimension: {len(query)}")
    for text, vector in zip(DOCUMENTS, vectors):
        print(f"{text!r}: {len(vector)} floats, first={vector[0]:.4f}")


if __name__ == "__main__":
    asyncio.run(main())
