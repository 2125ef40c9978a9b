"""Live embedding provider tests.

Environment Variables:
    JINA_API_KEY: Jina API key (Jina tests skip without it)
    VOYAGEAI_API_KEY: Voyage AI API key (Voyage tests skip without it)

Usage:
    JINA_API_KEY=jina_xxx uv run pytest tests/integration/test_live_providers.py -v
"""

from __future__ import annotations

import os

import pytest

from embedding_adapter.embedder import Embedder
from embedding_adapter.providers import JinaBackend, VoyageAIBackend

DOCUMENTS = ["Hello world", "The world is ending", "good bye"]


@pytest.mark.asyncio
@pytest.mark.skipif(not os.getenv("JINA_API_KEY"), reason="JINA_API_KEY not set")
async def test_jina_embeddings() -> None:
    async with Embedder(JinaBackend(), batch_size=2) as embedder:
        query = await embedder.embed_query("Hello world!")
        embeddings = await embedder.embed_documents(DOCUMENTS)

    assert len(embeddings) == 3
    assert all(len(vector) == len(query) for vector in embeddings)


@pytest.mark.asyncio
@pytest.mark.skipif(not os.getenv("VOYAGEAI_API_KEY"), reason="VOYAGEAI_API_KEY not set")
async def test_voyageai_embeddings() -> None:
    async with Embedder(VoyageAIBackend(), batch_size=2) as embedder:
        query = await embedder.embed_query("Hello world!")
        embeddings = await embedder.embed_documents(DOCUMENTS)

    assert len(embeddings) == 3
    assert all(len(vector) == len(query) for vector in embeddings)
