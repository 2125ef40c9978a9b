"""Tests for the Embedder: chunking, ordering, failure and cancellation."""

import asyncio
import math
import time

import pytest

from embedding_adapter.context import CallContext
from embedding_adapter.embedder import Embedder, batch_texts
from embedding_adapter.providers.fake_backend import FakeBackend
from embedding_adapter.types import (
    AuthenticationError,
    ConfigurationError,
    EmbeddingCancelledError,
    InputType,
    ProtocolError,
    RateLimitError,
    TransportError,
    Vector,
)

SCENARIO = ["Hello world", "The world is ending", "good bye"]


class MiscountingBackend:
    """Returns one vector too few for every batch."""

    name = "miscounting"
    max_batch_size = 4

    async def embed_batch(
        self, texts: list[str], input_type: InputType = InputType.DOCUMENT
    ) -> list[Vector]:
        return [[1.0, 2.0] for _ in texts[1:]]

    async def aclose(self) -> None:
        pass


class RaggedBackend:
    """Returns vectors whose dimension depends on the text length."""

    name = "ragged"
    max_batch_size = 4

    async def embed_batch(
        self, texts: list[str], input_type: InputType = InputType.DOCUMENT
    ) -> list[Vector]:
        return [[0.5] * (len(text) + 1) for text in texts]

    async def aclose(self) -> None:
        pass


def test_batch_texts_preserves_order_and_sizes() -> None:
    chunks = batch_texts(["a", "b", "c", "d", "e"], 2)

    assert chunks == [["a", "b"], ["c", "d"], ["e"]]


def test_batch_texts_empty_and_invalid() -> None:
    assert batch_texts([], 3) == []
    with pytest.raises(ValueError):
        batch_texts(["a"], 0)


@pytest.mark.asyncio
async def test_scenario_two_requests_in_original_order() -> None:
    backend = FakeBackend(batch_size=2)
    embedder = Embedder(backend)

    result = await embedder.embed_documents(SCENARIO)

    assert [len(call.texts) for call in backend.calls] == [2, 1]
    assert result == [backend.vector_for(text) for text in SCENARIO]


@pytest.mark.asyncio
async def test_order_kept_when_later_chunk_finishes_first() -> None:
    def latency(texts: list[str]) -> float:
        return 0.05 if texts[0] == "Hello world" else 0.0

    backend = FakeBackend(batch_size=2, latency=latency)
    embedder = Embedder(backend, max_concurrency=2)

    result = await embedder.embed_documents(SCENARIO)

    assert result == [backend.vector_for(text) for text in SCENARIO]
    assert len(backend.calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("count", "batch_size"),
    [(1, 1), (5, 2), (6, 3), (7, 7), (10, 4), (17, 16)],
)
async def test_issues_ceil_n_over_b_requests(count: int, batch_size: int) -> None:
    backend = FakeBackend(batch_size=batch_size)
    embedder = Embedder(backend, max_concurrency=3)
    texts = [f"text {i}" for i in range(count)]

    result = await embedder.embed_documents(texts)

    assert len(backend.calls) == math.ceil(count / batch_size)
    assert [text for call in backend.calls for text in call.texts] == texts
    assert result == [backend.vector_for(text) for text in texts]


@pytest.mark.asyncio
async def test_empty_input_makes_no_requests() -> None:
    backend = FakeBackend()
    embedder = Embedder(backend)

    assert await embedder.embed_documents([]) == []
    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["Hello world!", ""])
async def test_embed_query_matches_first_document(text: str) -> None:
    backend = FakeBackend()
    embedder = Embedder(backend)

    query_vector = await embedder.embed_query(text)
    document_vectors = await embedder.embed_documents([text])

    assert query_vector == document_vectors[0]
    assert [call.input_type for call in backend.calls] == [
        InputType.QUERY,
        InputType.DOCUMENT,
    ]


@pytest.mark.asyncio
async def test_empty_strings_are_embedded_not_dropped() -> None:
    backend = FakeBackend(batch_size=2)
    embedder = Embedder(backend)

    result = await embedder.embed_documents(["", "x", ""])

    assert len(result) == 3
    assert result[0] == result[2] == backend.vector_for("")


@pytest.mark.asyncio
async def test_new_lines_stripped_by_default() -> None:
    backend = FakeBackend()

    await Embedder(backend).embed_documents(["line one\nline two"])
    await Embedder(backend, strip_new_lines=False).embed_documents(["a\nb"])

    assert backend.calls[0].texts == ["line one line two"]
    assert backend.calls[1].texts == ["a\nb"]


@pytest.mark.asyncio
async def test_chunk_failure_fails_whole_call() -> None:
    error = RateLimitError("throttled", provider="fake")
    backend = FakeBackend(
        batch_size=1,
        fail_when=lambda texts: error if texts == ["The world is ending"] else None,
    )
    embedder = Embedder(backend)

    with pytest.raises(RateLimitError) as exc_info:
        await embedder.embed_documents(SCENARIO)

    assert exc_info.value is error
    # Sequential dispatch stops at the failing chunk.
    assert [call.texts for call in backend.calls] == [["Hello world"], ["The world is ending"]]


@pytest.mark.asyncio
async def test_concurrent_chunk_failure_cancels_siblings() -> None:
    def latency(texts: list[str]) -> float:
        return 0.0 if texts == ["bad"] else 5.0

    backend = FakeBackend(
        batch_size=1,
        latency=latency,
        fail_when=lambda texts: AuthenticationError("denied") if texts == ["bad"] else None,
    )
    embedder = Embedder(backend, max_concurrency=4)

    started = time.monotonic()
    with pytest.raises(AuthenticationError):
        await embedder.embed_documents(["slow 1", "bad", "slow 2", "slow 3"])

    assert time.monotonic() - started < 1.0


@pytest.mark.asyncio
async def test_vector_count_mismatch_is_protocol_error() -> None:
    embedder = Embedder(MiscountingBackend())

    with pytest.raises(ProtocolError):
        await embedder.embed_documents(["a", "b"])


@pytest.mark.asyncio
async def test_differing_dimensions_is_protocol_error() -> None:
    embedder = Embedder(RaggedBackend())

    with pytest.raises(ProtocolError):
        await embedder.embed_documents(["a", "bb"])


@pytest.mark.asyncio
async def test_dimension_fixed_across_calls() -> None:
    embedder = Embedder(RaggedBackend())

    assert await embedder.embed_documents(["a", "b"]) == [[0.5, 0.5], [0.5, 0.5]]
    assert embedder.dimension == 2

    with pytest.raises(ProtocolError, match="expected 2"):
        await embedder.embed_query("bb")
    assert embedder.dimension == 2


@pytest.mark.asyncio
async def test_pre_cancelled_context_makes_no_requests() -> None:
    backend = FakeBackend()
    embedder = Embedder(backend)
    ctx = CallContext()
    ctx.cancel("shutting down")

    with pytest.raises(EmbeddingCancelledError, match="shutting down"):
        await embedder.embed_documents(SCENARIO, ctx=ctx)

    assert backend.calls == []


@pytest.mark.asyncio
async def test_cancel_mid_call_stops_further_requests() -> None:
    backend = FakeBackend(batch_size=1, latency=0.05)
    embedder = Embedder(backend)
    ctx = CallContext()
    asyncio.get_running_loop().call_later(0.07, ctx.cancel)

    with pytest.raises(EmbeddingCancelledError):
        await embedder.embed_documents([f"t{i}" for i in range(10)], ctx=ctx)

    issued = len(backend.calls)
    assert issued <= 2
    await asyncio.sleep(0.15)
    assert len(backend.calls) == issued


@pytest.mark.asyncio
async def test_cancel_propagates_to_in_flight_concurrent_chunks() -> None:
    backend = FakeBackend(batch_size=1, latency=5.0)
    embedder = Embedder(backend, max_concurrency=4)
    ctx = CallContext()
    asyncio.get_running_loop().call_later(0.05, ctx.cancel)

    started = time.monotonic()
    with pytest.raises(EmbeddingCancelledError):
        await embedder.embed_documents(SCENARIO, ctx=ctx)

    assert time.monotonic() - started < 1.0


@pytest.mark.asyncio
async def test_deadline_exceeded_raises_cancellation() -> None:
    backend = FakeBackend(latency=5.0)
    embedder = Embedder(backend)

    started = time.monotonic()
    with pytest.raises(EmbeddingCancelledError, match="deadline"):
        await embedder.embed_query("slow", ctx=CallContext.with_timeout(0.05))

    assert time.monotonic() - started < 1.0


@pytest.mark.asyncio
async def test_task_cancellation_propagates() -> None:
    backend = FakeBackend(latency=5.0)
    embedder = Embedder(backend)

    task = asyncio.create_task(embedder.embed_documents(SCENARIO))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_concurrent_callers_do_not_interfere() -> None:
    backend = FakeBackend(batch_size=2, latency=lambda texts: 0.01 * len(texts[0]))
    embedder = Embedder(backend, max_concurrency=2)
    first = [f"first {i}" for i in range(5)]
    second = [f"second call {i}" for i in range(7)]

    result1, result2 = await asyncio.gather(
        embedder.embed_documents(first), embedder.embed_documents(second)
    )

    assert result1 == [backend.vector_for(text) for text in first]
    assert result2 == [backend.vector_for(text) for text in second]


@pytest.mark.asyncio
async def test_transport_error_propagates_unchanged() -> None:
    error = TransportError("connection reset", provider="fake")
    backend = FakeBackend(fail_when=lambda texts: error)

    with pytest.raises(TransportError) as exc_info:
        await Embedder(backend).embed_documents(["a"])

    assert exc_info.value is error


def test_batch_size_defaults_and_clamps_to_backend_limit() -> None:
    backend = FakeBackend(batch_size=4)

    assert Embedder(backend).batch_size == 4
    assert Embedder(backend, batch_size=2).batch_size == 2
    assert Embedder(backend, batch_size=100).batch_size == 4


@pytest.mark.parametrize("kwargs", [{"batch_size": 0}, {"max_concurrency": 0}])
def test_invalid_embedder_settings(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        Embedder(FakeBackend(), **kwargs)


@pytest.mark.asyncio
async def test_non_string_input_rejected() -> None:
    with pytest.raises(TypeError):
        await Embedder(FakeBackend()).embed_documents(["ok", 3])  # type: ignore[list-item]


@pytest.mark.asyncio
async def test_async_context_manager_closes_backend() -> None:
    backend = FakeBackend()

    async with Embedder(backend) as embedder:
        await embedder.embed_query("hi")

    assert backend.closed
