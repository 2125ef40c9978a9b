"""Provider backends for external embedding services."""

from typing import Any

from embedding_adapter.providers.fake_backend import FakeBackend
from embedding_adapter.providers.jina_backend import JinaBackend
from embedding_adapter.providers.openai_backend import OpenAIBackend
from embedding_adapter.providers.protocol import EmbeddingBackend
from embedding_adapter.providers.retry_backend import RetryBackend
from embedding_adapter.providers.voyageai_backend import VoyageAIBackend
from embedding_adapter.types import ConfigurationError

BACKENDS: dict[str, type] = {
    "jina": JinaBackend,
    "voyageai": VoyageAIBackend,
    "openai": OpenAIBackend,
    "fake": FakeBackend,
}


def create_backend(name: str, **options: Any) -> EmbeddingBackend:
    """Construct the backend registered under ``name``.

    Raises:
        ConfigurationError: If ``name`` is unknown or the backend rejects ``options``.
    """
    try:
        backend_cls = BACKENDS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(BACKENDS))
        raise ConfigurationError(
            f"Unknown embedding provider {name!r}; expected one of: {known}"
        ) from None
    try:
        return backend_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(
            f"Invalid options for {name!r} backend: {exc}", provider=name
        ) from exc


__all__ = [
    "BACKENDS",
    "EmbeddingBackend",
    "FakeBackend",
    "JinaBackend",
    "OpenAIBackend",
    "RetryBackend",
    "VoyageAIBackend",
    "create_backend",
]
