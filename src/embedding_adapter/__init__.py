"""Provider-agnostic text embedding adapter."""

__version__ = "0.1.0"

from embedding_adapter.types import (
    AuthenticationError,
    ConfigurationError,
    EmbeddingCancelledError,
    EmbeddingError,
    InputType,
    ProtocolError,
    ProviderConfig,
    RateLimitError,
    RequestRejectedError,
    RetryConfig,
    TransportError,
    Vector,
)
from embedding_adapter.context import CallContext
from embedding_adapter.embedder import Embedder, batch_texts
from embedding_adapter.providers import (
    EmbeddingBackend,
    FakeBackend,
    JinaBackend,
    OpenAIBackend,
    RetryBackend,
    VoyageAIBackend,
    create_backend,
)
from embedding_adapter.logging import configure_logging, get_logger


def create_embedder(
    provider: str,
    *,
    batch_size: int | None = None,
    strip_new_lines: bool = True,
    max_concurrency: int = 1,
    retry_config: RetryConfig | None = None,
    **backend_options,
) -> Embedder:
    """Build an Embedder bound to the named provider backend.

    ``backend_options`` go to the backend constructor. When ``retry_config``
    is given the backend is wrapped in a RetryBackend.

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured.
    """
    backend = create_backend(provider, **backend_options)
    if retry_config is not None:
        backend = RetryBackend(backend, retry_config)
    return Embedder(
        backend,
        batch_size=batch_size,
        strip_new_lines=strip_new_lines,
        max_concurrency=max_concurrency,
    )


__all__ = [
    "__version__",
    "AuthenticationError",
    "CallContext",
    "ConfigurationError",
    "configure_logging",
    "create_backend",
    "create_embedder",
    "Embedder",
    "EmbeddingBackend",
    "EmbeddingCancelledError",
    "EmbeddingError",
    "FakeBackend",
    "get_logger",
    "InputType",
    "JinaBackend",
    "OpenAIBackend",
    "ProtocolError",
    "ProviderConfig",
    "RateLimitError",
    "RequestRejectedError",
    "RetryBackend",
    "RetryConfig",
    "TransportError",
    "Vector",
    "VoyageAIBackend",
    "batch_texts",
]
