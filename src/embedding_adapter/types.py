"""Core type definitions for the embedding adapter."""

from dataclasses import dataclass
from enum import Enum

Vector = list[float]


class InputType(Enum):
    """Hint telling a provider how the texts will be used."""

    QUERY = "query"
    DOCUMENT = "document"


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Immutable settings of one provider backend."""

    provider: str
    api_key: str
    model: str
    base_url: str
    batch_size: int
    connect_timeout: float = 10.0
    read_timeout: float = 30.0

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(provider={self.provider!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, batch_size={self.batch_size}, "
            f"connect_timeout={self.connect_timeout}, read_timeout={self.read_timeout})"
        )


@dataclass(slots=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    multiplier: float = 1.0
    min_wait: float = 4.0
    max_wait: float = 60.0


class EmbeddingError(Exception):
    """Base class for every error raised by the adapter."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ConfigurationError(EmbeddingError):
    """Missing or invalid credentials or model parameters."""


class AuthenticationError(EmbeddingError):
    """The provider rejected the credentials (401/403)."""


class RateLimitError(EmbeddingError):
    """The provider throttled the request (429)."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = 429,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class TransportError(EmbeddingError):
    """Network failure, timeout, or a 5xx response from the provider."""

    retryable = True


class ProtocolError(EmbeddingError):
    """Response shape did not match the request, e.g. a vector-count mismatch."""


class RequestRejectedError(EmbeddingError):
    """The provider refused the request payload (4xx other than auth/throttling)."""


class EmbeddingCancelledError(EmbeddingError):
    """The call context was cancelled or its deadline passed."""
