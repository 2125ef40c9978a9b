from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from embedding_adapter.logging import get_logger
from embedding_adapter.providers.protocol import EmbeddingBackend
from embedding_adapter.types import (
    InputType,
    RateLimitError,
    RetryConfig,
    TransportError,
    Vector,
)

logger = get_logger(__name__)


class RetryBackend:
    """Wraps a backend and retries throttled or transport-failed batches.

    Authentication, configuration, rejected-request and protocol errors are
    raised on the first attempt.
    """

    def __init__(
        self,
        backend: EmbeddingBackend,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._backend = backend
        self._retry_config = retry_config or RetryConfig()
        self._exponential = wait_exponential(
            multiplier=self._retry_config.multiplier,
            min=self._retry_config.min_wait,
            max=self._retry_config.max_wait,
        )

    @property
    def name(self) -> str:
        return self._backend.name

    @property
    def max_batch_size(self) -> int:
        return self._backend.max_batch_size

    async def embed_batch(
        self,
        texts: list[str],
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[Vector]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_config.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type((RateLimitError, TransportError)),
            before_sleep=self._log_retry_attempt,
            reraise=True,
        ):
            with attempt:
                return await self._backend.embed_batch(texts, input_type)

        raise RuntimeError("Retry loop exited unexpectedly")

    async def aclose(self) -> None:
        await self._backend.aclose()

    def _wait(self, retry_state: RetryCallState) -> float:
        delay = self._exponential(retry_state)
        if retry_state.outcome is not None and retry_state.outcome.failed:
            error = retry_state.outcome.exception()
            if isinstance(error, RateLimitError) and error.retry_after is not None:
                delay = max(delay, min(error.retry_after, self._retry_config.max_wait))
        return delay

    def _log_retry_attempt(self, retry_state: RetryCallState) -> None:
        if retry_state.outcome is None or not retry_state.outcome.failed:
            return
        error = retry_state.outcome.exception()
        if error is None:
            return
        logger.warning(
            "retrying_embedding_call",
            provider=self._backend.name,
            attempt=retry_state.attempt_number,
            error_type=type(error).__name__,
            error=str(error),
            wait_seconds=retry_state.upcoming_sleep,
        )
