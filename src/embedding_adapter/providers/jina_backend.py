"""Jina AI embedding backend using httpx."""

from embedding_adapter.logging import get_logger
from embedding_adapter.providers._http import (
    bearer_headers,
    build_config,
    make_client,
    parse_embedding_data,
    post_json,
)
from embedding_adapter.types import InputType, ProviderConfig, Vector

logger = get_logger(__name__)

JINA_MAX_BATCH_SIZE = 512


class JinaBackend:
    """Jina embeddings API backend (``POST /v1/embeddings``)."""

    name = "jina"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "jina-embeddings-v2-small-en",
        base_url: str = "https://api.jina.ai/v1",
        batch_size: int = JINA_MAX_BATCH_SIZE,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
    ) -> None:
        """Initialize the backend. Performs no network call.

        Args:
            api_key: Jina API key. Falls back to JINA_API_KEY env var if None.
            model: Jina embedding model identifier.
            base_url: API root; ``/embeddings`` is appended.
            batch_size: Texts per request, at most 512.
            connect_timeout: Seconds to establish a connection.
            read_timeout: Seconds to wait for the response.

        Raises:
            ConfigurationError: If no API key is available or a setting is invalid.
        """
        self._config = build_config(
            self.name,
            api_key=api_key,
            api_key_env="JINA_API_KEY",
            model=model,
            base_url=base_url,
            batch_size=batch_size,
            max_batch_size=JINA_MAX_BATCH_SIZE,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        self._client = make_client(self._config)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def max_batch_size(self) -> int:
        return self._config.batch_size

    async def embed_batch(
        self,
        texts: list[str],
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[Vector]:
        """Embed texts with one request.

        The v2 models encode queries and documents the same way, so
        ``input_type`` is accepted for protocol compatibility and ignored.
        """
        if not texts:
            return []

        payload = await post_json(
            self._client,
            f"{self._config.base_url}/embeddings",
            headers=bearer_headers(self._config.api_key),
            body={"model": self._config.model, "input": texts},
            provider=self.name,
        )
        vectors = parse_embedding_data(payload, len(texts), self.name)
        logger.debug("jina_batch_embedded", count=len(vectors), model=self._config.model)
        return vectors

    async def aclose(self) -> None:
        await self._client.aclose()
