"""OpenAI-compatible embedding backend using httpx."""

from typing import Any

from embedding_adapter.providers._http import (
    bearer_headers,
    build_config,
    make_client,
    parse_embedding_data,
    post_json,
)
from embedding_adapter.types import (
    ConfigurationError,
    InputType,
    ProviderConfig,
    Vector,
)

OPENAI_MAX_BATCH_SIZE = 2048


class OpenAIBackend:
    """OpenAI-compatible embedding backend using httpx AsyncClient."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        batch_size: int = OPENAI_MAX_BATCH_SIZE,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        dimensions: int | None = None,
    ) -> None:
        """Initialize the backend. Performs no network call.

        Args:
            api_key: API key. Falls back to OPENAI_API_KEY env var if None.
            model: Embedding model name.
            base_url: API root of any OpenAI-compatible server.
            batch_size: Texts per request, at most 2048.
            connect_timeout: Seconds to establish a connection.
            read_timeout: Seconds to wait for the response.
            dimensions: Optional output dimensionality (text-embedding-3 models).

        Raises:
            ConfigurationError: If no API key is available or a setting is invalid.
        """
        self._config = build_config(
            self.name,
            api_key=api_key,
            api_key_env="OPENAI_API_KEY",
            model=model,
            base_url=base_url,
            batch_size=batch_size,
            max_batch_size=OPENAI_MAX_BATCH_SIZE,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        if dimensions is not None and dimensions < 1:
            raise ConfigurationError("dimensions must be positive", provider=self.name)
        self._dimensions = dimensions
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
        """Embed texts into vectors.

        Args:
            texts: List of strings to embed
            input_type: Ignored; OpenAI models are symmetric.

        Returns:
            List of vectors (each vector is a list of floats)
        """
        if not texts:
            return []

        request_body: dict[str, Any] = {
            "model": self._config.model,
            "input": texts,
        }
        if self._dimensions is not None:
            request_body["dimensions"] = self._dimensions

        # OpenAI format: {"data": [{"embedding": [0.1, 0.2, ...], "index": 0}, ...]}
        response_data = await post_json(
            self._client,
            f"{self._config.base_url}/embeddings",
            headers=bearer_headers(self._config.api_key),
            body=request_body,
            provider=self.name,
        )
        return parse_embedding_data(response_data, len(texts), self.name)

    async def aclose(self) -> None:
        await self._client.aclose()
