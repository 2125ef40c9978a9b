"""Voyage AI embedding backend using httpx."""

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

VOYAGEAI_MAX_BATCH_SIZE = 128


class VoyageAIBackend:
    """Voyage AI embeddings API backend.

    Every request is sent as ``input_type="document"`` so that a query and the
    same text embedded as a document map to one vector. Pass
    ``query_input_type=True`` to send Voyage's ``"query"`` encoding for
    queries instead.
    """

    name = "voyageai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "voyage-2",
        base_url: str = "https://api.voyageai.com/v1",
        batch_size: int = VOYAGEAI_MAX_BATCH_SIZE,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        truncation: bool = True,
        query_input_type: bool = False,
    ) -> None:
        """Initialize the backend. Performs no network call.

        Args:
            api_key: Voyage API key. Falls back to VOYAGEAI_API_KEY env var if None.
            model: Voyage model identifier.
            base_url: API root; ``/embeddings`` is appended.
            batch_size: Texts per request, at most 128.
            connect_timeout: Seconds to establish a connection.
            read_timeout: Seconds to wait for the response.
            truncation: Let the API truncate texts longer than the model context.
            query_input_type: Forward the query hint to the API.

        Raises:
            ConfigurationError: If no API key is available or a setting is invalid.
        """
        self._config = build_config(
            self.name,
            api_key=api_key,
            api_key_env="VOYAGEAI_API_KEY",
            model=model,
            base_url=base_url,
            batch_size=batch_size,
            max_batch_size=VOYAGEAI_MAX_BATCH_SIZE,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        self._truncation = truncation
        self._query_input_type = query_input_type
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
        if not texts:
            return []

        if not self._query_input_type:
            input_type = InputType.DOCUMENT
        payload = await post_json(
            self._client,
            f"{self._config.base_url}/embeddings",
            headers=bearer_headers(self._config.api_key),
            body={
                "model": self._config.model,
                "input": texts,
                "input_type": input_type.value,
                "truncation": self._truncation,
            },
            provider=self.name,
        )
        vectors = parse_embedding_data(payload, len(texts), self.name)
        logger.debug(
            "voyageai_batch_embedded",
            count=len(vectors),
            model=self._config.model,
            input_type=input_type.value,
        )
        return vectors

    async def aclose(self) -> None:
        await self._client.aclose()
