"""Shared httpx plumbing for the HTTP embedding backends."""

from __future__ import annotations

import math
import os
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from embedding_adapter.logging import get_logger
from embedding_adapter.types import (
    AuthenticationError,
    ConfigurationError,
    EmbeddingError,
    ProtocolError,
    ProviderConfig,
    RateLimitError,
    RequestRejectedError,
    TransportError,
    Vector,
)

logger = get_logger(__name__)


def build_config(
    provider: str,
    *,
    api_key: str | None,
    api_key_env: str,
    model: str,
    base_url: str,
    batch_size: int,
    max_batch_size: int,
    connect_timeout: float,
    read_timeout: float,
) -> ProviderConfig:
    """Validate constructor settings and freeze them into a ProviderConfig.

    ``api_key`` falls back to the ``api_key_env`` environment variable.

    Raises:
        ConfigurationError: If any setting is missing or out of range.
    """
    key = (api_key or os.environ.get(api_key_env) or "").strip()
    if not key:
        raise ConfigurationError(
            f"{api_key_env} must be set via constructor or environment variable",
            provider=provider,
        )
    if not model or not model.strip():
        raise ConfigurationError("model must be a non-empty string", provider=provider)
    if not base_url or not base_url.strip():
        raise ConfigurationError("base_url must be a non-empty string", provider=provider)
    if batch_size < 1 or batch_size > max_batch_size:
        raise ConfigurationError(
            f"batch_size must be between 1 and {max_batch_size}, got {batch_size}",
            provider=provider,
        )
    if connect_timeout <= 0 or read_timeout <= 0:
        raise ConfigurationError("timeouts must be positive", provider=provider)

    return ProviderConfig(
        provider=provider,
        api_key=key,
        model=model.strip(),
        base_url=base_url.strip().rstrip("/"),
        batch_size=batch_size,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )


def make_client(config: ProviderConfig) -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        connect=config.connect_timeout,
        read=config.read_timeout,
        write=10.0,
        pool=10.0,
    )
    return httpx.AsyncClient(trust_env=False, timeout=timeout)


def bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str],
    body: dict[str, Any],
    provider: str,
) -> dict[str, Any]:
    """POST ``body`` and return the decoded JSON object.

    Raises:
        AuthenticationError: On 401 or 403.
        RateLimitError: On 429.
        TransportError: On 5xx, timeouts and connection failures.
        RequestRejectedError: On any other 4xx.
        ProtocolError: On a non-JSON or non-object body, or an unexpected status.
    """
    try:
        response = await client.post(url, json=body, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error(
            "embedding_http_error",
            provider=provider,
            status_code=exc.response.status_code,
            response_body=exc.response.text,
            exception=str(exc),
        )
        raise _status_error(exc.response, provider) from exc
    except httpx.RequestError as exc:
        request_method: str | None = None
        request_url: str | None = None
        try:
            request_method = exc.request.method
            request_url = str(exc.request.url)
        except RuntimeError:
            pass
        logger.error(
            "embedding_network_error",
            provider=provider,
            exception_type=type(exc).__name__,
            exception=str(exc),
            request_method=request_method,
            request_url=request_url,
        )
        raise TransportError(
            f"{provider} request failed: {type(exc).__name__}: {exc}",
            provider=provider,
        ) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("embedding_protocol_error", provider=provider, reason="invalid_json")
        raise ProtocolError(
            f"{provider} returned a non-JSON response", provider=provider
        ) from exc
    if not isinstance(payload, dict):
        logger.error("embedding_protocol_error", provider=provider, reason="not_an_object")
        raise ProtocolError(f"{provider} returned a non-object response", provider=provider)
    return payload


def parse_embedding_data(
    payload: dict[str, Any], expected: int, provider: str
) -> list[Vector]:
    """Extract vectors from a ``{"data": [{"index", "embedding"}, ...]}`` payload.

    Items are ordered by their ``index`` field when every item carries one,
    otherwise by position.

    Raises:
        ProtocolError: If the payload is malformed or the count differs from ``expected``.
    """
    data = payload.get("data")
    if not isinstance(data, list):
        logger.error("embedding_protocol_error", provider=provider, reason="missing_data")
        raise ProtocolError(f"{provider} response has no 'data' list", provider=provider)

    if len(data) != expected:
        logger.error(
            "embedding_protocol_error",
            provider=provider,
            reason="count_mismatch",
            expected=expected,
            received=len(data),
        )
        raise ProtocolError(
            f"{provider} returned {len(data)} embeddings for {expected} inputs",
            provider=provider,
        )

    if all(isinstance(item, dict) and isinstance(item.get("index"), int) for item in data):
        indices = sorted(item["index"] for item in data)
        if indices != list(range(expected)):
            raise ProtocolError(
                f"{provider} returned embeddings with unexpected indices", provider=provider
            )
        data = sorted(data, key=lambda item: item["index"])

    vectors: list[Vector] = []
    for position, item in enumerate(data):
        embedding = item.get("embedding") if isinstance(item, dict) else None
        vectors.append(_to_vector(embedding, position, provider))
    return vectors


def _to_vector(embedding: Any, position: int, provider: str) -> Vector:
    if not isinstance(embedding, list) or not embedding:
        raise ProtocolError(
            f"{provider} embedding #{position} is missing or empty", provider=provider
        )
    vector: Vector = []
    for value in embedding:
        # bool is an int subclass but never a valid component
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ProtocolError(
                f"{provider} embedding #{position} has a non-numeric component",
                provider=provider,
            )
        if not math.isfinite(value):
            raise ProtocolError(
                f"{provider} embedding #{position} has a non-finite component",
                provider=provider,
            )
        vector.append(float(value))
    return vector


def _status_error(response: httpx.Response, provider: str) -> EmbeddingError:
    status = response.status_code
    detail = _error_detail(response)
    message = f"{provider} returned HTTP {status}: {detail}"
    if status in (401, 403):
        return AuthenticationError(message, provider=provider, status_code=status)
    if status == 429:
        return RateLimitError(
            message,
            provider=provider,
            status_code=status,
            retry_after=_retry_after(response.headers.get("Retry-After")),
        )
    if status >= 500:
        return TransportError(message, provider=provider, status_code=status)
    if status >= 400:
        return RequestRejectedError(message, provider=provider, status_code=status)
    return ProtocolError(message, provider=provider, status_code=status)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error") or body.get("detail") or body.get("message")
        if isinstance(error, dict):
            error = error.get("message")
        if error:
            return str(error)
    return response.reason_phrase


def _retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())
