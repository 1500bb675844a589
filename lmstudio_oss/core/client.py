"""HTTP client for a local LM Studio server."""

from __future__ import annotations

from typing import Any, List, Optional

import httpx

from lmstudio_oss.core.config import (
    LMSTUDIO_OSS_PROVIDER_ID,
    OssConfig,
    get_provider,
    require_base_url,
)
from lmstudio_oss.core.errors import MalformedResponseError, ServerError, TransportError
from lmstudio_oss.utils.log import get_logger

logger = get_logger()

# Only the connect phase is bounded; a connected but silent server can still stall a request.
CONNECT_TIMEOUT_SECONDS = 5.0


def _build_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(None, connect=CONNECT_TIMEOUT_SECONDS),
        transport=transport,
    )


def _extract_model_ids(payload: Any) -> List[str]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise MalformedResponseError("No 'data' array in response")
    return [
        entry["id"]
        for entry in data
        if isinstance(entry, dict) and isinstance(entry.get("id"), str)
    ]


class LMStudioClient:
    """Talks to the OpenAI-compatible `/models` endpoint of LM Studio."""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = http_client

    @classmethod
    def from_host_root(
        cls, host_root: str, *, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "LMStudioClient":
        """Build a client for a raw base URL without contacting the server."""
        return cls(host_root, _build_http_client(transport))

    @classmethod
    async def try_from_provider(
        cls,
        config: OssConfig,
        *,
        provider_id: str = LMSTUDIO_OSS_PROVIDER_ID,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LMStudioClient":
        """Build a client from configuration and verify the server answers.

        Raises:
            ConfigurationMissingError: The provider or its base URL is missing.
            ServerError: The health check got a non-2xx status or could not connect.
        """
        provider = get_provider(config, provider_id)
        base_url = require_base_url(provider)
        client = cls.from_host_root(base_url, transport=transport)
        try:
            await client.check_health()
        except BaseException:
            await client.aclose()
            raise
        return client

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    async def check_health(self) -> None:
        """Succeed on any 2xx answer from `/models`, regardless of body."""
        try:
            response = await self._client.get(self.models_url)
        except httpx.HTTPError as e:
            logger.debug(
                "[client] Health check could not reach server",
                extra={"url": self.models_url, "error": str(e)},
            )
            raise ServerError(f"Server unreachable: {e}") from e

        if not response.is_success:
            raise ServerError(
                f"Server returned error: {response.status_code}",
                status_code=response.status_code,
            )
        logger.debug("[client] Server is healthy", extra={"url": self.models_url})

    async def list_models(self) -> List[str]:
        """Return the ids of models the server reports, in server order.

        Entries without a string ``id`` are skipped.
        """
        try:
            response = await self._client.get(self.models_url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e

        if not response.is_success:
            raise ServerError(
                f"Failed to fetch models: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"JSON parse error: {e}") from e

        models = _extract_model_ids(payload)
        logger.debug(
            "[client] Listed models",
            extra={"url": self.models_url, "model_count": len(models)},
        )
        return models

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "LMStudioClient":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
