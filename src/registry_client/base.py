from __future__ import annotations

import json
from typing import Any, Optional

import httpx
from loguru import logger

from .errors import RegistryClientError, map_http_error

DEFAULT_TIMEOUT_S = 300.0


class ApiClient:
    """Thin async HTTP wrapper shared by the service clients.

    Adds the ``x-api-key`` header when a key is configured, logs every
    request at DEBUG and maps httpx failures through ``map_http_error``.
    """

    service = "API"

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        verify: Any = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ---------- internal helpers ----------

    def maybe_append_api_key(self, headers: Optional[dict] = None) -> dict:
        headers = dict(headers or {})
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json_body: Any = None,
        timeout: Any = None,
    ) -> httpx.Response:
        url = self.url(path)
        logger.debug(f"{method} {url}")
        kwargs: dict = {"params": params, "headers": self.maybe_append_api_key()}
        if json_body is not None:
            kwargs["json"] = json_body
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise map_http_error(self.service, e) from e
        return response

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        """Request and decode a JSON body; an undecodable body is an UpstreamError."""
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise map_http_error(self.service, e) from e

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        """Decoded JSON when possible, raw text otherwise (None when empty)."""
        try:
            return response.json()
        except ValueError:
            return response.text or None

    @staticmethod
    def _log_failure(message: str, e: RegistryClientError) -> None:
        logger.error(f"{message}: {e}")
        if e.details is not None:
            logger.error(f"Additional error details: {json.dumps(e.details, default=str)}")
