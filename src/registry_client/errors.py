"""
Custom exceptions for the registry HTTP clients.

Maps transport and HTTP failures onto the sync error taxonomy so the
watchers can tell a fatal rejection from an unavailable source.
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from registry_sync.errors import FatalSyncError, SourceUnavailable


class RegistryClientError(Exception):
    """Base error for registry HTTP clients."""

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        status: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.service = service
        self.status = status
        self.details = details


class ApiKeyInvalid(RegistryClientError, FatalSyncError):
    """The service rejected the configured API key (HTTP 403)."""

    pass


class UpstreamError(RegistryClientError, SourceUnavailable):
    """Network failure, non-2xx response or unparseable body."""

    pass


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def map_http_error(service: str, e: Exception) -> RegistryClientError:
    if isinstance(e, RegistryClientError):
        return e
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        details = _response_details(e.response)
        if status == 403:
            return ApiKeyInvalid(
                f"{service} API key is invalid, please check your config.yaml.",
                service=service,
                status=status,
                details=details,
            )
        return UpstreamError(
            f"{service} responded with status {status}",
            service=service,
            status=status,
            details=details,
        )
    if isinstance(e, httpx.HTTPError):
        return UpstreamError(f"{service} unreachable: {e}", service=service)
    if isinstance(e, (ValidationError, ValueError, KeyError, TypeError, AttributeError)):
        return UpstreamError(f"{service} returned an unexpected payload: {e}", service=service)
    return RegistryClientError(str(e), service=service)
