from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from loguru import logger

from registry_sync.coordinator import (
    CONFIRMATION_MAX_ATTEMPTS,
    CONFIRMATION_POLL_INTERVAL_S,
    RetryBudget,
    RetryExecutor,
    TransactionConfirmationWatcher,
)
from registry_sync.coordinator.retry import Sleep
from registry_sync.models import ConfirmationStatus

from .base import ApiClient
from .errors import UpstreamError

DETOKENIZATION_RETRY = RetryBudget(max_attempts=3, interval_ms=5000)


class TokenDriverApi(ApiClient):
    """Client for the tokenization engine (token driver)."""

    service = "Token Driver"

    def __init__(
        self,
        base_url: str,
        *,
        confirmation_poll_interval: float = CONFIRMATION_POLL_INTERVAL_S,
        confirmation_max_attempts: int = CONFIRMATION_MAX_ATTEMPTS,
        retry_unavailable: bool = False,
        retry_budget: RetryBudget = DETOKENIZATION_RETRY,
        sleep: Sleep = asyncio.sleep,
        **kwargs,
    ):
        super().__init__(base_url, **kwargs)
        self.transaction_watcher = TransactionConfirmationWatcher(
            self,
            poll_interval=confirmation_poll_interval,
            max_attempts=confirmation_max_attempts,
            retry_unavailable=retry_unavailable,
            sleep=sleep,
        )
        self._retry = RetryExecutor(retry_budget, sleep=sleep, name="detokenization confirm")

    async def send_parse_detok_request(self, detok_string: str) -> Any:
        try:
            return await self._json(
                "GET", "/v1/tokens/parse-detokenization", params={"content": detok_string}
            )
        except UpstreamError as e:
            raise UpstreamError(
                f"Detokenize api could not process request: {e}",
                service=self.service,
                status=e.status,
                details=e.details,
            ) from e

    async def confirm_transaction(self, transaction_id: str) -> ConfirmationStatus:
        body = await self._json("GET", f"/v1/transactions/{transaction_id}")
        record = body.get("record") if isinstance(body, dict) else None
        if not isinstance(record, dict):
            return ConfirmationStatus(confirmed=False)
        return ConfirmationStatus(confirmed=bool(record.get("confirmed")))

    async def wait_for_tokenization_transaction_confirmation(self, transaction_id: str) -> bool:
        """True once the token creation transaction is confirmed, False when the watcher gives up."""
        return await self.transaction_watcher.wait_for_confirmation(transaction_id)

    async def confirm_detokenization(self, payload: dict) -> Any:
        """PUT the detokenization confirmation, retried under DETOKENIZATION_RETRY."""
        asset_id = (payload.get("token") or {}).get("asset_id")
        body = {k: v for k, v in payload.items() if k != "unit"}

        async def _put():
            return await self._request(
                "PUT", f"/v1/tokens/{asset_id}/detokenize", json_body=body
            )

        response = await self._retry.run(_put)
        return self._body(response)

    async def create_token(self, tokenization_body: dict) -> Optional[Any]:
        try:
            response = await self._request("POST", "/v1/tokens", json_body=tokenization_body)
        except UpstreamError as e:
            self._log_failure("Token creation could not be initiated", e)
            return None

        data = self._body(response)
        logger.trace(f"Token creation response: {json.dumps(data, default=str)}")
        return data
