from __future__ import annotations

from typing import List

import httpx
from pydantic import ValidationError

from .base import ApiClient
from .errors import UpstreamError, map_http_error
from .models import PERMISSIONLESS_RETIREMENT, RetirementActivity

# Activity pages can be slow to assemble on the explorer side
ACTIVITIES_TIMEOUT = httpx.Timeout(600.0, read=300.0)


class RetirementExplorerApi(ApiClient):
    """Client for the public retirement explorer."""

    service = "Retirement Explorer"

    async def get_retirement_activities(
        self, page: int, limit: int, min_height: int
    ) -> List[RetirementActivity]:
        """Permissionless retirements above ``min_height``, oldest first. Empty on failure."""
        try:
            body = await self._json(
                "GET",
                "/v1/activities",
                params={
                    "page": page,
                    "limit": limit,
                    "minHeight": int(min_height) + 1,
                    "sort": "asc",
                },
                timeout=ACTIVITIES_TIMEOUT,
            )
            activities = body.get("activities") if isinstance(body, dict) else None
            try:
                return [
                    RetirementActivity.model_validate(activity)
                    for activity in activities or []
                    if isinstance(activity, dict)
                    and activity.get("mode") == PERMISSIONLESS_RETIREMENT
                ]
            except ValidationError as e:
                raise map_http_error(self.service, e) from e
        except UpstreamError as e:
            self._log_failure("Cannot get retirement activities", e)
            return []
