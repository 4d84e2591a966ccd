"""Mini README: HTTP webhook transport for spreadsheet exports.

Structure:
    * TransmissionResult - outcome of one POST (success flag, status, message).
    * WebhookTransport - posts JSON payloads with ``httpx.AsyncClient``.

The transport never raises for network problems: any ``httpx.HTTPError``
(timeouts included) becomes an unsuccessful ``TransmissionResult`` so the
synchroniser can record it without retrying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TransmissionResult:
    success: bool
    status_code: Optional[int] = None
    message: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "statusCode": self.status_code, "message": self.message}


class ExportTransport(Protocol):
    async def send(self, url: str, payload: Dict[str, Any]) -> TransmissionResult: ...


class WebhookTransport:
    """POST payloads to a webhook URL.

    When ``client`` is supplied it is reused for every request and the caller
    owns its lifecycle; otherwise a short-lived client is opened per send.
    """

    def __init__(self, *, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self._timeout = timeout
        self._client = client

    async def _post(self, client: httpx.AsyncClient, url: str, payload: Dict[str, Any]) -> httpx.Response:
        return await client.post(url, json=payload, timeout=self._timeout)

    async def send(self, url: str, payload: Dict[str, Any]) -> TransmissionResult:
        action = payload.get("action", "unknown")
        LOGGER.debug("Posting %s payload to %s", action, url)
        try:
            if self._client is not None:
                response = await self._post(self._client, url, payload)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await self._post(client, url, payload)
        except httpx.HTTPError as error:
            LOGGER.warning("Export %s to %s failed: %s", action, url, error)
            return TransmissionResult(success=False, message=str(error) or error.__class__.__name__)

        if response.is_success:
            LOGGER.info("Export %s accepted with status %s", action, response.status_code)
            return TransmissionResult(success=True, status_code=response.status_code, message=response.text)

        LOGGER.warning("Export %s rejected with status %s", action, response.status_code)
        return TransmissionResult(
            success=False,
            status_code=response.status_code,
            message=response.text or response.reason_phrase,
        )
