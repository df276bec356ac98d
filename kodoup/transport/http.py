"""httpx based transport."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..config import DEFAULT_TIMEOUT_SECONDS
from ..errors import NetworkError, ProtocolError
from ..logging_utils import extra
from .base import Body, Transport

_LOGGER = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text.strip() or response.reason_phrase or f"HTTP {response.status_code}"


class HttpxTransport(Transport):
    """Async HTTP transport with a per-request timeout.

    The transport owns its ``httpx.AsyncClient`` unless one is injected, in
    which case closing the transport leaves the client open. ``transport``
    replaces the network layer of the owned client (``httpx.MockTransport``
    in tests).
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)

    async def post(self, url: str, *, headers: Mapping[str, str], body: Body) -> Dict[str, Any]:  # type: ignore[override]
        _LOGGER.debug("POST %s", url, extra=extra(url=url, bytes=len(body)))
        try:
            response = await self._client.post(url, headers=dict(headers), content=body)
        except httpx.HTTPError as exc:
            raise NetworkError(f"request to {url} failed: {exc}", url=url) from exc

        if response.status_code != 200:
            message = _error_message(response)
            _LOGGER.debug(
                "request rejected",
                extra=extra(url=url, status_code=response.status_code, error=message),
            )
            raise ProtocolError(message, status_code=response.status_code, url=url)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProtocolError(
                f"response from {url} is not valid JSON", status_code=response.status_code, url=url
            ) from exc
        if not isinstance(payload, dict):
            raise ProtocolError(
                f"response from {url} is not a JSON object", status_code=response.status_code, url=url
            )
        return payload

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["HttpxTransport"]
