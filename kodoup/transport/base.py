"""Abstract transport used by the upload protocol client."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Protocol, Union

Body = Union[bytes, str]


class Transport(Protocol):
    """Issue a POST and return the decoded JSON body of a success response."""

    async def post(self, url: str, *, headers: Mapping[str, str], body: Body) -> Dict[str, Any]:
        """Raise ``NetworkError`` or ``ProtocolError`` on failure."""

    async def aclose(self) -> None:
        ...


__all__ = ["Body", "Transport"]
