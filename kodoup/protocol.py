"""Client for the mkblk / bput / mkfile chunked upload endpoints."""
from __future__ import annotations

import base64
from typing import Any, Dict, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .common.chunker import Chunk
from .errors import ProtocolError
from .models import ChunkResult, FileCreated
from .transport.base import Transport

_ModelT = TypeVar("_ModelT", bound=BaseModel)

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain"


def urlsafe_b64encode(value: str) -> str:
    """URL-safe base64 (``+`` -> ``-``, ``/`` -> ``_``) of the UTF-8 bytes of *value*."""

    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii")


def _headers(token: str, content_type: str) -> Dict[str, str]:
    return {
        "Content-Type": content_type,
        "Authorization": f"UpToken {token}",
    }


def _parse(model: Type[_ModelT], payload: Mapping[str, Any], url: str) -> _ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"malformed response from {url}: {exc}", url=url) from exc


class UploadAPI:
    """Typed wrappers around the three protocol endpoints."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    async def make_block(self, host: str, block_length: int, first_chunk: Chunk, token: str) -> ChunkResult:
        url = f"{host.rstrip('/')}/mkblk/{block_length}"
        payload = await self.transport.post(url, headers=_headers(token, OCTET_STREAM), body=first_chunk.data)
        return _parse(ChunkResult, payload, url)

    async def put_chunk(self, host: str, previous: ChunkResult, chunk: Chunk, token: str) -> ChunkResult:
        """Append *chunk* after *previous*; the previous result's host wins over *host*."""

        target = previous.host or host
        url = f"{target.rstrip('/')}/bput/{previous.ctx}/{previous.offset}"
        payload = await self.transport.post(url, headers=_headers(token, OCTET_STREAM), body=chunk.data)
        return _parse(ChunkResult, payload, url)

    async def make_file(
        self,
        host: str,
        file_size: int,
        contexts: Sequence[str],
        encoded_key: str,
        token: str,
        *,
        mime_type: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> FileCreated:
        segments = [f"{host.rstrip('/')}/mkfile/{file_size}/key/{encoded_key}"]
        if mime_type:
            segments.append(f"mimeType/{urlsafe_b64encode(mime_type)}")
        for name, value in (params or {}).items():
            segments.append(f"{name}/{urlsafe_b64encode(value)}")
        url = "/".join(segments)
        payload = await self.transport.post(url, headers=_headers(token, TEXT_PLAIN), body=",".join(contexts))
        return _parse(FileCreated, payload, url)

    async def aclose(self) -> None:
        await self.transport.aclose()


__all__ = ["UploadAPI", "urlsafe_b64encode"]
