"""In-memory upload server speaking mkblk / bput / mkfile."""
from __future__ import annotations

import asyncio
import base64
import hashlib
import zlib
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from kodoup.protocol import UploadAPI
from kodoup.transport.http import HttpxTransport

FailureRule = Callable[[str, int, bytes], Optional[Tuple[int, str]]]
DelayRule = Callable[[str, bytes], float]


@dataclass
class RecordedRequest:
    kind: str
    url: str
    headers: Dict[str, str]
    body: bytes


@dataclass
class _BlockState:
    length: int
    data: bytearray
    chunk: int = 0


@dataclass
class FakeUploadServer:
    """Deterministic upload service.

    Contexts are ``ctx-<block>-<chunk>`` where ``<block>`` counts mkblk calls
    in arrival order. A bput is only accepted with the latest context of its
    block and the matching offset. mkfile assembles the blocks in the order of
    the context list and answers with the SHA-1 of the result.
    ``fail_when(kind, chunk_no, body)`` and ``delay(kind, body)`` inject
    failures and latency.
    """

    host: str = "http://up.fake.test"
    next_host: Optional[str] = None
    fail_when: Optional[FailureRule] = None
    delay: Optional[DelayRule] = None
    requests: List[RecordedRequest] = field(default_factory=list)
    files: List[bytes] = field(default_factory=list)
    blocks: Dict[int, _BlockState] = field(default_factory=dict)
    contexts: Dict[str, int] = field(default_factory=dict)

    def api(self) -> UploadAPI:
        return UploadAPI(HttpxTransport(transport=httpx.MockTransport(self.handle)))

    def count(self, kind: str) -> int:
        return sum(1 for request in self.requests if request.kind == kind)

    def of_kind(self, kind: str) -> List[RecordedRequest]:
        return [request for request in self.requests if request.kind == kind]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        parts = request.url.path.strip("/").split("/")
        kind = parts[0]
        self.requests.append(
            RecordedRequest(kind=kind, url=str(request.url), headers=dict(request.headers), body=body)
        )
        if self.delay is not None:
            seconds = self.delay(kind, body)
            if seconds:
                await asyncio.sleep(seconds)
        if kind == "mkblk":
            return self._make_block(int(parts[1]), body)
        if kind == "bput":
            return self._put_chunk(parts[1], int(parts[2]), body)
        if kind == "mkfile":
            return self._make_file(parts, body)
        return httpx.Response(404, json={"error": "no such endpoint"})

    def _failure(self, kind: str, chunk_no: int, body: bytes) -> Optional[httpx.Response]:
        if self.fail_when is None:
            return None
        failure = self.fail_when(kind, chunk_no, body)
        if failure is None:
            return None
        status, message = failure
        return httpx.Response(status, json={"error": message})

    def _chunk_response(self, block_id: int, state: _BlockState, body: bytes) -> httpx.Response:
        ctx = f"ctx-{block_id}-{state.chunk}"
        self.contexts[ctx] = block_id
        return httpx.Response(
            200,
            json={
                "ctx": ctx,
                "checksum": hashlib.sha1(body).hexdigest(),
                "crc32": zlib.crc32(body),
                "offset": len(state.data),
                "host": self.next_host or self.host,
            },
        )

    def _make_block(self, length: int, body: bytes) -> httpx.Response:
        block_id = len(self.blocks)
        failure = self._failure("mkblk", 0, body)
        state = _BlockState(length=length, data=bytearray(body))
        self.blocks[block_id] = state
        if failure is not None:
            return failure
        return self._chunk_response(block_id, state, body)

    def _put_chunk(self, ctx: str, offset: int, body: bytes) -> httpx.Response:
        block_id = self.contexts.get(ctx)
        if block_id is None:
            return httpx.Response(701, json={"error": "invalid ctx"})
        state = self.blocks[block_id]
        if ctx != f"ctx-{block_id}-{state.chunk}":
            return httpx.Response(701, json={"error": "ctx superseded"})
        if offset != len(state.data):
            return httpx.Response(701, json={"error": "offset mismatch"})
        failure = self._failure("bput", state.chunk + 1, body)
        if failure is not None:
            return failure
        state.data.extend(body)
        state.chunk += 1
        if len(state.data) > state.length:
            return httpx.Response(400, json={"error": "block overflow"})
        return self._chunk_response(block_id, state, body)

    def _make_file(self, parts: List[str], body: bytes) -> httpx.Response:
        failure = self._failure("mkfile", 0, body)
        if failure is not None:
            return failure
        size = int(parts[1])
        encoded_key = parts[3] if len(parts) > 3 else ""
        contexts = body.decode("utf-8").split(",") if body else []
        data = bytearray()
        for ctx in contexts:
            block_id = self.contexts.get(ctx)
            if block_id is None:
                return httpx.Response(701, json={"error": f"invalid ctx {ctx}"})
            state = self.blocks[block_id]
            if ctx != f"ctx-{block_id}-{state.chunk}" or len(state.data) != state.length:
                return httpx.Response(701, json={"error": f"block of {ctx} is incomplete"})
            data.extend(state.data)
        if len(data) != size:
            return httpx.Response(400, json={"error": "file size mismatch"})
        self.files.append(bytes(data))
        digest = hashlib.sha1(data).hexdigest()
        key = base64.urlsafe_b64decode(encoded_key).decode("utf-8") if encoded_key else digest
        return httpx.Response(200, json={"hash": digest, "key": key})


def patterned(size: int, *, block_size: Optional[int] = None) -> bytes:
    """Bytes whose value changes with every block so misordering is visible."""

    if block_size is None:
        return bytes(i % 251 for i in range(size))
    return bytes((i // block_size) % 256 for i in range(size))
