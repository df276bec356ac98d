"""Sequential upload of the chunks of a single block."""
from __future__ import annotations

import logging
from typing import List, Optional

from ..common.chunker import Block, Chunk, split_chunks
from ..logging_utils import extra
from ..models import ChunkResult
from ..protocol import UploadAPI
from .progress import ProgressTracker

_LOGGER = logging.getLogger(__name__)


class BlockSession:
    """Upload state of one block.

    The only way to make progress is :meth:`submit_next`, which sends the
    chunk following the last confirmed one. The first chunk creates the block
    (mkblk); every later chunk is appended (bput) with the context, offset and
    host of the previous response. A chunk is never sent before the previous
    response arrived, and submissions cannot overlap.
    """

    def __init__(self, block: Block, chunk_size: int, *, api: UploadAPI, token: str, host: str) -> None:
        self.block = block
        self._chunks: List[Chunk] = split_chunks(block, chunk_size)
        self._api = api
        self._token = token
        self._host = host
        self._position = 0
        self._last_result: Optional[ChunkResult] = None
        self._in_flight = False

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def done(self) -> bool:
        return self._position >= len(self._chunks)

    @property
    def last_result(self) -> Optional[ChunkResult]:
        return self._last_result

    @property
    def result(self) -> ChunkResult:
        if not self.done or self._last_result is None:
            raise RuntimeError(f"block {self.block.index} has not finished uploading")
        return self._last_result

    async def submit_next(self) -> Chunk:
        """Upload the next chunk and return it once the server confirmed it."""

        if self._in_flight:
            raise RuntimeError(f"block {self.block.index} already has a chunk in flight")
        if self.done:
            raise RuntimeError(f"block {self.block.index} has no chunks left to submit")

        chunk = self._chunks[self._position]
        self._in_flight = True
        try:
            if self._last_result is None:
                result = await self._api.make_block(self._host, self.block.length, chunk, self._token)
            else:
                result = await self._api.put_chunk(self._host, self._last_result, chunk, self._token)
        finally:
            self._in_flight = False
        self._last_result = result
        self._position += 1
        return chunk


class BlockUploader:
    """Drive a :class:`BlockSession` to completion for each block it is given."""

    def __init__(
        self,
        api: UploadAPI,
        *,
        token: str,
        host: str,
        chunk_size: int,
        progress: Optional[ProgressTracker] = None,
    ) -> None:
        self.api = api
        self.token = token
        self.host = host
        self.chunk_size = chunk_size
        self.progress = progress

    def session(self, block: Block) -> BlockSession:
        return BlockSession(block, self.chunk_size, api=self.api, token=self.token, host=self.host)

    async def upload(self, block: Block) -> ChunkResult:
        """Upload every chunk of *block* in order; the first failure aborts the block."""

        session = self.session(block)
        _LOGGER.debug(
            "block started",
            extra=extra(block_index=block.index, block_length=block.length, chunks=session.chunk_count),
        )
        while not session.done:
            chunk = await session.submit_next()
            if self.progress is not None:
                self.progress.advance(chunk.length)
        _LOGGER.debug("block finished", extra=extra(block_index=block.index))
        return session.result


__all__ = ["BlockSession", "BlockUploader"]
