"""Concurrent upload of all blocks with fail-fast semantics."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..common.chunker import Block
from ..errors import AggregateUploadError
from ..logging_utils import extra
from ..models import ChunkResult
from .block import BlockUploader

_LOGGER = logging.getLogger(__name__)


class _ErrorLatch:
    """Keeps the first block failure and ignores every later one."""

    __slots__ = ("first",)

    def __init__(self) -> None:
        self.first: Optional[Tuple[int, BaseException]] = None

    def set(self, block_index: int, error: BaseException) -> bool:
        if self.first is not None:
            return False
        self.first = (block_index, error)
        return True


def _discard_result(task: "asyncio.Task[ChunkResult]") -> None:
    if not task.cancelled():
        task.exception()


class BlockCoordinator:
    """Run one :class:`BlockUploader` task per block.

    Blocks complete in any order; results are returned ordered by block
    index. On the first failure the coordinator returns immediately. With
    ``cancel_on_failure`` the sibling tasks are cancelled; this is best
    effort, since a request already on the wire may still reach the server.
    Without it they keep running in the background and their results are
    dropped.
    """

    def __init__(self, uploader: BlockUploader, *, cancel_on_failure: bool = True) -> None:
        self.uploader = uploader
        self.cancel_on_failure = cancel_on_failure

    async def _run_block(self, block: Block, latch: _ErrorLatch) -> ChunkResult:
        try:
            return await self.uploader.upload(block)
        except Exception as exc:
            if latch.set(block.index, exc):
                _LOGGER.warning(
                    "block failed",
                    extra=extra(block_index=block.index, error=str(exc)),
                )
            raise

    async def run(self, blocks: Sequence[Block]) -> List[ChunkResult]:
        if not blocks:
            return []

        latch = _ErrorLatch()
        results: List[Optional[ChunkResult]] = [None] * len(blocks)
        tasks = {
            asyncio.create_task(self._run_block(block, latch), name=f"block-{block.index}"): position
            for position, block in enumerate(blocks)
        }
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        if latch.first is None:
            for task in done:
                results[tasks[task]] = task.result()
            return [result for result in results if result is not None]

        for task in tasks:
            task.add_done_callback(_discard_result)
        if self.cancel_on_failure:
            for task in pending:
                task.cancel()
        block_index, error = latch.first
        _LOGGER.info(
            "aborting upload after block failure",
            extra=extra(
                block_index=block_index,
                pending_blocks=len(pending),
                cancelled=self.cancel_on_failure,
            ),
        )
        raise AggregateUploadError(block_index, error) from error


__all__ = ["BlockCoordinator"]
