"""Block and chunk splitting for chunked uploads."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

from ..errors import ConfigurationError


@dataclass(frozen=True)
class Block:
    """A contiguous byte range of the source, identified by its index."""

    index: int
    offset: int
    data: bytes = field(repr=False)

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Chunk:
    """A contiguous byte range of a block; ``offset`` is relative to the block."""

    block_index: int
    index: int
    offset: int
    data: bytes = field(repr=False)

    @property
    def length(self) -> int:
        return len(self.data)


def _check_size(name: str, size: int) -> None:
    if not isinstance(size, int) or size <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {size!r}")


def _ranges(total: int, size: int) -> Iterator[tuple[int, int]]:
    offset = 0
    while offset < total:
        length = min(size, total - offset)
        yield offset, length
        offset += length


def split_blocks(data: bytes, block_size: int) -> List[Block]:
    """Split *data* into ``ceil(len(data) / block_size)`` blocks.

    An empty source yields no blocks.
    """

    _check_size("block_size", block_size)
    return [
        Block(index=idx, offset=offset, data=bytes(data[offset:offset + length]))
        for idx, (offset, length) in enumerate(_ranges(len(data), block_size))
    ]


def split_chunks(block: Block, chunk_size: int) -> List[Chunk]:
    """Split *block* into ordered chunks of at most *chunk_size* bytes."""

    _check_size("chunk_size", chunk_size)
    return [
        Chunk(
            block_index=block.index,
            index=idx,
            offset=offset,
            data=block.data[offset:offset + length],
        )
        for idx, (offset, length) in enumerate(_ranges(block.length, chunk_size))
    ]


__all__ = ["Block", "Chunk", "split_blocks", "split_chunks"]
