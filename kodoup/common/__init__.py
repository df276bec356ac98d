"""Shared helpers: chunking and upload sources."""
from .chunker import Block, Chunk, split_blocks, split_chunks
from .source import ByteSource, Source, SourceFile, read_source

__all__ = [
    "Block",
    "ByteSource",
    "Chunk",
    "Source",
    "SourceFile",
    "read_source",
    "split_blocks",
    "split_chunks",
]
