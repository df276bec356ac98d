"""Pydantic models for upload protocol responses and results."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChunkResult(BaseModel):
    """Server response to one mkblk or bput request."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    ctx: str = Field(..., description="Opaque chaining context for the next chunk of the same block")
    checksum: str = ""
    crc32: int = 0
    offset: int = Field(..., ge=0, description="Offset of the next chunk within the block")
    host: Optional[str] = Field(
        None,
        description="Host to use for the next request of this block",
    )


class FileCreated(BaseModel):
    """Server response to mkfile."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    hash: str
    key: str


class FileDescriptor(BaseModel):
    """Terminal record describing a successfully uploaded object."""

    model_config = ConfigDict(frozen=True)

    hash: str
    key: str
    name: str
    size: int
    type: str
    url: str


__all__ = ["ChunkResult", "FileCreated", "FileDescriptor"]
