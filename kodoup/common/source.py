"""Upload sources: files on disk and in-memory byte buffers."""
from __future__ import annotations

import asyncio
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

_DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(name: str) -> str:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or _DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class SourceFile:
    """A file on disk selected for upload."""

    path: Path
    name: str
    size: int
    mime_type: str

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceFile":
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"{file_path} is not a regular file")
        return cls(
            path=file_path,
            name=file_path.name,
            size=file_path.stat().st_size,
            mime_type=guess_mime_type(file_path.name),
        )


@dataclass(frozen=True)
class ByteSource:
    """Immutable bytes of the object being uploaded."""

    data: bytes = field(repr=False)
    name: str = ""
    mime_type: str = _DEFAULT_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


Source = Union[SourceFile, ByteSource]


async def read_source(source: Source) -> ByteSource:
    """Load *source* fully into memory; a :class:`ByteSource` passes through."""

    if isinstance(source, ByteSource):
        return source
    data = await asyncio.to_thread(source.path.read_bytes)
    return ByteSource(data=data, name=source.name, mime_type=source.mime_type)


__all__ = ["ByteSource", "Source", "SourceFile", "guess_mime_type", "read_source"]
