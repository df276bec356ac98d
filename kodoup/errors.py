"""Error taxonomy for chunked uploads."""
from __future__ import annotations

from typing import Optional


class UploadError(RuntimeError):
    """Base class for every failure surfaced by an upload."""


class ConfigurationError(UploadError):
    """Invalid configuration or a token that could not be resolved."""


class SizeLimitExceeded(UploadError):
    """A file is larger than the configured per-file ceiling."""

    def __init__(self, name: str, size: int, max_size: int) -> None:
        self.name = name
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"{name} exceeds the maximum file size limit ({size} > {max_size} bytes)"
        )


class NetworkError(UploadError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message)


class ProtocolError(UploadError):
    """The server answered with a non-success status or an unusable body."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, url: Optional[str] = None) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class AggregateUploadError(UploadError):
    """One block failed; sibling blocks may already have sent traffic."""

    def __init__(self, block_index: int, cause: BaseException) -> None:
        self.block_index = block_index
        self.cause = cause
        super().__init__(f"block {block_index} failed: {cause}")


__all__ = [
    "AggregateUploadError",
    "ConfigurationError",
    "NetworkError",
    "ProtocolError",
    "SizeLimitExceeded",
    "UploadError",
]
