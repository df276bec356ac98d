"""Chunked (mkblk / bput / mkfile) uploads to object storage."""
from __future__ import annotations

from .batch import BatchUploader
from .common.source import ByteSource, SourceFile
from .config import BatchOptions, UploadConfig, load_batch_options, load_config
from .engine.orchestrator import UploadOrchestrator, UploadState, upload
from .errors import (
    AggregateUploadError,
    ConfigurationError,
    NetworkError,
    ProtocolError,
    SizeLimitExceeded,
    UploadError,
)
from .models import FileDescriptor

__all__ = [
    "AggregateUploadError",
    "BatchOptions",
    "BatchUploader",
    "ByteSource",
    "ConfigurationError",
    "FileDescriptor",
    "NetworkError",
    "ProtocolError",
    "SizeLimitExceeded",
    "SourceFile",
    "UploadConfig",
    "UploadError",
    "UploadOrchestrator",
    "UploadState",
    "load_batch_options",
    "load_config",
    "upload",
]
