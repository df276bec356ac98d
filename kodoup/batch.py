"""Upload a selection of files, each through its own orchestrator."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .common.source import ByteSource, Source, SourceFile
from .config import BatchOptions, UploadConfig
from .engine.events import dispatch
from .engine.orchestrator import UploadOrchestrator
from .errors import SizeLimitExceeded
from .logging_utils import extra
from .models import FileDescriptor
from .protocol import UploadAPI
from .transport.http import HttpxTransport

_LOGGER = logging.getLogger(__name__)

SourceLike = Union[str, Path, SourceFile, ByteSource]


def matches_accept(source: Source, accept: str) -> bool:
    """Return True if *source* matches an HTML-style ``accept`` list.

    Entries are file extensions (``.png``), wildcard types (``image/*``) or
    exact MIME types. An empty list accepts everything.
    """

    patterns = [entry.strip().lower() for entry in accept.split(",") if entry.strip()]
    if not patterns:
        return True
    name = source.name.lower()
    mime_type = source.mime_type.lower()
    for pattern in patterns:
        if pattern.startswith("."):
            if name.endswith(pattern):
                return True
        elif pattern.endswith("/*"):
            if mime_type.startswith(pattern[:-1]):
                return True
        elif mime_type == pattern:
            return True
    return False


def _as_source(item: SourceLike) -> Source:
    if isinstance(item, (SourceFile, ByteSource)):
        return item
    return SourceFile.from_path(item)


class BatchUploader:
    """Select, validate and upload files concurrently.

    Every file in the batch is checked against ``max_size`` before the first
    request is made; one oversized file aborts the whole batch.
    """

    def __init__(self, config: UploadConfig, options: Optional[BatchOptions] = None, *, api: Optional[UploadAPI] = None) -> None:
        self.config = config.validate()
        self.options = (options or BatchOptions()).validate()
        self._api = api

    def select(self, items: Iterable[SourceLike]) -> List[Source]:
        sources = [_as_source(item) for item in items]
        accepted = [source for source in sources if matches_accept(source, self.options.accept)]
        skipped = len(sources) - len(accepted)
        if skipped:
            _LOGGER.info("skipping files not matching accept", extra=extra(skipped=skipped, accept=self.options.accept))
        return accepted[: self.options.limit]

    def check_sizes(self, sources: Iterable[Source]) -> None:
        for source in sources:
            if source.size > self.options.max_size:
                raise SizeLimitExceeded(source.name, source.size, self.options.max_size)

    async def upload(self, items: Iterable[SourceLike]) -> List[FileDescriptor]:
        options = self.options
        try:
            sources = self.select(items)
            self.check_sizes(sources)
        except Exception as exc:
            dispatch(options.on_error, exc)
            raise

        dispatch(options.on_start, sources)
        api = self._api
        owns_api = api is None
        if api is None:
            api = UploadAPI(HttpxTransport(timeout=self.config.timeout))

        finished = 0

        async def _upload_one(source: Source) -> FileDescriptor:
            nonlocal finished
            descriptor = await UploadOrchestrator(self.config, api=api).upload(source)
            finished += 1
            dispatch(options.on_progress, finished, len(sources))
            return descriptor

        tasks = [asyncio.create_task(_upload_one(source)) for source in sources]
        try:
            descriptors = await asyncio.gather(*tasks)
        except BaseException as exc:
            for task in tasks:
                task.cancel()
            if isinstance(exc, Exception):
                dispatch(options.on_error, exc)
            raise
        finally:
            if owns_api:
                await api.aclose()

        dispatch(options.on_success, list(descriptors))
        return list(descriptors)


__all__ = ["BatchUploader", "matches_accept"]
