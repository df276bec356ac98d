"""Top-level upload sequence for a single source."""
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import List, Optional

from ..common.chunker import split_blocks
from ..common.source import ByteSource, Source, read_source
from ..config import UploadConfig
from ..errors import ConfigurationError
from ..logging_utils import extra, log_progress
from ..models import ChunkResult, FileDescriptor
from ..protocol import UploadAPI, urlsafe_b64encode
from ..token import token_source
from ..transport.http import HttpxTransport
from .block import BlockUploader
from .coordinator import BlockCoordinator
from .finalizer import Finalizer, build_descriptor
from .progress import ProgressTracker

_LOGGER = logging.getLogger(__name__)


class UploadState(str, Enum):
    IDLE = "IDLE"
    TOKEN_RESOLVING = "TOKEN_RESOLVING"
    CHUNKING = "CHUNKING"
    BLOCKS_IN_FLIGHT = "BLOCKS_IN_FLIGHT"
    FINALIZING = "FINALIZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UploadOrchestrator:
    """Upload one source: token, chunking, blocks, mkfile.

    An instance is single use. When no ``api`` is injected the orchestrator
    creates an httpx transport for the duration of :meth:`upload` and closes
    it afterwards.
    """

    def __init__(self, config: UploadConfig, *, api: Optional[UploadAPI] = None) -> None:
        self.config = config.validate()
        self._api = api
        self.upload_id = uuid.uuid4().hex[:12]
        self.state = UploadState.IDLE
        self.error: Optional[BaseException] = None
        self.descriptor: Optional[FileDescriptor] = None
        self.progress: Optional[ProgressTracker] = None

    def _transition(self, state: UploadState) -> None:
        _LOGGER.info(
            "upload state changed",
            extra=extra(upload_id=self.upload_id, previous=self.state.value, state=state.value),
        )
        self.state = state

    async def upload(self, source: Source) -> FileDescriptor:
        if self.state is not UploadState.IDLE:
            raise RuntimeError("an UploadOrchestrator uploads exactly one source")

        api = self._api
        owns_api = api is None
        if api is None:
            api = UploadAPI(HttpxTransport(timeout=self.config.timeout))
        try:
            self.descriptor = await self._run(api, source)
        except BaseException as exc:
            self.error = exc
            if self.progress is not None:
                self.progress.close()
            self._transition(UploadState.FAILED)
            _LOGGER.error(
                "upload failed",
                extra=extra(upload_id=self.upload_id, error=str(exc), error_type=type(exc).__name__),
            )
            raise
        finally:
            if owns_api:
                await api.aclose()
        return self.descriptor

    async def _run(self, api: UploadAPI, source: Source) -> FileDescriptor:
        config = self.config

        self._transition(UploadState.TOKEN_RESOLVING)
        if config.token is None:
            raise ConfigurationError("an upload token or token provider is required")
        token = await token_source(config.token).resolve()

        self._transition(UploadState.CHUNKING)
        data: ByteSource = await read_source(source)
        blocks = split_blocks(data.data, config.block_size)
        encoded_key = urlsafe_b64encode(config.get_key(source)) if config.get_key else ""
        self.progress = ProgressTracker(data.size, config.on_progress, upload_id=self.upload_id)
        _LOGGER.info(
            "source chunked",
            extra=extra(upload_id=self.upload_id, name=data.name, size=data.size, blocks=len(blocks)),
        )

        self._transition(UploadState.BLOCKS_IN_FLIGHT)
        uploader = BlockUploader(
            api,
            token=token,
            host=config.host,
            chunk_size=config.chunk_size,
            progress=self.progress,
        )
        coordinator = BlockCoordinator(uploader, cancel_on_failure=config.cancel_on_failure)
        block_results: List[ChunkResult] = await coordinator.run(blocks)

        self._transition(UploadState.FINALIZING)
        created = await Finalizer(api).finalize(
            block_results,
            data.size,
            encoded_key,
            token,
            config.host,
            mime_type=config.mime_type,
            params=config.params,
        )
        descriptor = build_descriptor(created, data, config.domain)

        self._transition(UploadState.COMPLETED)
        log_progress(
            _LOGGER,
            upload_id=self.upload_id,
            bytes_uploaded=self.progress.uploaded,
            total_bytes=data.size,
            state=UploadState.COMPLETED.value,
            detail=descriptor.key,
        )
        return descriptor


async def upload(source: Source, config: UploadConfig, *, api: Optional[UploadAPI] = None) -> FileDescriptor:
    """Upload *source* with a fresh :class:`UploadOrchestrator`."""

    return await UploadOrchestrator(config, api=api).upload(source)


__all__ = ["UploadOrchestrator", "UploadState", "upload"]
