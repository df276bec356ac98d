"""Create the file from its ordered block contexts."""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..common.source import ByteSource
from ..logging_utils import extra
from ..models import ChunkResult, FileCreated, FileDescriptor
from ..protocol import UploadAPI

_LOGGER = logging.getLogger(__name__)


def join_url(domain: str, key: str) -> str:
    """Join *domain* and *key* with exactly one ``/`` between them."""

    return f"{domain.rstrip('/')}/{key}"


def build_descriptor(created: FileCreated, source: ByteSource, domain: str) -> FileDescriptor:
    return FileDescriptor(
        hash=created.hash,
        key=created.key,
        name=source.name,
        size=source.size,
        type=source.mime_type,
        url=join_url(domain, created.key),
    )


class Finalizer:
    def __init__(self, api: UploadAPI) -> None:
        self.api = api

    async def finalize(
        self,
        block_results: Sequence[ChunkResult],
        file_size: int,
        encoded_key: str,
        token: str,
        fallback_host: str,
        *,
        mime_type: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> FileCreated:
        """Issue mkfile with the contexts of *block_results*, which must be in block order.

        The request goes to the host advertised by the last block, or to
        *fallback_host* when there is none.
        """

        host = fallback_host
        if block_results and block_results[-1].host:
            host = block_results[-1].host
        contexts = [result.ctx for result in block_results]
        _LOGGER.debug(
            "creating file",
            extra=extra(host=host, file_size=file_size, blocks=len(contexts)),
        )
        return await self.api.make_file(
            host,
            file_size,
            contexts,
            encoded_key,
            token,
            mime_type=mime_type,
            params=params,
        )


__all__ = ["Finalizer", "build_descriptor", "join_url"]
