"""Aggregate byte progress across concurrently uploading blocks."""
from __future__ import annotations

import logging
from typing import Optional

from ..config import ProgressCallback
from ..logging_utils import log_progress
from .events import dispatch

_LOGGER = logging.getLogger(__name__)


class ProgressTracker:
    """Running total of bytes confirmed by the server.

    All blocks share one tracker. Increments happen on the event loop between
    awaits, so no lock is required.
    """

    def __init__(self, total: int, observer: Optional[ProgressCallback] = None, *, upload_id: str = "") -> None:
        self.total = total
        self.observer = observer
        self.upload_id = upload_id
        self._uploaded = 0
        self._closed = False

    @property
    def uploaded(self) -> int:
        return self._uploaded

    @property
    def closed(self) -> bool:
        return self._closed

    def advance(self, nbytes: int) -> None:
        if nbytes < 0:
            raise ValueError("progress never decreases")
        if self._closed:
            return
        self._uploaded += nbytes
        log_progress(
            _LOGGER,
            upload_id=self.upload_id,
            bytes_uploaded=self._uploaded,
            total_bytes=self.total,
            state="IN_PROGRESS",
        )
        dispatch(self.observer, self._uploaded, self.total)

    def close(self) -> None:
        """Ignore any further progress, e.g. from discarded sibling blocks."""

        self._closed = True


__all__ = ["ProgressTracker"]
