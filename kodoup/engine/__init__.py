"""Chunked upload engine exports."""
from .block import BlockSession, BlockUploader
from .coordinator import BlockCoordinator
from .finalizer import Finalizer, build_descriptor, join_url
from .orchestrator import UploadOrchestrator, UploadState, upload
from .progress import ProgressTracker

__all__ = [
    "BlockCoordinator",
    "BlockSession",
    "BlockUploader",
    "Finalizer",
    "ProgressTracker",
    "UploadOrchestrator",
    "UploadState",
    "build_descriptor",
    "join_url",
    "upload",
]
