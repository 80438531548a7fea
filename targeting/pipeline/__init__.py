"""Batch processing of criteria with progress reporting."""

from .exceptions import BatchCancelledError, GlobalBatchFailure
from .models import BatchItem, ProgressEvent, ProgressStatus
from .progress import JsonLinesProgressWriter, ProgressBroadcaster, logging_listener
from .runner import BatchProcessor, run_batch

__all__ = [
    "BatchCancelledError",
    "BatchItem",
    "BatchProcessor",
    "GlobalBatchFailure",
    "JsonLinesProgressWriter",
    "ProgressBroadcaster",
    "ProgressEvent",
    "ProgressStatus",
    "logging_listener",
    "run_batch",
]
