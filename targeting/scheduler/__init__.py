"""Periodic background work: the scheduler and the zero-audience retry queue."""

from .retry_queue import RetryCycleStats, RetryRequest, ZeroAudienceRetryQueue
from .service import SchedulerService

__all__ = [
    "RetryCycleStats",
    "RetryRequest",
    "SchedulerService",
    "ZeroAudienceRetryQueue",
]
