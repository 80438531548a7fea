"""Background re-lookup of suggestions reported with a zero audience.

The ads platform sometimes reports an audience of 0 for an interest that does
have one; a later lookup usually returns the real figure. Producers (batch
runs, the database seeder) hand requests off through a thread-safe inbox, and
a single consumer (the scheduled job) owns the bounded pending deque.
"""

import queue
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterable, Mapping, Optional, Sequence, Set, Tuple
from uuid import uuid4

from pydantic import ValidationError

from targeting.domain.models import Candidate
from targeting.logging import get_logger
from targeting.logging.context import log_context
from targeting.pipeline.models import BatchItem

logger = get_logger(__name__, component="retry")

FetchCandidates = Callable[[str, str], Sequence[Any]]
ResolvedCallback = Callable[["RetryRequest", Candidate], None]


@dataclass
class RetryRequest:
    """One suggestion waiting for a non-zero audience figure.

    Attributes:
        query: Criterion the suggestion was found for
        country_code: Country the lookup is scoped to
        candidate_id: Interest id whose audience should be refreshed
        project_id: Project holding the stored match, if any
        attempts: Lookups already made for this request
    """

    query: str
    country_code: str
    candidate_id: str
    project_id: Optional[int] = None
    attempts: int = 0

    @property
    def key(self) -> Tuple[str, str, str, Optional[int]]:
        return (self.query, self.country_code, self.candidate_id, self.project_id)


@dataclass
class RetryCycleStats:
    """Outcome of one ``process_pending`` call."""

    processed: int = 0
    resolved: int = 0
    requeued: int = 0
    exhausted: int = 0
    failed_lookups: int = 0
    overflowed: int = 0
    pending: int = 0
    skipped: bool = False


class ZeroAudienceRetryQueue:
    """Retries zero-audience suggestions until they resolve or run out of attempts."""

    def __init__(
        self,
        fetch_candidates: FetchCandidates,
        on_resolved: Optional[ResolvedCallback] = None,
        max_attempts: int = 3,
        max_size: int = 500,
    ):
        """
        Initialize the retry queue.

        Args:
            fetch_candidates: Lookup called as ``fetch_candidates(query, country_code)``
            on_resolved: Called with (request, fresh candidate) when an audience is found
            max_attempts: Lookups per request before it is dropped
            max_size: Pending requests kept; the oldest are dropped beyond this
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.fetch_candidates = fetch_candidates
        self.on_resolved = on_resolved
        self.max_attempts = max_attempts
        self.max_size = max_size

        self._inbox: "queue.Queue[RetryRequest]" = queue.Queue()
        self._pending: Deque[RetryRequest] = deque()
        self._pending_keys: Set[Tuple[str, str, str, Optional[int]]] = set()
        self._lock = threading.Lock()

    def submit(self, request: RetryRequest) -> None:
        """Hand a request to the consumer. Safe from any thread."""
        self._inbox.put(request)

    def submit_batch_results(
        self,
        items: Iterable[BatchItem],
        country_code: str,
        project_id: Optional[int] = None,
    ) -> int:
        """Submit every match whose audience was reported as exactly 0.

        Matches with an unknown (None) audience are not retried.

        Returns:
            Number of requests submitted
        """
        submitted = 0
        for item in items:
            for match in item.matches:
                if match.audience_size == 0:
                    self.submit(RetryRequest(
                        query=item.original,
                        country_code=country_code,
                        candidate_id=match.id,
                        project_id=project_id,
                    ))
                    submitted += 1

        if submitted:
            logger.info(
                f"Queued {submitted} zero-audience suggestions for retry",
                extra={"event": "retry.submitted", "count": submitted, "project_id": project_id},
            )
        return submitted

    @property
    def pending_count(self) -> int:
        """Approximate number of requests waiting (inbox plus pending)."""
        return len(self._pending) + self._inbox.qsize()

    def process_pending(self) -> RetryCycleStats:
        """
        Drain the inbox and make one pass over the pending requests.

        Overlapping calls are skipped rather than queued.

        Returns:
            RetryCycleStats for this cycle
        """
        if not self._lock.acquire(blocking=False):
            logger.warning(
                "Retry cycle skipped: previous cycle still in progress",
                extra={"event": "retry.cycle.skipped", "reason": "lock_held"},
            )
            return RetryCycleStats(skipped=True)

        try:
            with log_context(retry_cycle_id=uuid4().hex):
                stats = RetryCycleStats(overflowed=self._drain_inbox())
                to_requeue = []

                for _ in range(len(self._pending)):
                    request = self._pending.popleft()
                    self._pending_keys.discard(request.key)
                    stats.processed += 1

                    if self._attempt(request, stats):
                        stats.resolved += 1
                        continue

                    request.attempts += 1
                    if request.attempts >= self.max_attempts:
                        stats.exhausted += 1
                        logger.info(
                            f"Giving up on '{request.query}' after {request.attempts} attempts",
                            extra={
                                "event": "retry.request.exhausted",
                                "candidate_id": request.candidate_id,
                                "project_id": request.project_id,
                            },
                        )
                    else:
                        to_requeue.append(request)

                for request in to_requeue:
                    self._enqueue(request)
                stats.requeued = len(to_requeue)
                stats.pending = len(self._pending)

                logger.info(
                    "Retry cycle completed",
                    extra={
                        "event": "retry.cycle.completed",
                        "processed": stats.processed,
                        "resolved": stats.resolved,
                        "requeued": stats.requeued,
                        "exhausted": stats.exhausted,
                        "failed_lookups": stats.failed_lookups,
                        "overflowed": stats.overflowed,
                        "pending": stats.pending,
                    },
                )
                return stats
        finally:
            self._lock.release()

    def _drain_inbox(self) -> int:
        """Move inbox requests into the deque; returns how many old requests were evicted."""
        evicted = 0
        while True:
            try:
                request = self._inbox.get_nowait()
            except queue.Empty:
                break
            evicted += self._enqueue(request)
        return evicted

    def _enqueue(self, request: RetryRequest) -> int:
        if request.key in self._pending_keys:
            return 0

        evicted = 0
        if len(self._pending) >= self.max_size:
            oldest = self._pending.popleft()
            self._pending_keys.discard(oldest.key)
            evicted = 1
            logger.warning(
                "Retry queue full, dropping oldest request",
                extra={
                    "event": "retry.request.dropped",
                    "candidate_id": oldest.candidate_id,
                    "max_size": self.max_size,
                },
            )

        self._pending.append(request)
        self._pending_keys.add(request.key)
        return evicted

    def _attempt(self, request: RetryRequest, stats: RetryCycleStats) -> bool:
        """One lookup; True when the candidate now reports a positive audience."""
        try:
            candidates = self.fetch_candidates(request.query, request.country_code)
        except Exception as e:
            stats.failed_lookups += 1
            logger.warning(
                f"Retry lookup failed for '{request.query}': {e}",
                extra={
                    "event": "retry.lookup.failed",
                    "error_type": type(e).__name__,
                    "candidate_id": request.candidate_id,
                },
            )
            return False

        candidate = _find_candidate(candidates or [], request.candidate_id)
        if candidate is None or not candidate.audience_size:
            return False

        if self.on_resolved is not None:
            try:
                self.on_resolved(request, candidate)
            except Exception as e:
                logger.error(
                    f"Failed to store refreshed audience for '{request.query}': {e}",
                    extra={
                        "event": "retry.resolve.failed",
                        "error_type": type(e).__name__,
                        "candidate_id": request.candidate_id,
                    },
                    exc_info=True,
                )
                return False

        logger.info(
            f"Audience resolved for '{request.query}'",
            extra={
                "event": "retry.request.resolved",
                "candidate_id": candidate.id,
                "audience_size": candidate.audience_size,
                "project_id": request.project_id,
            },
        )
        return True


def _find_candidate(candidates: Iterable[Any], candidate_id: str) -> Optional[Candidate]:
    for item in candidates:
        if isinstance(item, Candidate):
            candidate = item
        elif isinstance(item, Mapping):
            try:
                candidate = Candidate.from_api(item)
            except ValidationError:
                continue
        else:
            continue
        if candidate.id == str(candidate_id):
            return candidate
    return None
