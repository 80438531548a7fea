"""Batch orchestration: look up and rank suggestions for many criteria."""

import threading
import time
from typing import Any, Callable, List, Optional, Sequence
from uuid import uuid4

from targeting.logging import get_logger
from targeting.logging.context import log_context
from targeting.matching.engine import CandidateLike, InterestMatcher
from targeting.matching.exceptions import InvalidArgumentError

from .exceptions import BatchCancelledError, GlobalBatchFailure
from .models import BatchItem, ProgressEvent, ProgressStatus

logger = get_logger(__name__, component="batch")

FetchCandidates = Callable[[str, str], Sequence[CandidateLike]]
ProgressSink = Callable[[ProgressEvent], None]


class BatchProcessor:
    """
    Runs the matcher over an ordered list of criteria.

    Criteria are processed strictly one at a time, in input order. A failure
    while looking up or ranking one criterion is recorded on its BatchItem and
    the batch moves on; only failures outside that boundary abort the batch.
    """

    def __init__(self, matcher: Optional[InterestMatcher] = None):
        """
        Initialize the batch processor.

        Args:
            matcher: Matcher used to rank suggestions (defaults to plain scoring)
        """
        self.matcher = matcher or InterestMatcher()

    def run_batch(
        self,
        queries: Sequence[str],
        country_code: str,
        threshold: float,
        fetch_candidates: FetchCandidates,
        on_progress: ProgressSink,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[BatchItem]:
        """
        Process every criterion and report progress along the way.

        Event sequence for N criteria:
        1. starting (current=0)
        2. per criterion i: processing (current=i), then completed or error (current=i+1)
        3. finished (current=N)

        Args:
            queries: Criteria to look up, in order (may be empty)
            country_code: Two-letter country code passed to ``fetch_candidates``
            threshold: Minimum similarity score for kept matches
            fetch_candidates: Called as ``fetch_candidates(query, country_code)``
            on_progress: Receives each ProgressEvent synchronously
            cancel_event: Optional event checked before each criterion

        Returns:
            One BatchItem per criterion, in input order

        Raises:
            BatchCancelledError: If ``cancel_event`` was set before the batch ended
            GlobalBatchFailure: If arguments are invalid or a failure escapes the
                per-criterion boundary (after a best-effort global-error event)
        """
        batch_id = uuid4().hex
        total = len(queries) if isinstance(queries, (list, tuple)) else 0

        with log_context(batch_id=batch_id, country_code=country_code):
            try:
                self._validate_arguments(queries, country_code, threshold, fetch_candidates, on_progress)
                return self._run(list(queries), country_code, threshold, fetch_candidates, on_progress, cancel_event)
            except BatchCancelledError:
                raise
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.error(
                    f"Batch failed: {message}",
                    extra={
                        "event": "batch.run.failed",
                        "error_type": type(e).__name__,
                        "total": total,
                    },
                    exc_info=not isinstance(e, InvalidArgumentError),
                )
                _notify_global_error(on_progress, total, message)
                if isinstance(e, GlobalBatchFailure):
                    raise
                raise GlobalBatchFailure(message) from e

    def _run(
        self,
        queries: List[str],
        country_code: str,
        threshold: float,
        fetch_candidates: FetchCandidates,
        on_progress: ProgressSink,
        cancel_event: Optional[threading.Event],
    ) -> List[BatchItem]:
        started = time.time()
        total = len(queries)
        items: List[BatchItem] = []

        logger.info(
            f"Batch started with {total} criteria",
            extra={"event": "batch.run.started", "total": total, "threshold": threshold},
        )
        on_progress(ProgressEvent(total=total, current=0, status=ProgressStatus.STARTING))

        for index, query in enumerate(queries):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    f"Batch cancelled after {index} of {total} criteria",
                    extra={"event": "batch.run.cancelled", "processed": index, "total": total},
                )
                on_progress(ProgressEvent(total=total, current=index, status=ProgressStatus.CANCELLED))
                raise BatchCancelledError(
                    f"Batch cancelled after {index} of {total} criteria", processed=index
                )

            on_progress(ProgressEvent(
                total=total,
                current=index,
                status=ProgressStatus.PROCESSING,
                current_item=query,
            ))

            item = self._process_query(query, country_code, threshold, fetch_candidates)
            items.append(item)

            if item.error is None:
                on_progress(ProgressEvent(
                    total=total,
                    current=index + 1,
                    status=ProgressStatus.COMPLETED,
                    current_item=query,
                    match_count=item.count,
                ))
            else:
                on_progress(ProgressEvent(
                    total=total,
                    current=index + 1,
                    status=ProgressStatus.ERROR,
                    current_item=query,
                    error=item.error,
                ))

        on_progress(ProgressEvent(total=total, current=total, status=ProgressStatus.FINISHED))

        failed = sum(1 for item in items if item.error is not None)
        logger.info(
            "Batch completed",
            extra={
                "event": "batch.run.completed",
                "duration_ms": int((time.time() - started) * 1000),
                "total": total,
                "failed": failed,
                "total_matches": sum(item.count for item in items),
                "had_errors": failed > 0,
            },
        )
        return items

    def _process_query(
        self,
        query: str,
        country_code: str,
        threshold: float,
        fetch_candidates: FetchCandidates,
    ) -> BatchItem:
        """Fetch and rank one criterion; any failure becomes the item's error."""
        with log_context(criterion=query):
            try:
                candidates = fetch_candidates(query, country_code)
                matches = self.matcher.rank(query, candidates or [], threshold=threshold)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.warning(
                    f"Lookup failed for '{query}': {message}",
                    extra={"event": "batch.item.failed", "error_type": type(e).__name__},
                )
                return BatchItem(original=query, error=message)

            logger.debug(
                f"Kept {len(matches)} suggestions for '{query}'",
                extra={"event": "batch.item.completed", "match_count": len(matches)},
            )
            return BatchItem(original=query, matches=matches)

    @staticmethod
    def _validate_arguments(
        queries: Any,
        country_code: Any,
        threshold: Any,
        fetch_candidates: Any,
        on_progress: Any,
    ) -> None:
        if isinstance(queries, str) or not isinstance(queries, (list, tuple)):
            raise InvalidArgumentError("queries must be a list of strings")
        for index, query in enumerate(queries):
            if not isinstance(query, str):
                raise InvalidArgumentError(
                    f"queries[{index}] must be a string, got {type(query).__name__}"
                )
        if not isinstance(country_code, str) or not country_code.strip():
            raise InvalidArgumentError("country_code must be a non-empty string")
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or threshold != threshold:
            raise InvalidArgumentError(f"threshold must be a number, got {threshold!r}")
        if not callable(fetch_candidates):
            raise InvalidArgumentError("fetch_candidates must be callable")
        if not callable(on_progress):
            raise InvalidArgumentError("on_progress must be callable")


def run_batch(
    queries: Sequence[str],
    country_code: str,
    threshold: float,
    fetch_candidates: FetchCandidates,
    on_progress: ProgressSink,
    cancel_event: Optional[threading.Event] = None,
) -> List[BatchItem]:
    """Run a batch with a plain-scoring matcher. See ``BatchProcessor.run_batch``."""
    return BatchProcessor().run_batch(
        queries, country_code, threshold, fetch_candidates, on_progress, cancel_event
    )


def _notify_global_error(on_progress: Any, total: int, message: str) -> None:
    """Best-effort global-error event; a failing sink is only logged."""
    if not callable(on_progress):
        return
    try:
        on_progress(ProgressEvent(
            total=total,
            current=0,
            status=ProgressStatus.GLOBAL_ERROR,
            error=message,
        ))
    except Exception as e:
        logger.warning(
            f"Could not deliver global-error event: {e}",
            extra={"event": "batch.progress.failed", "error_type": type(e).__name__},
        )
