"""Data models for batch execution and progress reporting."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from targeting.domain.models import ScoredCandidate


class ProgressStatus(str, Enum):
    """Status tag carried by every progress event."""

    STARTING = "starting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    FINISHED = "finished"
    GLOBAL_ERROR = "global-error"
    CANCELLED = "cancelled"


@dataclass
class BatchItem:
    """Outcome for one criterion of a batch.

    Attributes:
        original: The criterion exactly as submitted
        matches: Ranked suggestions, best first (empty on error or no match)
        error: Lookup failure message, None when the lookup succeeded
    """

    original: str
    matches: List[ScoredCandidate] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.matches)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def best_match(self) -> Optional[ScoredCandidate]:
        return self.matches[0] if self.matches else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage and JSON output."""
        return {
            "original_criterion": self.original,
            "matches": [match.model_dump() for match in self.matches],
            "count": self.count,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchItem":
        """Rebuild an item stored with ``to_dict``."""
        return cls(
            original=data["original_criterion"],
            matches=[ScoredCandidate.model_validate(m) for m in data.get("matches") or []],
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ProgressEvent:
    """Advisory snapshot of batch progress. Never stored or replayed.

    Attributes:
        total: Number of criteria in the batch
        current: Criteria already finished (or the index being processed)
        status: What just happened
        current_item: Criterion the event refers to, if any
        error: Failure message for error events
        match_count: Matches kept for a completed criterion
    """

    total: int
    current: int
    status: ProgressStatus
    current_item: Optional[str] = None
    error: Optional[str] = None
    match_count: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape for push channels (camelCase keys, unset fields omitted)."""
        payload: Dict[str, Any] = {
            "total": self.total,
            "current": self.current,
            "currentItem": self.current_item,
            "status": self.status.value,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.match_count is not None:
            payload["matchCount"] = self.match_count
        return payload
