"""Core domain models.

- Candidate: an interest suggestion returned by the ads platform
- ScoredCandidate: a Candidate plus its similarity to the searched criterion
- Project: a user's research project and its stored batch results
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from targeting.utils.timestamps import ensure_utc


class Candidate(BaseModel):
    """Interest suggestion from the ads-platform taxonomy.

    ``audience_size`` is None when the platform did not report one; that is
    distinct from a reported size of 0.
    """

    id: str = Field(..., description="Opaque interest identifier")
    name: str = Field(..., description="Display name")
    path: List[str] = Field(default_factory=list, description="Taxonomy path, root first")
    audience_size: Optional[int] = Field(None, ge=0, description="Estimated audience, None if unknown")
    description: Optional[str] = Field(None)
    topic: Optional[str] = Field(None)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Graph API ids sometimes arrive as integers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("path", mode="before")
    @classmethod
    def none_path_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "Candidate":
        """Build a Candidate from one Graph API ``adinterest`` search row.

        Newer API versions report ``audience_size_lower_bound`` and
        ``audience_size_upper_bound`` instead of ``audience_size``; the lower
        bound is used in that case.
        """
        audience_size = row.get("audience_size")
        if audience_size is None:
            audience_size = row.get("audience_size_lower_bound")

        return cls(
            id=row.get("id"),
            name=row.get("name"),
            path=row.get("path") or [],
            audience_size=audience_size,
            description=row.get("description") or None,
            topic=row.get("topic") or None,
        )

    model_config = {"json_schema_extra": {"example": {
        "id": "6003107902433",
        "name": "Nike, Inc.",
        "path": ["Interests", "Shopping and fashion", "Nike, Inc."],
        "audience_size": 812000000,
        "description": None,
        "topic": "Shopping and fashion",
    }}}


class ScoredCandidate(Candidate):
    """Candidate ranked against one criterion. Score is rounded to 2 decimals."""

    similarity_score: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_candidate(cls, candidate: Candidate, score: float) -> "ScoredCandidate":
        return cls(**candidate.model_dump(), similarity_score=score)


class ProjectStatus(str, Enum):
    """Lifecycle of a research project."""

    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    PENDING = "Pending"


class Project(BaseModel):
    """A research project owned by one user.

    ``results`` holds the serialized batch items of the last saved batch
    (see ``BatchItem.to_dict``).
    """

    id: Optional[int] = Field(None, description="Database identifier, None until persisted")
    owner: str = Field(..., min_length=1, description="Owning user identifier")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    target_audience: Optional[str] = None
    country: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    results: List[Dict[str, Any]] = Field(default_factory=list)
    budget: float = Field(0.0, ge=0.0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("owner", "name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from required string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("description", "target_audience", "country")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetimes are timezone-aware and in UTC."""
        return ensure_utc(v)
