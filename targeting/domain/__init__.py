"""Domain models shared across matching, persistence and export."""

from .models import Candidate, Project, ProjectStatus, ScoredCandidate

__all__ = [
    "Candidate",
    "ScoredCandidate",
    "Project",
    "ProjectStatus",
]
