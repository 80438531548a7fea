"""Data access layer for research projects.

Repositories wrap one SQLAlchemy session and return domain models rather
than ORM rows. Every user-facing operation is scoped to the project owner.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from targeting.domain.models import Project, ProjectStatus
from targeting.pipeline.models import BatchItem
from targeting.utils.timestamps import format_timestamp, utc_now

from .exceptions import PersistenceError, RecordNotFoundError
from .schema import ProjectModel

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "name",
    "description",
    "status",
    "target_audience",
    "country",
    "categories",
    "budget",
    "start_date",
    "end_date",
})


@dataclass(frozen=True)
class StoredZeroAudienceMatch:
    """A stored match whose audience was reported as 0."""

    project_id: int
    country: Optional[str]
    criterion: str
    candidate_id: str


class ProjectRepository:
    """Repository for project CRUD and stored batch results."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, project: Project) -> Project:
        """Insert a new project.

        ``created_at``/``updated_at`` default to now, and so does
        ``start_date``.

        Returns:
            The stored project with its database id

        Raises:
            PersistenceError: If database error occurs
        """
        now = utc_now()
        to_store = project.model_copy(update={
            "created_at": project.created_at or now,
            "updated_at": now,
            "start_date": project.start_date or now,
        })

        try:
            row = ProjectModel.from_domain(to_store)
            self.session.add(row)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error creating project '{project.name}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to create project: {e}") from e

        logger.info(
            f"Created project '{row.name}'",
            extra={"event": "project.created", "project_id": row.id, "owner": row.owner},
        )
        return row.to_domain()

    def get(self, project_id: int, owner: str) -> Optional[Project]:
        """Project by id if it belongs to ``owner``, else None."""
        row = self._get_row(project_id, owner)
        return row.to_domain() if row is not None else None

    def list_for_owner(self, owner: str) -> List[Project]:
        """All of an owner's projects, newest first."""
        try:
            stmt = (
                select(ProjectModel)
                .where(ProjectModel.owner == owner)
                .order_by(ProjectModel.created_at.desc(), ProjectModel.id.desc())
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing projects for {owner}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list projects: {e}") from e

    def update(self, project_id: int, owner: str, **fields: Any) -> Project:
        """Update editable fields of a project.

        Args:
            project_id: Project to update
            owner: Owner the project must belong to
            **fields: Any of UPDATABLE_FIELDS

        Returns:
            The updated project

        Raises:
            ValueError: If a field is not updatable or a value is invalid
            RecordNotFoundError: If the project does not exist for this owner
            PersistenceError: If database error occurs
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        row = self._require_row(project_id, owner)
        try:
            updated = Project.model_validate({**row.to_domain().model_dump(), **fields})
        except ValidationError as e:
            raise ValueError(f"Invalid project update: {e.error_count()} validation error(s)") from e

        row.name = updated.name
        row.description = updated.description
        row.status = ProjectStatus(updated.status).value
        row.target_audience = updated.target_audience
        row.country = updated.country
        row.categories = list(updated.categories)
        row.budget = updated.budget
        row.start_date = format_timestamp(updated.start_date)
        row.end_date = format_timestamp(updated.end_date)
        row.updated_at = format_timestamp(utc_now())
        self._flush("update project")

        logger.info(
            "Updated project",
            extra={"event": "project.updated", "project_id": project_id, "fields": sorted(fields)},
        )
        return row.to_domain()

    def delete(self, project_id: int, owner: str) -> bool:
        """Delete a project; False when it does not exist for this owner."""
        row = self._get_row(project_id, owner)
        if row is None:
            return False

        self.session.delete(row)
        self._flush("delete project")
        logger.info("Deleted project", extra={"event": "project.deleted", "project_id": project_id})
        return True

    def save_results(
        self,
        project_id: int,
        owner: str,
        items: Iterable[Union[BatchItem, Dict[str, Any]]],
        country: Optional[str] = None,
        categories: Optional[List[str]] = None,
    ) -> Project:
        """Store a finished batch on the project and mark it Completed.

        Raises:
            RecordNotFoundError: If the project does not exist for this owner
            PersistenceError: If database error occurs
        """
        row = self._require_row(project_id, owner)

        results = [item.to_dict() if isinstance(item, BatchItem) else dict(item) for item in items]
        row.results = results
        if country is not None:
            row.country = country
        if categories is not None:
            row.categories = list(categories)
        row.status = ProjectStatus.COMPLETED.value
        row.updated_at = format_timestamp(utc_now())
        self._flush("save project results")

        logger.info(
            f"Saved {len(results)} batch results",
            extra={"event": "project.results.saved", "project_id": project_id, "count": len(results)},
        )
        return row.to_domain()

    def update_match_audience(
        self, project_id: int, criterion: str, candidate_id: str, audience_size: int
    ) -> bool:
        """Refresh the stored audience of one match.

        Returns:
            True if a stored match was updated, False if project or match is gone
        """
        try:
            row = self.session.get(ProjectModel, project_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load project {project_id}: {e}") from e
        if row is None:
            return False

        # JSON columns only detect reassignment, so edit a copy
        results = copy.deepcopy(row.results or [])
        changed = False
        for entry in results:
            if entry.get("original_criterion") != criterion:
                continue
            for match in entry.get("matches") or []:
                if str(match.get("id")) == str(candidate_id):
                    match["audience_size"] = audience_size
                    changed = True

        if not changed:
            return False

        row.results = results
        row.updated_at = format_timestamp(utc_now())
        self._flush("update match audience")
        return True

    def iter_zero_audience_matches(self) -> Iterator[StoredZeroAudienceMatch]:
        """Every stored match, across all owners, reported with an audience of exactly 0."""
        try:
            rows = self.session.execute(select(ProjectModel).order_by(ProjectModel.id)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to scan stored results: {e}") from e

        for row in rows:
            for entry in row.results or []:
                for match in entry.get("matches") or []:
                    if match.get("audience_size") == 0:
                        yield StoredZeroAudienceMatch(
                            project_id=row.id,
                            country=row.country,
                            criterion=entry.get("original_criterion", ""),
                            candidate_id=str(match.get("id")),
                        )

    def _get_row(self, project_id: int, owner: str) -> Optional[ProjectModel]:
        try:
            stmt = select(ProjectModel).where(
                ProjectModel.id == project_id, ProjectModel.owner == owner
            )
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving project {project_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve project: {e}") from e

    def _require_row(self, project_id: int, owner: str) -> ProjectModel:
        row = self._get_row(project_id, owner)
        if row is None:
            raise RecordNotFoundError(f"Project {project_id} not found for owner {owner}")
        return row

    def _flush(self, action: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}: {e}") from e
