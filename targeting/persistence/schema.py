"""ORM models and schema creation.

Timestamps are stored as ISO 8601 strings with a ``Z`` suffix; list fields
(categories, serialized batch items) are stored as JSON.
"""

import logging

from sqlalchemy import JSON, Column, Float, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from targeting.domain.models import Project, ProjectStatus
from targeting.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class ProjectModel(Base):
    """ORM model for the projects table."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner = Column(String(255), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.IN_PROGRESS.value)
    target_audience = Column(Text, nullable=True)
    country = Column(String(64), nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    results = Column(JSON, nullable=False, default=list)
    budget = Column(Float, nullable=False, default=0.0)

    start_date = Column(String(50), nullable=True)
    end_date = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_projects_owner", "owner"),
        Index("idx_projects_owner_created", "owner", "created_at"),
    )

    def to_domain(self) -> Project:
        return Project(
            id=self.id,
            owner=self.owner,
            name=self.name,
            description=self.description,
            status=ProjectStatus(self.status),
            target_audience=self.target_audience,
            country=self.country,
            categories=list(self.categories or []),
            results=list(self.results or []),
            budget=self.budget or 0.0,
            start_date=parse_iso_datetime(self.start_date),
            end_date=parse_iso_datetime(self.end_date),
            created_at=parse_iso_datetime(self.created_at),
            updated_at=parse_iso_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectModel":
        """Build a new row from a domain project; ``id`` is left to the database."""
        return cls(
            owner=project.owner,
            name=project.name,
            description=project.description,
            status=ProjectStatus(project.status).value,
            target_audience=project.target_audience,
            country=project.country,
            categories=list(project.categories),
            results=list(project.results),
            budget=project.budget,
            start_date=format_timestamp(project.start_date),
            end_date=format_timestamp(project.end_date),
            created_at=format_timestamp(project.created_at),
            updated_at=format_timestamp(project.updated_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
