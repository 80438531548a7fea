"""Shared pytest fixtures."""

import pytest

from targeting.logging.context import clear_log_context
from targeting.persistence.database import close_database, init_database


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Minimal valid environment; optional variables cleared."""
    monkeypatch.setenv("META_ACCESS_TOKEN", "test-meta-token")
    for name in (
        "OPENAI_API_KEY",
        "SOPRISM_API_URL",
        "SOPRISM_USERNAME",
        "SOPRISM_PASSWORD",
        "LOG_LEVEL",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_database():
    """In-memory database, closed after the test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()
