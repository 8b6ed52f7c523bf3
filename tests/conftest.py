"""Shared fixtures: in-memory SQLite databases and reflectors."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from attribute_declarations.schema.reflector import SchemaReflector


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def reflector(engine):
    """Connected ``SchemaReflector`` over the test engine."""
    with SchemaReflector(engine) as reflector:
        yield reflector


@pytest.fixture
def db_url(tmp_path) -> str:
    """URL of an empty on-disk SQLite database (for URL-based reflectors)."""
    return f"sqlite:///{tmp_path / 'app.db'}"
