"""Shared pytest fixtures for evalround tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from evalround.db.schema import Base
from evalround.db.session import enable_sqlite_foreign_keys


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine with foreign keys enforced."""
    engine = enable_sqlite_foreign_keys(create_engine("sqlite:///:memory:", echo=False))
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
