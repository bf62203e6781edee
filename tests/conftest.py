"""
Pytest configuration and shared fixtures for the test suite.
Points the app at throwaway storage and provides in-memory DB fixtures for
unit and integration tests.
"""
import os
import sys
import tempfile
from pathlib import Path

# must be set before learnhub.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_CATALOG_ON_STARTUP", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnhub-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """Create an in-memory SQLite engine for tests."""
    return create_engine("sqlite:///:memory:", echo=False)


@pytest.fixture
def db_session(in_memory_engine):
    """Create an in-memory database session with all learnhub tables."""
    import learnhub.models  # noqa: F401
    from learnhub.config import Base

    Base.metadata.create_all(in_memory_engine)
    SessionLocal = sessionmaker(bind=in_memory_engine, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fresh_catalog_cache():
    """The process-wide catalog snapshot must not leak between tests."""
    from learnhub.services.catalog import catalog_cache

    catalog_cache.invalidate()
    yield
    catalog_cache.invalidate()


@pytest.fixture
def make_user(db_session):
    """Factory for users in the in-memory DB."""
    from learnhub.models.models import User

    def _make(email="learner@example.com", name=None, is_admin=False):
        user = User(
            email=email,
            hashed_password="not-a-real-hash",
            preferences={"name": name} if name else {},
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def service(db_session):
    """GamificationService with its own catalog cache and lock registry."""
    from learnhub.config import Settings
    from learnhub.services.catalog import CatalogCache
    from learnhub.services.gamification_service import GamificationService
    from learnhub.services.user_locks import UserLockRegistry

    return GamificationService(
        db_session,
        catalog=CatalogCache(),
        locks=UserLockRegistry(),
        settings=Settings(streak_day_mode="rolling", seed_catalog_on_startup=False),
    )
