"""
Integration test fixtures. Overrides get_db for API tests with in-memory DB.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

PASSWORD = "testpass123"


@pytest.fixture
def session_factory():
    """In-memory engine shared across the TestClient's worker threads."""
    import learnhub.models  # noqa: F401
    from learnhub.config import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def override_get_db(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_client(override_get_db):
    """FastAPI TestClient with in-memory DB override."""
    from fastapi.testclient import TestClient
    from learnhub.api import app
    from learnhub.config import get_db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(session_factory):
    """Load the default badge and achievement catalogs."""
    from learnhub.services.gamification_service import GamificationService

    with session_factory() as db:
        GamificationService(db).seed_defaults()


@pytest.fixture
def create_db_user(session_factory):
    """Insert a user directly and return its id."""
    from learnhub.models.models import User
    from learnhub.utils.jwt import get_password_hash

    def _create(email, name=None, is_admin=False):
        with session_factory() as db:
            user = User(
                email=email,
                hashed_password=get_password_hash(PASSWORD),
                preferences={"name": name} if name else {},
                is_admin=is_admin,
            )
            db.add(user)
            db.commit()
            return user.id

    return _create


@pytest.fixture
def login(api_client):
    """Log the client in as `email`; the auth cookie stays on the client."""

    def _login(email, password=PASSWORD):
        response = api_client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response

    return _login


@pytest.fixture
def learner(create_db_user, login):
    user_id = create_db_user("learner@example.com", name="Lena Learner")
    login("learner@example.com")
    return user_id


@pytest.fixture
def admin(create_db_user, login):
    user_id = create_db_user("admin@example.com", name="Ada Admin", is_admin=True)
    login("admin@example.com")
    return user_id
