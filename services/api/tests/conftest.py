import os

# Settings are read at import time
os.environ.setdefault("AI_MODE", "mock")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chefgpt.main import app
from chefgpt.db import Base, get_db
from chefgpt.models import User

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Share the in-memory database across sessions/threads
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def auth_headers():
    return {"X-User-Id": "user_test_1", "X-User-Email": "cook@example.com"}

@pytest.fixture
def other_headers():
    return {"X-User-Id": "user_test_2"}

@pytest.fixture
def profile_user(db_session):
    """User with a complete profile (70 kg, 175 cm, 30 y, male, sedentary, lose_weight)."""
    user = User(
        id="user_test_1",
        email="cook@example.com",
        gender="male",
        age=30,
        height_cm=175,
        weight_kg=70,
        activity_level="sedentary",
        goal="lose_weight",
        timezone="UTC",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


import fakeredis.aioredis
from chefgpt.infra import redis_client

@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    # Force a fake client into the infra module
    redis_client._redis_async = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)

    yield

    # Cleanup
    redis_client._redis_async = None
