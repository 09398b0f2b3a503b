"""Shared test fixtures."""

import os

# The background scheduler must not run against the real database during tests
os.environ["RECURRING_SCHEDULER_ENABLED"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import datetime
from decimal import Decimal
import uuid

from app.database import Base, get_db as database_get_db
from app.dependencies import get_db as dependencies_get_db
from app.main import app
from app.models.expense import Expense
from app.models.recurring import RecurringExpense, Frequency

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine shared by every connection of a test."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[dependencies_get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_auth_headers():
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def make_template(db_session):
    """Factory for recurring expense templates."""
    def _make(**overrides):
        values = {
            "id": str(uuid.uuid4()),
            "user_id": USER_ID,
            "amount": Decimal("15.99"),
            "name": "Netflix",
            "category": "Entertainment",
            "frequency": Frequency.monthly,
            "start_date": datetime(2025, 1, 1),
            "end_date": None,
            "last_generated": None,
            "notes": "",
            "is_active": True,
        }
        values.update(overrides)
        template = RecurringExpense(**values)
        db_session.add(template)
        db_session.commit()
        db_session.refresh(template)
        return template

    return _make


@pytest.fixture
def sample_recurring_expense(make_template):
    """Create a sample monthly recurring expense."""
    return make_template()


@pytest.fixture
def sample_expense(db_session):
    """Create a sample expense."""
    expense = Expense(
        id=str(uuid.uuid4()),
        user_id=USER_ID,
        amount=Decimal("50.00"),
        name="Groceries",
        category="Food",
        notes="",
        date=datetime(2025, 1, 15, 12, 0),
    )
    db_session.add(expense)
    db_session.commit()
    db_session.refresh(expense)
    return expense
