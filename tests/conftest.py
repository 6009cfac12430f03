import pytest
import os
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ENABLE_AUTO_ANALYSIS"] = "false"
os.environ["CALLTRACKER_TIMEZONE"] = "Europe/Rome"

import pytz
from hr_calltracker.database import Base, get_db
from hr_calltracker.dependencies import (
    get_analytics_service,
    get_conflict_detector,
    get_repository,
    get_scheduling_engine,
    get_store,
)
from hr_calltracker.main import app
from hr_calltracker.schemas.call import Call, CallStatus
from hr_calltracker.schemas.employee import Employee
from hr_calltracker.services.conflict_detector import CallConflictDetector
from hr_calltracker.services.employee_analytics import EmployeeAnalyticsService
from hr_calltracker.services.notification import NotificationDispatcher
from hr_calltracker.services.repository import CallTrackerRepository
from hr_calltracker.services.scheduling_engine import SchedulingEngine
from hr_calltracker.services.storage import InMemoryStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ROME = pytz.timezone("Europe/Rome")


class RecordingDispatcher(NotificationDispatcher):
    """Keeps every auto-scheduled notification in memory."""

    def __init__(self):
        self.sent = []

    async def notify_auto_scheduled(self, call, employee, suggestion) -> None:
        self.sent.append((call, employee, suggestion))


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_connection():
    """One connection per test; everything written through it is rolled back."""
    connection = engine.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def session_factory(db_connection):
    return lambda: TestingSessionLocal(bind=db_connection)

@pytest.fixture(scope="function")
def db_session(session_factory):
    """Get a clean database session for each test function with rollback safety."""
    session = session_factory()
    yield session
    session.close()

# --- Calendar ---

@pytest.fixture
def tz():
    return ROME

@pytest.fixture
def local(tz):
    """local(day, hour, minute) -> aware datetime in October 2026, Rome time."""
    def _local(day, hour, minute=0, month=10):
        return tz.localize(datetime(2026, month, day, hour, minute))
    return _local

@pytest.fixture
def now(local):
    # Monday 19 October 2026, 09:00
    return local(19, 9)

# --- Records ---

@pytest.fixture
def make_employee():
    def _make_employee(employee_id="emp-1", **overrides):
        data = {
            "id": employee_id,
            "first_name": "Mario",
            "last_name": "Rossi",
            "email": f"{employee_id}@example.com",
            "department": "Vendite",
            "is_active": True,
        }
        data.update(overrides)
        return Employee(**data)
    return _make_employee

@pytest.fixture
def make_call():
    counter = {"n": 0}

    def _make_call(scheduled_at, employee_id="emp-1", **overrides):
        counter["n"] += 1
        data = {
            "id": overrides.pop("call_id", f"call-{counter['n']}"),
            "employee_id": employee_id,
            "scheduled_at": scheduled_at,
            "status": CallStatus.SCHEDULED,
        }
        data.update(overrides)
        return Call(**data)
    return _make_call

# --- Services ---

@pytest.fixture
def store():
    return InMemoryStore()

@pytest.fixture
def repository(store):
    return CallTrackerRepository(store)

@pytest.fixture
def detector(repository, tz):
    return CallConflictDetector(repository, tz=tz)

@pytest.fixture
def dispatcher():
    return RecordingDispatcher()

@pytest.fixture
def scheduling_engine(store, repository, detector, dispatcher, tz, now):
    return SchedulingEngine(
        store=store,
        repository=repository,
        conflict_detector=detector,
        dispatcher=dispatcher,
        tz=tz,
        clock=lambda: now,
    )

@pytest.fixture
def analytics(repository, tz):
    return EmployeeAnalyticsService(repository, tz=tz)

@pytest.fixture(scope="function")
def client(db_session, store, repository, detector, scheduling_engine, analytics):
    """Get a TestClient wired to the per-test store, engine and database session."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_conflict_detector] = lambda: detector
    app.dependency_overrides[get_scheduling_engine] = lambda: scheduling_engine
    app.dependency_overrides[get_analytics_service] = lambda: analytics
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
