# tests/conftest.py
import os

# Point the app at a throwaway in-memory database before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.models.task import Task, TaskPriority
from app.models.user import User, UserRole
from app.services.task_service import TaskService, get_broadcaster, get_clock
from app.services.task_store import TaskStore
from main import app

from .fakes import FrozenClock, RecordingBroadcaster

NOW = datetime(2026, 1, 15, 12, 0, 0)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def events():
    return RecordingBroadcaster()


def _make_user(db, email: str, role: UserRole) -> User:
    # Password hashing is not under test here
    user = User(email=email, hashed_password="not-a-real-hash", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_user(db):
    def factory(email: str, role: UserRole = UserRole.EMPLOYEE) -> User:
        return _make_user(db, email, role)
    return factory


@pytest.fixture
def manager(make_user):
    return make_user("boss@example.com", UserRole.MANAGER)


@pytest.fixture
def employee(make_user):
    return make_user("emp1@example.com", UserRole.EMPLOYEE)


@pytest.fixture
def other_employee(make_user):
    return make_user("emp2@example.com", UserRole.EMPLOYEE)


@pytest.fixture
def store(db, clock):
    return TaskStore(db, clock=clock)


@pytest.fixture
def service(store, events):
    return TaskService(store, events=events)


@pytest.fixture
def add_task(db, clock):
    """Insert a task row directly, bypassing the service"""
    def factory(assignee: User, creator: User, due_in: timedelta = timedelta(days=2), **fields) -> Task:
        values = {
            "title": "Task",
            "deadline": clock() + due_in,
            "priority": TaskPriority.MEDIUM,
            "created_at": clock(),
        }
        values.update(fields)
        task = Task(assigned_to=assignee.id, created_by=creator.id, **values)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task
    return factory


@pytest.fixture
def client(clock, events):
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_broadcaster] = lambda: events
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
