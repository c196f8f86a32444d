"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test
- Offices and users covering every role
- Case/appointment/task factories
- HTTPX AsyncClient per role (session cookie), with a recording notifier
"""
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Generator

# Must be set before casecore.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from casecore.core.deps import COOKIE_NAME, get_cascade_notifier, get_db
from casecore.core.security import create_access_token
from casecore.core.stage_definitions import initial_stage
from casecore.db.base import Base
from casecore.db.enums import Role
from casecore.db.models import Appointment, Case, CaseAssignment, Office, Task, User
from casecore.main import app
from casecore.services.notification_service import RecordingNotifier


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory bound to a brand new in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Offices and users
# =============================================================================

@pytest.fixture
def office_a(db: Session) -> Office:
    office = Office(name="Centro", code="ctr")
    db.add(office)
    db.commit()
    return office


@pytest.fixture
def office_b(db: Session) -> Office:
    office = Office(name="Norte", code="nte")
    db.add(office)
    db.commit()
    return office


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make(role: Role, office: Office | None = None, department: str | None = None, **kwargs) -> User:
        user = User(
            email=f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
            display_name=kwargs.pop("display_name", role.value.title()),
            role=role.value,
            office_id=office.id if office else None,
            department=department,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.ADMIN)


@pytest.fixture
def manager_a(make_user, office_a) -> User:
    return make_user(Role.OFFICE_MANAGER, office_a)


@pytest.fixture
def lawyer_a(make_user, office_a) -> User:
    """Lawyer in office A, Familiar department."""
    return make_user(Role.LAWYER, office_a, "Familiar")


@pytest.fixture
def psychologist_a(make_user, office_a) -> User:
    """Psychologist in office A, Psicologia department."""
    return make_user(Role.PSYCHOLOGIST, office_a, "Psicologia")


@pytest.fixture
def lawyer_b(make_user, office_b) -> User:
    return make_user(Role.LAWYER, office_b, "Familiar")


@pytest.fixture
def client_user(make_user) -> User:
    return make_user(Role.CLIENT)


# =============================================================================
# Resource factories
# =============================================================================

@pytest.fixture
def make_case(db: Session) -> Callable[..., Case]:
    def _make(
        office: Office,
        category: str = "Familiar",
        primary: User | None = None,
        assigned: list[User] | None = None,
        client: User | None = None,
        title: str = "Custody arrangement",
        **kwargs,
    ) -> Case:
        case = Case(
            office_id=office.id,
            category=category,
            title=title,
            stage=kwargs.pop("stage", initial_stage(category)),
            status=kwargs.pop("status", "open"),
            primary_staff_id=primary.id if primary else None,
            client_id=client.id if client else None,
            **kwargs,
        )
        db.add(case)
        db.flush()
        for user in assigned or []:
            db.add(CaseAssignment(case_id=case.id, user_id=user.id))
        db.commit()
        return case

    return _make


@pytest.fixture
def make_appointment(db: Session) -> Callable[..., Appointment]:
    def _make(case: Case, staff: User | None = None, status: str = "scheduled") -> Appointment:
        start = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        appointment = Appointment(
            case_id=case.id,
            assigned_staff_id=staff.id if staff else None,
            title="Consultation",
            status=status,
            start_time=start,
            end_time=start + timedelta(hours=1),
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture
def make_task(db: Session) -> Callable[..., Task]:
    def _make(case: Case, assignee: User | None = None, status: str = "pending") -> Task:
        task = Task(
            case_id=case.id,
            assigned_to_id=assignee.id if assignee else None,
            title="Collect documents",
            status=status,
        )
        db.add(task)
        db.commit()
        return task

    return _make


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


def auth_for(user: User) -> TestAuth:
    token = create_access_token(
        user_id=user.id,
        role=user.role,
        office_id=user.office_id,
        department=user.department,
    )
    return TestAuth(user=user, token=token)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def api(db: Session, notifier: RecordingNotifier) -> Generator[Callable[..., AsyncClient], None, None]:
    """
    Factory for AsyncClients. Pass a User for an authenticated client.

    Usage:
        async with api(manager_a) as client:
            ...
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cascade_notifier] = lambda: notifier

    def _client(user: User | None = None) -> AsyncClient:
        cookies = {}
        if user is not None:
            auth = auth_for(user)
            cookies[auth.cookie_name] = auth.token
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
        )

    yield _client
    app.dependency_overrides.clear()


@pytest.fixture
async def client(api) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client."""
    async with api() as c:
        yield c
