"""Shared test fixtures and configuration."""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.models import Company, User
from app.api.deps import get_db, get_now
from app.core.cache import global_cache
from app.core.security import ADMIN_COOKIE_NAME, create_access_token, create_admin_token
from app.engine import default_config_dict
from app.services.qr_codes import rotate_qr_code


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

DENVER = ZoneInfo("America/Denver")


def denver(year, month, day, hour, minute=0, second=0):
    """An aware datetime on the default company's local clock."""
    return datetime(year, month, day, hour, minute, second, tzinfo=DENVER)


class Clock:
    """Mutable 'now' injected into endpoints through the get_now dependency."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from app.core.rate_limit import limiter

    if "rate_limit" in request.keywords:
        limiter.enabled = True
        limiter.reset()
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
        limiter.enabled = True


@pytest.fixture(autouse=True)
def clear_global_cache():
    """Cached configs and leaderboards must not leak between tests."""
    global_cache.clear()
    yield
    global_cache.clear()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    """Monday 2 June 2025, 07:00 in Denver: inside the default window, early."""
    return Clock(denver(2025, 6, 2, 7, 0))


@pytest.fixture(scope="function")
def client(db_session, clock):
    """Create a test client with a test database and a pinned clock."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def company(db_session):
    """Company with the default check-in settings; QR codes not required."""
    settings = default_config_dict()
    settings["require_qr_code"] = False
    company = Company(id=1, name="Acme", settings=settings)
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def qr_company(db_session):
    """Company with the default settings, which require a QR code."""
    company = Company(id=1, name="Acme", settings=default_config_dict())
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def qr_code(db_session, qr_company, clock):
    return rotate_qr_code(db_session, qr_company.id, created_by="tests", now=denver(2025, 6, 1, 12, 0))


@pytest.fixture
def make_user(db_session):
    """Factory for users in company 1."""
    counter = {"n": 0}

    def _make_user(status="approved", role="employee", company_id=1, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            external_id=fields.pop("external_id", f"user-{n}"),
            email=fields.pop("email", f"user{n}@example.com"),
            name=fields.pop("name", f"User {n}"),
            role=role,
            status=status,
            company_id=company_id,
            points_balance=fields.pop("points_balance", 0),
            total_points_earned=fields.pop("total_points_earned", 0),
            current_streak=fields.pop("current_streak", 0),
            longest_streak=fields.pop("longest_streak", 0),
            total_check_ins=fields.pop("total_check_ins", 0),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def identity_token_for(user: User) -> str:
    return create_access_token({
        "sub": user.external_id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "company": user.company_id,
    })


@pytest.fixture
def employee(company, make_user):
    return make_user()


@pytest.fixture
def auth_headers(employee):
    """Bearer headers for an approved employee."""
    return {"Authorization": f"Bearer {identity_token_for(employee)}"}


@pytest.fixture
def admin_token():
    """Generate a valid admin JWT token."""
    return create_admin_token()


@pytest.fixture
def admin_client(client, admin_token):
    """Create a test client with admin cookie already set."""
    client.cookies.set(ADMIN_COOKIE_NAME, admin_token)
    return client
