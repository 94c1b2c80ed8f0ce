"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
Database tests run against an in-memory SQLite engine shared by every
session a test opens.
"""

import pytest
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from src.database.models import Base
from src.auth.models import User, UserRole, Subscriber
from src.context.models import Location, ProfileInput, CompetitorOverride


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def make_user(db):
    """Factory for users with an optional subscription."""
    def _make(
        tier: Optional[str] = "pro",
        subscribed: bool = True,
        payment_collected: bool = True,
        email: Optional[str] = None,
    ) -> User:
        user = User(
            id=uuid4(),
            email=email or f"{uuid4().hex[:8]}@test.com",
            role=UserRole.USER,
            is_active=True,
        )
        db.add(user)
        db.flush()
        if tier is not None:
            db.add(Subscriber(
                user_id=user.id,
                subscribed=subscribed,
                payment_collected=payment_collected,
                subscription_tier=tier,
            ))
        db.commit()
        return user
    return _make


@pytest.fixture
def user(make_user) -> User:
    """User on the pro tier."""
    return make_user(tier="pro")


# ============================================================================
# Profile Fixtures
# ============================================================================

@pytest.fixture
def profile_input() -> ProfileInput:
    """Valid profile for a plumber in Austin."""
    return ProfileInput(
        business_name="Acme Plumbing",
        domain="https://www.acmeplumbing.com/",
        primary_location=Location(city="Austin", state="TX"),
        categories=["Plumber"],
        neighborhoods=["Hyde Park", "Zilker"],
        brand_synonyms=["Acme Plumbing Co"],
        competitor_overrides=[CompetitorOverride(name="Reliable Plumbing Co")],
    )


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
