"""
Authentication Models

User and subscription records used by the scan pipeline.
These are added to the main database alongside the scan models.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum, Index, ForeignKey, Uuid
)

from src.database.models import Base


class UserRole(enum.Enum):
    """User role for access control."""
    USER = "user"      # Regular user - sees only their own profiles
    ADMIN = "admin"    # Admin - used for the development user


class User(Base):
    """
    Local user record synced from Supabase Auth.

    The id matches the Supabase auth.users.id (UUID).
    """
    __tablename__ = "users"

    # ID matches Supabase auth.users.id
    id = Column(Uuid, primary_key=True)

    # Basic info (synced from Supabase)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255))

    # Role (managed locally, not in Supabase)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Last sync with Supabase
    last_sign_in_at = Column(DateTime)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_user_email", "email"),
    )

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"


class Subscriber(Base):
    """
    Subscription state per user, owned by the billing system.

    Read-only to the scan pipeline.
    """
    __tablename__ = "subscribers"

    user_id = Column(Uuid, ForeignKey("users.id"), primary_key=True)
    subscribed = Column(Boolean, default=False, nullable=False)
    payment_collected = Column(Boolean, default=False, nullable=False)
    subscription_tier = Column(String(50))  # growth, pro, agency, ...

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Subscriber {self.user_id} ({self.subscription_tier})>"
