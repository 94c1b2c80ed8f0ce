"""
User Synchronization from Supabase

Syncs user data from a verified Supabase JWT to the local users table
on each authenticated request.
"""

import logging
from datetime import datetime
from typing import Dict, Any
from uuid import UUID

from sqlalchemy.orm import Session

from src.auth.models import User, UserRole
from src.auth.jwt import JWTError, extract_user_info

logger = logging.getLogger(__name__)


def sync_user_from_supabase(db: Session, jwt_payload: Dict[str, Any]) -> User:
    """
    Create the local user on first access, refresh it afterwards.

    Raises:
        JWTError: If the ``sub`` claim is not a UUID
    """
    user_info = extract_user_info(jwt_payload)
    try:
        user_id = UUID(str(user_info["id"]))
    except ValueError:
        raise JWTError("Token 'sub' claim is not a valid user ID")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        logger.info(f"Creating new user: {user_info['email']}")
        user = User(
            id=user_id,
            email=user_info["email"] or f"{user_id}@users.local",
            full_name=user_info.get("full_name"),
            role=UserRole.USER,
            is_active=True,
            last_sign_in_at=datetime.utcnow(),
        )
        db.add(user)
    else:
        if user_info["email"]:
            user.email = user_info["email"]
        user.full_name = user_info.get("full_name") or user.full_name
        user.last_sign_in_at = datetime.utcnow()

    db.commit()
    db.refresh(user)
    return user
