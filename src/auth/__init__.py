"""
Authentication and Authorization Module

Supabase JWT auth for API users plus subscription tier gating:
- JWTs are validated against the Supabase JWT secret (or JWKS)
- Users are synced to the local database on each request
- Scans require an active, paid subscription on an eligible tier

Usage:
    @router.post("/runs")
    def create_run(current_user: User = Depends(get_current_user)):
        ...
"""

from .config import AuthConfig, get_auth_config
from .jwt import verify_supabase_token, extract_user_info, JWTError
from .models import User, UserRole, Subscriber
from .sync import sync_user_from_supabase
from .gating import (
    TierAccess,
    TierLimits,
    TIER_LIMITS,
    DEFAULT_MODELS,
    check_scan_access,
)
from .dependencies import get_current_user

__all__ = [
    # Config
    "AuthConfig",
    "get_auth_config",
    # JWT validation
    "verify_supabase_token",
    "extract_user_info",
    "JWTError",
    # Models
    "User",
    "UserRole",
    "Subscriber",
    # User sync
    "sync_user_from_supabase",
    # Tier gating
    "TierAccess",
    "TierLimits",
    "TIER_LIMITS",
    "DEFAULT_MODELS",
    "check_scan_access",
    # FastAPI dependencies
    "get_current_user",
]
