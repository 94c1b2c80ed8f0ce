"""
Authentication Configuration

Settings for Supabase JWT validation and auth behavior.
"""

import os
from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class AuthConfig(BaseSettings):
    """Authentication configuration loaded from environment."""

    # Supabase Configuration
    supabase_url: str = ""
    supabase_jwt_secret: str = ""

    # JWT Settings
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Auth behavior
    auth_enabled: bool = True  # False for local dev without auth

    # Subscription granted to the dev user when auth is disabled
    dev_subscription_tier: str = "pro"

    class Config:
        env_prefix = ""
        extra = "ignore"

    @property
    def supabase_project_ref(self) -> Optional[str]:
        """Extract project reference from Supabase URL."""
        if not self.supabase_url:
            return None
        # https://abcdefg.supabase.co -> abcdefg
        return self.supabase_url.replace("https://", "").split(".")[0] or None

    @property
    def is_configured(self) -> bool:
        """Check if auth is properly configured."""
        return bool(self.supabase_jwt_secret)


@lru_cache()
def get_auth_config() -> AuthConfig:
    """Get cached auth configuration."""
    return AuthConfig(
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        auth_enabled=os.getenv("AUTH_ENABLED", "true").lower() == "true",
        dev_subscription_tier=os.getenv("DEV_SUBSCRIPTION_TIER", "pro"),
    )
