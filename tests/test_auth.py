"""
Authentication Tests

Tests for Supabase JWT validation, user sync and the current-user dependency.
"""

import time
from dataclasses import fields
import pytest
from uuid import uuid4
from unittest.mock import Mock, patch

import jwt
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from src.auth.config import AuthConfig
from src.auth.gating import ELIGIBLE_TIERS, TIER_LIMITS, TierLimits, check_scan_access
from src.auth.dependencies import get_current_user, DEV_USER_EMAIL
from src.auth.jwt import verify_supabase_token, JWTError, extract_user_info
from src.auth.models import User, UserRole, Subscriber
from src.auth.sync import sync_user_from_supabase


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def auth_config():
    """Create test auth config."""
    return AuthConfig(
        supabase_url="https://test.supabase.co",
        supabase_jwt_secret="super-secret-jwt-key-for-testing",
        jwt_algorithm="HS256",
        jwt_audience="authenticated",
        auth_enabled=True,
    )


@pytest.fixture
def valid_jwt_payload():
    """Create valid JWT payload."""
    now = int(time.time())
    return {
        "sub": str(uuid4()),
        "email": "user@test.com",
        "role": "authenticated",
        "aud": "authenticated",
        "user_metadata": {
            "full_name": "Test User",
        },
        "exp": now + 3600,
        "iat": now,
    }


@pytest.fixture
def create_test_token(auth_config):
    """Factory to create test JWT tokens."""
    def _create(payload: dict, algorithm: str = None) -> str:
        return jwt.encode(
            payload,
            auth_config.supabase_jwt_secret,
            algorithm=algorithm or auth_config.jwt_algorithm,
        )
    return _create


# =============================================================================
# JWT VALIDATION TESTS
# =============================================================================

class TestJWTValidation:
    """Tests for JWT token validation."""

    def test_valid_token(self, auth_config, valid_jwt_payload, create_test_token):
        """Test that a valid token is accepted."""
        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            token = create_test_token(valid_jwt_payload)
            payload = verify_supabase_token(token)

            assert payload["sub"] == valid_jwt_payload["sub"]
            assert payload["email"] == valid_jwt_payload["email"]

    def test_expired_token(self, auth_config, valid_jwt_payload, create_test_token):
        """Test that expired tokens are rejected."""
        valid_jwt_payload["exp"] = int(time.time()) - 3600

        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            token = create_test_token(valid_jwt_payload)

            with pytest.raises(JWTError, match="expired"):
                verify_supabase_token(token)

    def test_invalid_signature(self, auth_config, valid_jwt_payload):
        """Test that tokens with invalid signatures are rejected."""
        token = jwt.encode(valid_jwt_payload, "wrong-secret", algorithm="HS256")

        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            with pytest.raises(JWTError, match="signature"):
                verify_supabase_token(token)

    def test_missing_sub_claim(self, auth_config, valid_jwt_payload, create_test_token):
        """Test that tokens without 'sub' claim are rejected."""
        del valid_jwt_payload["sub"]

        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            token = create_test_token(valid_jwt_payload)

            with pytest.raises(JWTError, match="sub"):
                verify_supabase_token(token)

    def test_invalid_audience(self, auth_config, valid_jwt_payload, create_test_token):
        """Test that tokens with wrong audience are rejected."""
        valid_jwt_payload["aud"] = "wrong-audience"

        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            token = create_test_token(valid_jwt_payload)

            with pytest.raises(JWTError, match="audience"):
                verify_supabase_token(token)

    def test_algorithm_mismatch(self, auth_config, valid_jwt_payload, create_test_token):
        """Test that a token signed with another algorithm is rejected up front."""
        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            token = create_test_token(valid_jwt_payload, algorithm="HS384")

            with pytest.raises(JWTError, match="mismatch"):
                verify_supabase_token(token)

    def test_malformed_token(self, auth_config):
        """Test that garbage tokens are rejected as decode errors."""
        with patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            with pytest.raises(JWTError, match="decode"):
                verify_supabase_token("not-a-jwt")

    def test_no_jwt_secret_configured(self, valid_jwt_payload, create_test_token):
        """Test error when JWT secret not configured."""
        config = AuthConfig(supabase_jwt_secret="")
        token = create_test_token(valid_jwt_payload)

        with patch("src.auth.jwt.get_auth_config", return_value=config):
            with pytest.raises(JWTError, match="not configured"):
                verify_supabase_token(token)


class TestExtractUserInfo:
    """Tests for extracting user info from JWT payload."""

    def test_extract_full_user_info(self, valid_jwt_payload):
        """Test extracting complete user info."""
        info = extract_user_info(valid_jwt_payload)

        assert info["id"] == valid_jwt_payload["sub"]
        assert info["email"] == valid_jwt_payload["email"]
        assert info["full_name"] == "Test User"

    def test_extract_minimal_user_info(self):
        """Test extracting user info with minimal claims."""
        info = extract_user_info({"sub": "user-123", "email": "minimal@test.com"})

        assert info["id"] == "user-123"
        assert info["email"] == "minimal@test.com"
        assert info["full_name"] is None

    def test_google_oauth_metadata(self):
        """Test that Google's 'name' metadata is used as the full name."""
        payload = {
            "sub": "user-123",
            "email": "user@gmail.com",
            "user_metadata": {"name": "Google User"},
        }
        assert extract_user_info(payload)["full_name"] == "Google User"


# =============================================================================
# USER SYNC TESTS
# =============================================================================

class TestUserSync:
    """Tests for user synchronization."""

    def test_sync_creates_new_user(self, valid_jwt_payload):
        """Test that a new user is created on first sync."""
        mock_db = Mock()
        mock_db.query.return_value.filter.return_value.first.return_value = None

        user = sync_user_from_supabase(mock_db, valid_jwt_payload)

        mock_db.add.assert_called_once()
        mock_db.commit.assert_called()
        added_user = mock_db.add.call_args[0][0]
        assert added_user is user
        assert str(user.id) == valid_jwt_payload["sub"]
        assert user.role == UserRole.USER
        assert user.full_name == "Test User"

    def test_sync_updates_existing_user(self, valid_jwt_payload):
        """Test that existing user is updated on subsequent sync."""
        existing_user = User(
            id=uuid4(),
            email="old@test.com",
            role=UserRole.USER,
            is_active=True,
        )

        mock_db = Mock()
        mock_db.query.return_value.filter.return_value.first.return_value = existing_user

        user = sync_user_from_supabase(mock_db, valid_jwt_payload)

        assert user.email == valid_jwt_payload["email"]
        assert user.last_sign_in_at is not None
        mock_db.commit.assert_called()
        mock_db.add.assert_not_called()

    def test_sync_rejects_non_uuid_subject(self, valid_jwt_payload):
        """Test that a malformed subject never reaches the database."""
        valid_jwt_payload["sub"] = "user-123"
        mock_db = Mock()

        with pytest.raises(JWTError, match="sub"):
            sync_user_from_supabase(mock_db, valid_jwt_payload)
        mock_db.query.assert_not_called()


# =============================================================================
# USER MODEL TESTS
# =============================================================================

class TestUserModel:
    """Tests for User model."""

    def test_is_admin_true(self):
        user = User(id=uuid4(), email="admin@test.com", role=UserRole.ADMIN, is_active=True)
        assert user.is_admin is True

    def test_is_admin_false(self):
        user = User(id=uuid4(), email="user@test.com", role=UserRole.USER, is_active=True)
        assert user.is_admin is False

    def test_user_repr(self):
        user = User(id=uuid4(), email="user@test.com", role=UserRole.USER, is_active=True)
        assert "user@test.com" in repr(user)


# =============================================================================
# AUTH CONFIG TESTS
# =============================================================================

class TestAuthConfig:
    """Tests for auth configuration."""

    def test_is_configured_true(self, auth_config):
        assert auth_config.is_configured is True

    def test_is_configured_false_missing_secret(self):
        config = AuthConfig(supabase_url="https://test.supabase.co", supabase_jwt_secret="")
        assert config.is_configured is False

    def test_supabase_project_ref(self, auth_config):
        """Test extracting project ref from URL."""
        assert auth_config.supabase_project_ref == "test"

    def test_supabase_project_ref_none(self):
        """Test project ref is None when URL not set."""
        assert AuthConfig(supabase_url="").supabase_project_ref is None


# =============================================================================
# CURRENT USER DEPENDENCY TESTS
# =============================================================================

class TestGetCurrentUser:
    """Tests for the get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_dev_user_when_auth_disabled(self, db):
        """Test that disabled auth yields a subscribed dev user, created once."""
        config = AuthConfig(auth_enabled=False, dev_subscription_tier="agency")

        with patch("src.auth.dependencies.get_auth_config", return_value=config):
            first = await get_current_user(credentials=None, db=db)
            second = await get_current_user(credentials=None, db=db)

        assert first.id == second.id
        assert first.email == DEV_USER_EMAIL
        subscriber = db.query(Subscriber).filter(Subscriber.user_id == first.id).first()
        assert subscriber.subscription_tier == "agency"
        assert subscriber.subscribed and subscriber.payment_collected

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db, auth_config):
        with patch("src.auth.dependencies.get_auth_config", return_value=auth_config):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials=None, db=db)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, db, auth_config):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="not-a-jwt")

        with patch("src.auth.dependencies.get_auth_config", return_value=auth_config), \
             patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials=credentials, db=db)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token_syncs_user(self, db, auth_config, valid_jwt_payload, create_test_token):
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_test_token(valid_jwt_payload),
        )

        with patch("src.auth.dependencies.get_auth_config", return_value=auth_config), \
             patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            user = await get_current_user(credentials=credentials, db=db)

        assert str(user.id) == valid_jwt_payload["sub"]
        assert db.query(User).filter(User.id == user.id).count() == 1

    @pytest.mark.asyncio
    async def test_disabled_user(self, db, auth_config, valid_jwt_payload, create_test_token):
        db.add(User(id=uuid4(), email="x@test.com", is_active=False))
        db.commit()
        disabled = db.query(User).filter(User.email == "x@test.com").first()
        valid_jwt_payload["sub"] = str(disabled.id)
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_test_token(valid_jwt_payload),
        )

        with patch("src.auth.dependencies.get_auth_config", return_value=auth_config), \
             patch("src.auth.jwt.get_auth_config", return_value=auth_config):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials=credentials, db=db)
        assert exc_info.value.status_code == 403


# =============================================================================
# TIER GATING TESTS
# =============================================================================

class TestTierAccess:
    """Tests for subscription tier gating."""

    def _subscriber(self, tier: str) -> Subscriber:
        return Subscriber(user_id=uuid4(), subscribed=True, payment_collected=True, subscription_tier=tier)

    def test_tier_limits_carry_only_model_rosters(self):
        assert set(TIER_LIMITS) == set(ELIGIBLE_TIERS)
        assert {f.name for f in fields(TierLimits)} == {"models_allowed"}

    def test_agency_may_request_extra_model(self):
        access = check_scan_access(self._subscriber("agency"))

        assert access.resolve_models() == ["openai", "perplexity", "gemini"]
        assert access.resolve_models(["anthropic", "grok"]) == ["anthropic"]

    def test_tier_name_is_case_insensitive(self):
        assert check_scan_access(self._subscriber("Pro")).tier == "pro"
