"""
JWT Token Validation for Supabase Auth

Validates JWTs issued by Supabase using the project's JWT secret or JWKS.
Supports both symmetric (HS256) and asymmetric (ES256, RS256) algorithms.
Only the ``sub`` and ``email`` claims are used downstream.
"""

import logging
from typing import Dict, Any
from functools import lru_cache

import jwt
from jwt import PyJWTError, PyJWKClient, PyJWKClientError

from src.auth.config import AuthConfig, get_auth_config

logger = logging.getLogger(__name__)

# Asymmetric algorithms that require public key (JWKS) verification
ASYMMETRIC_ALGORITHMS = {"RS256", "RS384", "RS512", "ES256", "ES384", "ES512", "PS256", "PS384", "PS512"}


class JWTError(Exception):
    """Custom JWT validation error."""
    pass


@lru_cache(maxsize=1)
def get_jwks_client(jwks_url: str) -> PyJWKClient:
    """Get cached JWKS client for fetching public keys."""
    return PyJWKClient(jwks_url, cache_keys=True, lifespan=3600)


def get_verification_key(token: str, config: AuthConfig) -> Any:
    """
    Get the appropriate verification key based on algorithm.

    - For symmetric algorithms (HS256): Use the JWT secret directly
    - For asymmetric algorithms (ES256, RS256): Fetch public key from JWKS
    """
    if config.jwt_algorithm in ASYMMETRIC_ALGORITHMS:
        project_ref = config.supabase_project_ref
        if not project_ref:
            raise JWTError(
                f"SUPABASE_URL required for {config.jwt_algorithm} algorithm. "
                "Set SUPABASE_URL environment variable."
            )

        jwks_url = f"https://{project_ref}.supabase.co/auth/v1/.well-known/jwks.json"

        try:
            signing_key = get_jwks_client(jwks_url).get_signing_key_from_jwt(token)
            return signing_key.key
        except PyJWKClientError as e:
            logger.error(f"Failed to fetch JWKS from {jwks_url}: {e}")
            raise JWTError(f"Failed to fetch public key from Supabase: {str(e)}")

    if not config.supabase_jwt_secret:
        raise JWTError("SUPABASE_JWT_SECRET not configured")
    return config.supabase_jwt_secret


def verify_supabase_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a Supabase JWT token.

    Args:
        token: The JWT token from the Authorization header

    Returns:
        Decoded token payload containing user info

    Raises:
        JWTError: If token is invalid, expired, or malformed
    """
    config = get_auth_config()

    try:
        token_alg = jwt.get_unverified_header(token).get("alg", "unknown")
        if token_alg != config.jwt_algorithm:
            raise JWTError(
                f"JWT algorithm mismatch: token uses '{token_alg}', "
                f"server expects '{config.jwt_algorithm}'. "
                f"Set JWT_ALGORITHM={token_alg} in environment variables."
            )

        payload = jwt.decode(
            token,
            get_verification_key(token, config),
            algorithms=[config.jwt_algorithm],
            audience=config.jwt_audience,
        )

        if not payload.get("sub"):
            raise JWTError("Token missing 'sub' claim (user ID)")

        return payload

    except jwt.ExpiredSignatureError:
        raise JWTError("Token has expired")
    except jwt.InvalidAudienceError:
        raise JWTError("Invalid token audience")
    except jwt.InvalidSignatureError:
        raise JWTError("Invalid token signature")
    except jwt.DecodeError as e:
        raise JWTError(f"Token decode error: {str(e)}")
    except PyJWTError as e:
        raise JWTError(f"Token validation error: {str(e)}")


def extract_user_info(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract user information from a verified JWT payload.

    Supabase JWT payload structure:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "aud": "authenticated",
        "user_metadata": {"full_name": "Jane Doe"},
        "exp": 1234567890
    }
    """
    user_metadata = payload.get("user_metadata") or {}
    return {
        "id": payload.get("sub"),
        "email": payload.get("email"),
        "full_name": user_metadata.get("full_name") or user_metadata.get("name"),
    }
