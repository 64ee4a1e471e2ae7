# sportlink/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from sportlink.core.config import get_settings
from sportlink.schemas.user import ROLES, SessionUser

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so public routes can still resolve an optional session.
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _application_role(payload: dict[str, Any]) -> str | None:
    """
    Custom role claim.

    Supabase puts its own Postgres role ("authenticated") in the top-level
    `role` claim, so the application role lives in `app_metadata.role`.
    A top-level `role` is only honored when it names an application role.
    """
    app_metadata = payload.get("app_metadata")
    if isinstance(app_metadata, dict) and app_metadata.get("role") in ROLES:
        return app_metadata["role"]
    if payload.get("role") in ROLES:
        return payload["role"]
    return None


def session_from_claims(payload: dict[str, Any]) -> SessionUser:
    """
    Build the request session from verified claims.

    Raises:
        HTTPException(401): if the token carries no subject.
    """
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    user_metadata = payload.get("user_metadata")
    if not isinstance(user_metadata, dict):
        user_metadata = {}
    name = user_metadata.get("name") or user_metadata.get("full_name") or payload.get("name")

    return SessionUser(
        uid=str(sub),
        email=payload.get("email"),
        name=name,
        role=_application_role(payload),
    )


def authenticate_token(token: str) -> SessionUser:
    """Verify a raw token and return its session (401 on failure)."""
    return session_from_claims(decode_access_token(token))


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionUser | None:
    """
    Resolve the current session from a Supabase JWT.

    Returns:
        SessionUser if a bearer token is present, else None for guests.

    Raises:
        HTTPException(401): if the token is invalid or missing claims.
    """
    if credentials is None:
        return None  # guest mode
    return authenticate_token(credentials.credentials)


def require_auth(user: SessionUser | None = Depends(get_current_user)) -> SessionUser:
    """
    Enforce authentication.

    If attached to a route, requests without a bearer token are
    rejected with 401.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )
    return user
