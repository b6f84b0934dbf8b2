# catalog_engine/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from catalog_engine.core.config import get_settings
from catalog_engine.core.providers import get_authorization
from catalog_engine.services.authorization import Actor, Authorization, guest_actor

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so unauthenticated callers are routed as guests (lowest privilege).
bearer_scheme = HTTPBearer(auto_error=False)

DEFAULT_ROLE = "user"


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


def _role_from_claims(payload: dict[str, Any]) -> str:
    """
    Application role lives in app_metadata (set server-side, not editable
    by the user). Anything else is a plain user.
    """
    app_metadata = payload.get("app_metadata") or {}
    role = app_metadata.get("role") if isinstance(app_metadata, dict) else None
    return str(role or DEFAULT_ROLE).lower()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """
    Resolve who is calling from a Supabase JWT.

    Flow:
      1. If no Authorization header => guest actor with a synthesized id.
      2. Decode JWT => extract 'sub' (auth user id) and the app role.
      3. Convert 'sub' to UUID.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return guest_actor()

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    return Actor(id=sub_uuid, role=_role_from_claims(payload))


def require_admin(
    actor: Actor = Depends(get_current_actor),
    authorization: Authorization = Depends(get_authorization),
) -> Actor:
    """
    Enforce a privileged role.

    Returns:
        The privileged Actor.

    Raises:
        HTTPException(403): if the actor may not mutate the catalog directly.
    """
    if not authorization.can_apply_directly(actor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor
