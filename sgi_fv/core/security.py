from __future__ import annotations

from typing import Any, Dict, Optional

from jose import JWTError, jwt

from sgi_fv.core.settings import get_app_settings
from sgi_fv.schemas.auth import AuthSession


# PUBLIC_INTERFACE
def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an access token issued by the backend's auth service.

    Raises JWTError if the token is invalid/expired or when no signing secret is
    configured.
    """
    settings = get_app_settings()
    if not settings.SUPABASE_JWT_SECRET:
        raise JWTError("SUPABASE_JWT_SECRET is not configured")
    options = {"verify_aud": bool(settings.SUPABASE_JWT_AUDIENCE)}
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.SUPABASE_JWT_AUDIENCE,
        options=options,
    )


# PUBLIC_INTERFACE
def session_from_token(token: str, refresh_token: Optional[str] = None) -> Optional[AuthSession]:
    """Return the session carried by a bearer token, or None when it is not valid."""
    try:
        claims = decode_access_token(token)
    except JWTError:
        return None
    user_id = claims.get("sub")
    if not user_id:
        return None
    return AuthSession(
        user_id=str(user_id),
        email=claims.get("email"),
        access_token=token,
        refresh_token=refresh_token,
        expires_at=claims.get("exp"),
    )
