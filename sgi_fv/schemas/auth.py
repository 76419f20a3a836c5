from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    """Internal privilege tier derived from the backend's raw role string."""
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
    MANAGER = "MANAGER"


ELEVATED_ROLES = frozenset({"admin", "owner"})


# PUBLIC_INTERFACE
def map_role(raw_role: Optional[str]) -> UserRole:
    """Map a raw org role: admin/owner are elevated, everything else is restricted."""
    if raw_role in ELEVATED_ROLES:
        return UserRole.ADMIN
    return UserRole.CLIENT


class AuthSession(BaseModel):
    """Authenticated session as seen by this service."""
    user_id: str = Field(..., description="Auth user id (JWT 'sub')")
    email: Optional[str] = Field(None)
    access_token: str = Field(..., description="Bearer access token")
    refresh_token: Optional[str] = Field(None)
    expires_at: Optional[int] = Field(None, description="Expiry as a unix timestamp")


class UserContext(BaseModel):
    """Denormalized user context (user + organization + role)."""
    id: str = Field(..., description="User id")
    email: str = Field("")
    nome_completo: str = Field("")
    org_id: str = Field("")
    org_slug: str = Field("default")
    org_name: str = Field("Sem organização")
    role: str = Field("client", description="Raw organization role as stored by the backend")
    profile: Optional[Dict[str, Any]] = Field(None)

    @property
    def app_role(self) -> UserRole:
        return map_role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.app_role is UserRole.ADMIN


class SessionRead(BaseModel):
    """Current session context returned to clients."""
    authenticated: bool = Field(...)
    user_id: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    user_context: Optional[UserContext] = Field(None)
    is_admin: bool = Field(False)


class LoginRequest(BaseModel):
    """E-mail/password sign-in payload."""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=1, description="User password")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class LogoutRequest(BaseModel):
    """Refresh token of the session being closed."""
    refresh_token: str = Field(..., description="Refresh token")


class TokenPair(BaseModel):
    """Access and refresh tokens issued by the auth service."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Refresh token")
    expires_at: Optional[int] = Field(None)


class LoginResponse(BaseModel):
    """Tokens plus the derived session context."""
    tokens: TokenPair
    session: SessionRead
    signed_in_at: datetime = Field(..., description="Server time of the sign-in (UTC)")


class Message(BaseModel):
    """Simple message response."""
    message: str = Field(...)
