from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from sgi_fv.backend.client import BackendClient, backend_client
from sgi_fv.core.logging import bind_org_id
from sgi_fv.core.security import session_from_token
from sgi_fv.core.settings import AppSettings, get_app_settings
from sgi_fv.services.session import SessionContextProvider

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs); tokens are issued by the backend's auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# PUBLIC_INTERFACE
def get_settings() -> AppSettings:
    """Application settings as a dependency (overridable in tests)."""
    return get_app_settings()


# PUBLIC_INTERFACE
async def get_access_token(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Bearer token of the request, if any."""
    return token or None


# PUBLIC_INTERFACE
async def get_backend_client(
    token: Optional[str] = Depends(get_access_token),
) -> AsyncGenerator[BackendClient, None]:
    """
    Yield a backend client scoped to this request.

    With a bearer token every query runs under that user's row-level security;
    without one it runs as the anonymous role.
    """
    async with backend_client(token) as client:
        yield client


# PUBLIC_INTERFACE
async def get_session_context(
    request: Request,
    token: Optional[str] = Depends(get_access_token),
    client: BackendClient = Depends(get_backend_client),
) -> AsyncGenerator[SessionContextProvider, None]:
    """
    Yield the session/context provider for the request.

    The context is derived once per request. A token that does not validate, or
    whose user context cannot be loaded, leaves the provider unauthenticated or
    unprivileged instead of failing the request here.
    """
    session = session_from_token(token) if token else None
    async with SessionContextProvider(client, session=session) as provider:
        org_id = provider.user_context.org_id if provider.user_context else None
        bind_org_id(org_id)
        request.state.org_id = org_id or None
        yield provider


# PUBLIC_INTERFACE
async def require_session(
    provider: SessionContextProvider = Depends(get_session_context),
) -> SessionContextProvider:
    """Ensure the request carries a valid session."""
    if provider.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return provider


# PUBLIC_INTERFACE
async def require_admin(
    provider: SessionContextProvider = Depends(require_session),
) -> SessionContextProvider:
    """Ensure the session maps to an elevated (admin/owner) role."""
    if not provider.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a administradores.",
        )
    return provider


# PUBLIC_INTERFACE
def require_org(provider: SessionContextProvider) -> str:
    """Organization id of the session; a session without organization cannot reach org-scoped data."""
    if provider.user_context is None or not provider.user_context.org_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário sem organização vinculada.",
        )
    return provider.user_context.org_id
