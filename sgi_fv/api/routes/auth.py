from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import AuthApiError

from sgi_fv.backend.client import BackendClient
from sgi_fv.core.deps import get_backend_client, require_session
from sgi_fv.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    Message,
    RefreshRequest,
    SessionRead,
    TokenPair,
)
from sgi_fv.services.session import SessionContextProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_pair(session) -> TokenPair:
    return TokenPair(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Sign in with e-mail and password against the auth service and return tokens plus the derived session context.",
)
async def login(
    payload: LoginRequest,
    client: BackendClient = Depends(get_backend_client),
) -> LoginResponse:
    """Authenticate the user; the user context is derived from the sign-in notification."""
    async with SessionContextProvider(client) as provider:
        try:
            response = await client.auth.sign_in_with_password(
                {"email": payload.email, "password": payload.password}
            )
        except AuthApiError as exc:
            logger.info("Sign-in rejected: %s", exc.message)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas.")

        if response.session is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas.")

        await provider.wait_pending()
        return LoginResponse(
            tokens=_token_pair(response.session),
            session=provider.to_read(),
            signed_in_at=datetime.now(tz=timezone.utc),
        )


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Exchange a refresh token for a new token pair.",
)
async def refresh_token(
    payload: RefreshRequest,
    client: BackendClient = Depends(get_backend_client),
) -> TokenPair:
    """Refresh the session with the auth service."""
    try:
        response = await client.auth.refresh_session(payload.refresh_token)
    except AuthApiError as exc:
        logger.info("Refresh rejected: %s", exc.message)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada.")

    if response.session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada.")
    return _token_pair(response.session)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=Message,
    summary="Logout",
    description="Sign the current session out of the auth service.",
)
async def logout(
    payload: LogoutRequest,
    provider: SessionContextProvider = Depends(require_session),
) -> Message:
    """Revoke the session identified by the bearer token and refresh token."""
    try:
        await provider.client.auth.set_session(provider.session.access_token, payload.refresh_token)
    except AuthApiError as exc:
        logger.info("Session could not be restored for logout: %s", exc.message)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada.")

    await provider.wait_pending()
    await provider.sign_out()
    return Message(message="Sessão encerrada.")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=SessionRead,
    summary="Current session",
    description="Return the authenticated user, organization and role of the bearer token.",
)
async def me(provider: SessionContextProvider = Depends(require_session)) -> SessionRead:
    """Return the session context."""
    return provider.to_read()
