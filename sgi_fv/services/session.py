"""
Session/context bootstrap.

Maps a backend auth session to the application-level context (user,
organization and role). The provider is a scoped object: it is started once,
follows auth-state notifications while alive and unsubscribes on close.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set, Union

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.errors import BackendError
from sgi_fv.repositories.user_context import UserContextRepository
from sgi_fv.schemas.auth import AuthSession, SessionRead, UserContext, UserRole
from sgi_fv.schemas.member import Member, ServiceUnit
from sgi_fv.schemas.process import ProcessStatus

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


# PUBLIC_INTERFACE
async def fetch_user_context(client: BackendClient, user_id: str) -> Optional[UserContext]:
    """Load the user context; any backend error or missing row yields None."""
    try:
        context = await UserContextRepository(client).get_user_context(user_id)
    except BackendError as error:
        logger.warning("Could not fetch user context: %r", error)
        return None
    if context is None:
        logger.warning("Could not fetch user context: no row for user %s", user_id)
    return context


def session_from_backend(raw: Any) -> Optional[AuthSession]:
    """Convert the auth client's session object into an AuthSession."""
    if raw is None:
        return None
    user = getattr(raw, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        return None
    return AuthSession(
        user_id=str(user_id),
        email=getattr(user, "email", None),
        access_token=raw.access_token,
        refresh_token=getattr(raw, "refresh_token", None),
        expires_at=getattr(raw, "expires_at", None),
    )


class SessionContextProvider:
    """
    Holds the session and user context for one client.

    Usage:
        async with SessionContextProvider(client) as provider:
            if provider.is_admin:
                ...

    Failure policy: any error while bootstrapping degrades to a null context
    (unauthenticated/unprivileged) instead of raising.
    """

    def __init__(self, client: BackendClient, session: Optional[AuthSession] = None) -> None:
        self.client = client
        self.session: Optional[AuthSession] = None
        self.user_context: Optional[UserContext] = None
        self.loading = True
        self._initial_session = session
        self._subscription = None
        self._pending: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "SessionContextProvider":
        await self.start(self._initial_session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_admin(self) -> bool:
        return self.user_context is not None and self.user_context.is_admin

    # PUBLIC_INTERFACE
    async def start(self, session: Optional[AuthSession] = None) -> None:
        """
        Resolve the initial session (given, or fetched from the auth service),
        load its context and subscribe to auth-state changes.
        """
        try:
            if session is None:
                session = session_from_backend(await self.client.auth.get_session())
            self.session = session
            if session is not None:
                await self._load_context(session.user_id)
        except Exception:
            logger.exception("Error initializing auth")
        finally:
            self.loading = False

        if self._subscription is None:
            self._subscription = self.client.auth.on_auth_state_change(self._on_auth_state_change)

    async def _load_context(self, user_id: str) -> Optional[UserContext]:
        self.user_context = await fetch_user_context(self.client, user_id)
        return self.user_context

    def _on_auth_state_change(self, event: str, session: Any) -> None:
        logger.info("Auth state change: %s", event)
        self.session = session_from_backend(session)

        if event == SIGNED_IN and self.session is not None:
            task = asyncio.get_running_loop().create_task(self._reload_context(self.session.user_id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        elif event == SIGNED_OUT:
            self.user_context = None

    async def _reload_context(self, user_id: str) -> None:
        try:
            await self._load_context(user_id)
        except Exception:
            logger.exception("Error reloading user context after sign-in")
            self.user_context = None

    # PUBLIC_INTERFACE
    async def wait_pending(self) -> None:
        """Wait for context re-derivations triggered by auth notifications."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # PUBLIC_INTERFACE
    async def refresh_context(self) -> Optional[UserContext]:
        if self.session is not None:
            return await self._load_context(self.session.user_id)
        return None

    # PUBLIC_INTERFACE
    async def sign_out(self) -> None:
        await self.client.auth.sign_out()
        self.session = None
        self.user_context = None

    # PUBLIC_INTERFACE
    async def close(self) -> None:
        await self.wait_pending()
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def to_read(self) -> SessionRead:
        return SessionRead(
            authenticated=self.session is not None,
            user_id=self.session.user_id if self.session else None,
            email=self.session.email if self.session else None,
            user_context=self.user_context,
            is_admin=self.is_admin,
        )


# PUBLIC_INTERFACE
def user_context_to_member(ctx: UserContext) -> Member:
    """Project a user context onto the member shape used by the management views."""
    profile = ctx.profile or {}
    return Member(
        id=ctx.id,
        name=ctx.nome_completo,
        email=ctx.email,
        role=UserRole.ADMIN if ctx.is_admin else UserRole.CLIENT,
        document_id=profile.get("documento_identidade") or "",
        tax_id=profile.get("nif_cpf") or "",
        address=profile.get("endereco") or "",
        marital_status=profile.get("estado_civil") or "",
        country=profile.get("pais") or "",
        phone=profile.get("phone") or "",
        unit=ServiceUnit.JURIDICO,
        status=ProcessStatus.CADASTRO,
        protocol="",
        registration_date=profile.get("created_at"),
        organization_id=ctx.org_id or None,
        organization_name=ctx.org_name,
    )


# PUBLIC_INTERFACE
def is_admin_user(user: Union[UserContext, Member]) -> bool:
    if isinstance(user, UserContext):
        return user.is_admin
    return user.role is UserRole.ADMIN
