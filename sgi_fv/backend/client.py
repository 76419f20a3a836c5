from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from postgrest import AsyncPostgrestClient
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from .config import get_backend_settings


class BackendClient:
    """
    Request-scoped handle over the async backend client.

    Data queries go through one PostgREST client per schema, created on first
    use and reused until `aclose()`. Each of them owns an HTTP connection pool,
    so `aclose()` must run once the request is done; `backend_client` does it.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.supabase = client
        self._schemas: Dict[str, AsyncPostgrestClient] = {}

    @property
    def auth(self):
        """The backend auth client (sign-in, refresh, sign-out, state notifications)."""
        return self.supabase.auth

    def schema(self, name: str) -> AsyncPostgrestClient:
        """PostgREST client bound to `name`, carrying the current bearer credential."""
        # options.headers follows sign-in, refresh and sign-out notifications
        headers = dict(self.supabase.options.headers)
        rest = self._schemas.get(name)
        if rest is None:
            rest = AsyncPostgrestClient(str(self.supabase.rest_url), schema=name, headers=headers)
            self._schemas[name] = rest
        else:
            rest.session.headers.update(headers)
        return rest

    async def aclose(self) -> None:
        """Close every schema client and the auth client's HTTP connections."""
        schemas = list(self._schemas.values())
        self._schemas.clear()
        try:
            for rest in schemas:
                await rest.aclose()
        finally:
            await self.supabase.auth.close()


# PUBLIC_INTERFACE
async def create_backend_client(access_token: Optional[str] = None) -> AsyncClient:
    """
    Create an async client for the hosted backend.

    When an access token is provided every data request carries it as the bearer
    credential, so row-level security policies evaluate as that user. Without it
    requests run as the anonymous role.
    """
    settings = get_backend_settings()
    url, key = settings.require_connection()
    headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
    options = AsyncClientOptions(
        headers=headers,
        auto_refresh_token=False,
        persist_session=False,
    )
    return await acreate_client(url, key, options=options)


# PUBLIC_INTERFACE
@asynccontextmanager
async def backend_client(access_token: Optional[str] = None) -> AsyncGenerator[BackendClient, None]:
    """
    Async context manager yielding a request-scoped backend client.

    Usage:
        async with backend_client(token) as client:
            # all queries inside run under the token's row-level security
            ...

    Every HTTP client opened through the handle is closed on exit.
    """
    handle = BackendClient(await create_backend_client(access_token))
    try:
        yield handle
    finally:
        await handle.aclose()
