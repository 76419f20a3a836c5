from __future__ import annotations

from typing import Any, Dict, Optional

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.config import get_backend_settings
from sgi_fv.schemas.auth import UserContext

from .base import BaseRepository


def row_to_user_context(row: Dict[str, Any]) -> UserContext:
    """Map a row of the user context view, filling the documented defaults."""
    return UserContext(
        id=str(row["user_id"]),
        email=row.get("email") or "",
        nome_completo=row.get("nome_completo") or "",
        org_id=str(row.get("org_id") or ""),
        org_slug=row.get("org_slug") or "default",
        org_name=row.get("org_name") or "Sem organização",
        role=row.get("org_role") or "client",
        profile=None,
    )


class UserContextRepository(BaseRepository):
    """Reads the denormalized user context view (user, organization and role)."""

    def __init__(self, client: BackendClient, view: Optional[str] = None) -> None:
        super().__init__(client)
        self.view = view or get_backend_settings().USER_CONTEXT_VIEW

    async def get_user_context(self, user_id: str) -> Optional[UserContext]:
        query = self.table(self.view).select("*").eq("user_id", user_id).limit(1)
        row = await self.first(query)
        return row_to_user_context(row) if row else None
