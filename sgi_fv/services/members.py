from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.errors import NOT_FOUND_ERROR, BackendError
from sgi_fv.repositories.profiles import ProfileRepository
from sgi_fv.schemas.auth import UserContext
from sgi_fv.schemas.member import (
    Member,
    MemberRead,
    MemberUpdate,
    MemberUpsert,
    ServiceUnit,
    TrackingUpdate,
    map_access_level_to_role,
)
from sgi_fv.schemas.process import ProcessStatus
from sgi_fv.services.base import BaseService
from sgi_fv.services.session import user_context_to_member
from sgi_fv.services.views import to_member_read

logger = logging.getLogger(__name__)

PLACEHOLDER = "---"


def _member_not_found(member_id: str) -> BackendError:
    return BackendError(message=f"Usuário {member_id} não encontrado.", code=NOT_FOUND_ERROR)


class MemberService(BaseService):
    """Profiles as seen by the access-management and client tracking views."""

    def __init__(self, client: BackendClient, admin_emails: Iterable[str] = ()) -> None:
        super().__init__(client)
        self.repo = ProfileRepository(client)
        self.admin_emails = [e.lower() for e in admin_emails]

    def to_read(self, member: Member) -> MemberRead:
        return to_member_read(member, self.admin_emails)

    # PUBLIC_INTERFACE
    async def list_members(self) -> List[Member]:
        return await self.repo.list_members()

    # PUBLIC_INTERFACE
    async def viewer(self, context: UserContext) -> Member:
        """
        The signed-in user as a member.

        Role and organization come from the user context; the explicit access
        level, when the profile has one, is kept.
        """
        member = user_context_to_member(context)
        try:
            profile = await self.repo.get_member(context.id)
        except BackendError as error:
            logger.warning("Could not load profile of %s: %r", context.id, error)
            profile = None
        if profile is not None:
            member = member.model_copy(update={"access_level": profile.access_level})
        return member

    # PUBLIC_INTERFACE
    async def upsert_member(self, payload: MemberUpsert) -> Tuple[Member, bool]:
        """
        Create a member, or update name/role/level/hierarchy when the e-mail exists.

        Returns:
            (member, created)
        """
        values = {
            "name": payload.name,
            "role": map_access_level_to_role(payload.access_level),
            "access_level": payload.access_level,
            "hierarchy": payload.hierarchy,
        }
        existing = await self.repo.get_member_by_email(payload.email)
        if existing is not None:
            updated = await self.repo.update_member(existing.id, values)
            if updated is None:
                raise _member_not_found(existing.id)
            return updated, False

        now = datetime.now(timezone.utc)
        values.update(
            {
                "email": payload.email,
                "document_id": PLACEHOLDER,
                "tax_id": PLACEHOLDER,
                "address": PLACEHOLDER,
                "marital_status": PLACEHOLDER,
                "country": PLACEHOLDER,
                "phone": PLACEHOLDER,
                "unit": ServiceUnit.ADMINISTRATIVO,
                "status": ProcessStatus.CADASTRO,
                "protocol": f"ADM-{now.year}-ADM",
                "last_update": now,
            }
        )
        created = await self.repo.create_member(values)
        if created is None:
            raise BackendError(message="Usuário não retornado após criação.")
        return created, True

    # PUBLIC_INTERFACE
    async def update_member(self, member_id: str, payload: MemberUpdate) -> Member:
        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        if payload.access_level is not None:
            values["role"] = map_access_level_to_role(payload.access_level)
        updated = await self.repo.update_member(member_id, values)
        if updated is None:
            raise _member_not_found(member_id)
        return updated

    # PUBLIC_INTERFACE
    async def delete_member(self, member_id: str) -> None:
        if not await self.repo.delete_member(member_id):
            raise _member_not_found(member_id)

    # PUBLIC_INTERFACE
    async def update_tracking(self, member_id: str, payload: TrackingUpdate) -> Member:
        """Record status, deadline, notes and service manager, stamping the last update."""
        values = {
            "status": payload.status,
            "deadline": payload.deadline,
            "notes": payload.notes,
            "service_manager": payload.service_manager,
            "last_update": datetime.now(timezone.utc),
        }
        updated = await self.repo.update_member(member_id, values)
        if updated is None:
            raise _member_not_found(member_id)
        return updated
