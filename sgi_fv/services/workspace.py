from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from sgi_fv.schemas.member import Member
from sgi_fv.schemas.organization import Organization
from sgi_fv.services.base import BaseService
from sgi_fv.services.members import MemberService
from sgi_fv.services.organizations import OrganizationService, OrganizationServiceError
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.views import management_members, scope_members

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Rows the management views are computed from, as visible to the viewer."""

    viewer: Member
    members: List[Member] = field(default_factory=list)
    organizations: List[Organization] = field(default_factory=list)
    organization_error: str = ""

    @property
    def scoped_members(self) -> List[Member]:
        return scope_members(self.members, self.viewer, self.organizations)

    @property
    def managed_members(self) -> List[Member]:
        return management_members(self.members, self.viewer, self.organizations)


class WorkspaceService(BaseService):
    """Loads members and organizations for the signed-in user."""

    def __init__(self, provider: SessionContextProvider, admin_emails: Iterable[str] = ()) -> None:
        super().__init__(provider.client)
        self.provider = provider
        self.members = MemberService(provider.client, admin_emails)
        self.organizations = OrganizationService(provider.client)

    # PUBLIC_INTERFACE
    async def load(self) -> Workspace:
        """
        Load the workspace.

        Member failures propagate. An organization failure only leaves the list
        empty and carries the translated message, so the views still render.
        """
        context = self.provider.user_context
        if context is not None:
            viewer = await self.members.viewer(context)
        else:
            viewer = Member(id=self.provider.session.user_id if self.provider.session else "")

        members = await self.members.list_members()

        try:
            listing = await self.organizations.list_organizations()
        except OrganizationServiceError as exc:
            logger.warning("[organizacoes] erro ao carregar organizações: %s", exc.message)
            return Workspace(viewer=viewer, members=members, organization_error=exc.message)

        return Workspace(viewer=viewer, members=members, organizations=listing.organizations)
