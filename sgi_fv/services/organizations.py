from __future__ import annotations

import logging
from typing import Optional

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.config import BackendSettings
from sgi_fv.backend.errors import BackendError, backend_error_status
from sgi_fv.repositories.organizations import OrganizationRepository, is_central_organization
from sgi_fv.schemas.common import MessageResponse
from sgi_fv.schemas.organization import Organization, OrganizationList, OrganizationRead
from sgi_fv.services.base import BaseService

logger = logging.getLogger(__name__)


class OrganizationServiceError(Exception):
    """A user-facing organization failure with the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400, error: Optional[BackendError] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error


class OrganizationService(BaseService):
    """
    Organization management on top of the schema/column discovering repository.

    The central organization is protected: it can be neither deleted nor
    deactivated.
    """

    def __init__(self, client: BackendClient, settings: Optional[BackendSettings] = None) -> None:
        super().__init__(client)
        self.repo = OrganizationRepository(client, settings)

    def _fail(self, error: Optional[BackendError], default_status: int = 400) -> OrganizationServiceError:
        status_code = backend_error_status(error) if error is not None else default_status
        return OrganizationServiceError(self.repo.build_error_message(error), status_code, error)

    # PUBLIC_INTERFACE
    async def list_organizations(self) -> OrganizationList:
        result = await self.repo.load_organizations()
        if result.error is not None:
            logger.warning("Error loading organizations: %r", result.error)
            raise self._fail(result.error)
        return OrganizationList(organizations=result.organizations, resolved_schema=result.resolved_schema)

    # PUBLIC_INTERFACE
    async def create_organization(self, name: str) -> OrganizationRead:
        if not (name or "").strip():
            raise OrganizationServiceError("Informe o nome da organização.")

        result = await self.repo.create_organization(name)
        if result.error is not None or result.organization is None:
            logger.error("Error creating organization: %r", result.error)
            raise self._fail(result.error)
        return OrganizationRead(
            organization=result.organization,
            resolved_schema=result.resolved_schema,
            message="Organização cadastrada com sucesso.",
        )

    async def _get_listed(self, organization_id: str) -> tuple[Organization, bool]:
        """Find an organization among the visible ones and tell whether it is the central one."""
        listing = await self.list_organizations()
        central = next((o for o in listing.organizations if is_central_organization(o)), None)
        target = next((o for o in listing.organizations if o.id == organization_id), None)
        if target is None:
            raise OrganizationServiceError("Organização não encontrada.", 404)
        return target, central is not None and central.id == target.id

    # PUBLIC_INTERFACE
    async def delete_organization(self, organization_id: str) -> MessageResponse:
        _, is_central = await self._get_listed(organization_id)
        if is_central:
            raise OrganizationServiceError("A organização central (slug default) não pode ser excluída.")

        result = await self.repo.delete_organization(organization_id)
        if result.error is not None or not result.deleted:
            logger.warning("Organization %s not deleted: %r", organization_id, result.error)
            raise self._fail(result.error)
        return MessageResponse(message="Organização excluída com sucesso.")

    # PUBLIC_INTERFACE
    async def toggle_organization_status(
        self, organization_id: str, active: Optional[bool] = None
    ) -> OrganizationRead:
        """
        Activate or deactivate an organization.

        Without an explicit target the current state is flipped; an organization
        with no known state is deactivated.
        """
        organization, is_central = await self._get_listed(organization_id)
        if is_central:
            raise OrganizationServiceError("A organização central não pode ser desativada.")

        if active is None:
            active = False if organization.active is None else not organization.active

        result = await self.repo.update_organization_active_status(organization_id, active)
        if result.error is not None or not result.updated:
            logger.warning("Organization %s status not updated: %r", organization_id, result.error)
            raise self._fail(result.error)

        return OrganizationRead(
            organization=organization.model_copy(update={"active": active}),
            resolved_schema=result.resolved_schema,
            message=f"Organização {'ativada' if active else 'inativada'} com sucesso.",
        )
