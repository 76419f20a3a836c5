from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from sgi_fv.core.deps import get_settings, require_admin, require_session
from sgi_fv.core.settings import AppSettings
from sgi_fv.schemas.common import MessageResponse
from sgi_fv.schemas.organization import (
    OrganizationCreate,
    OrganizationInsight,
    OrganizationList,
    OrganizationRead,
    OrganizationStatusUpdate,
)
from sgi_fv.services import views
from sgi_fv.services.organizations import OrganizationService, OrganizationServiceError
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.workspace import WorkspaceService

router = APIRouter(prefix="/organizacoes", tags=["Organizations"])


def _http_error(exc: OrganizationServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=OrganizationList,
    summary="List organizations",
    description="Organizations found in the first candidate schema holding the organizations table, sorted by name.",
)
async def list_organizations(
    provider: SessionContextProvider = Depends(require_session),
) -> OrganizationList:
    try:
        return await OrganizationService(provider.client).list_organizations()
    except OrganizationServiceError as exc:
        raise _http_error(exc)


# PUBLIC_INTERFACE
@router.get(
    "/insights",
    response_model=List[OrganizationInsight],
    summary="Organization insights",
    description="Clients and clients with a process per organization, largest first.",
)
async def organization_insights(
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> List[OrganizationInsight]:
    workspace = await WorkspaceService(provider, settings.ADMIN_EMAILS).load()
    if workspace.organization_error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=workspace.organization_error)
    return views.organization_insights(workspace.organizations, workspace.members, settings.ADMIN_EMAILS)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OrganizationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="Insert an organization, probing the candidate schemas and name columns.",
)
async def create_organization(
    payload: OrganizationCreate,
    provider: SessionContextProvider = Depends(require_admin),
) -> OrganizationRead:
    try:
        return await OrganizationService(provider.client).create_organization(payload.name)
    except OrganizationServiceError as exc:
        raise _http_error(exc)


# PUBLIC_INTERFACE
@router.delete(
    "/{organization_id}",
    response_model=MessageResponse,
    summary="Delete organization",
    description="Delete an organization. The central organization cannot be deleted.",
)
async def delete_organization(
    organization_id: str,
    provider: SessionContextProvider = Depends(require_admin),
) -> MessageResponse:
    try:
        return await OrganizationService(provider.client).delete_organization(organization_id)
    except OrganizationServiceError as exc:
        raise _http_error(exc)


# PUBLIC_INTERFACE
@router.patch(
    "/{organization_id}/status",
    response_model=OrganizationRead,
    summary="Toggle organization status",
    description="Activate or deactivate an organization; without a body the current state is flipped.",
)
async def toggle_organization_status(
    organization_id: str,
    payload: Optional[OrganizationStatusUpdate] = None,
    provider: SessionContextProvider = Depends(require_admin),
) -> OrganizationRead:
    try:
        return await OrganizationService(provider.client).toggle_organization_status(
            organization_id, payload.active if payload is not None else None
        )
    except OrganizationServiceError as exc:
        raise _http_error(exc)
