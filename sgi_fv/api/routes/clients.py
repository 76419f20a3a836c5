from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sgi_fv.core.deps import get_settings, require_session
from sgi_fv.core.settings import AppSettings
from sgi_fv.schemas.member import MemberPage, MemberRead, TrackingUpdate
from sgi_fv.services import views
from sgi_fv.services.members import MemberService
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.workspace import WorkspaceService

router = APIRouter(prefix="/clientes", tags=["Clients"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=MemberPage,
    summary="List clients",
    description="Members in the caller's organization scope, searchable by name, protocol and e-mail.",
)
async def list_clients(
    q: Optional[str] = Query(None, description="Search term"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MemberPage:
    """Return one page of the process tracking list."""
    workspace = await WorkspaceService(provider, settings.ADMIN_EMAILS).load()
    filtered = views.search_processes(workspace.scoped_members, q)
    items, info = views.paginate(filtered, page, page_size or settings.DEFAULT_PAGE_SIZE)
    return MemberPage(
        items=[views.to_member_read(m, settings.ADMIN_EMAILS) for m in items],
        page=info,
        can_manage_access=provider.is_admin,
    )


# PUBLIC_INTERFACE
@router.patch(
    "/{member_id}/acompanhamento",
    response_model=MemberRead,
    summary="Update process tracking",
    description="Set status, deadline, notes and service manager of a client's process.",
)
async def update_tracking(
    member_id: str,
    payload: TrackingUpdate,
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MemberRead:
    managers = settings.SERVICE_MANAGERS
    if payload.service_manager and managers and payload.service_manager not in managers:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Gestor do serviço inválido.")
    service = MemberService(provider.client, settings.ADMIN_EMAILS)
    return service.to_read(await service.update_tracking(member_id, payload))
