from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from sgi_fv.core.deps import get_settings, require_session
from sgi_fv.core.settings import AppSettings
from sgi_fv.schemas.common import MessageResponse
from sgi_fv.schemas.member import MemberPage, MemberRead, MemberUpdate, MemberUpsert
from sgi_fv.services import views
from sgi_fv.services.members import MemberService
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.workspace import WorkspaceService

router = APIRouter(prefix="/configuracoes/membros", tags=["Members"])

CHANGE_ACCESS_DENIED = "Somente o Administrador Geral pode alterar nível de acesso de usuários."
DELETE_DENIED = "Somente o Administrador Geral pode excluir usuários administrativos."


def _ensure_can_manage(provider: SessionContextProvider, message: str) -> None:
    if not provider.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=MemberPage,
    summary="List members",
    description="Access-management list, searchable by name, e-mail and access level.",
)
async def list_members(
    q: Optional[str] = Query(None, description="Search term"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, description="One of the configured page sizes"),
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MemberPage:
    """Return one page of members with their effective access level."""
    size = page_size if page_size in settings.PAGE_SIZE_OPTIONS else settings.DEFAULT_PAGE_SIZE
    workspace = await WorkspaceService(provider, settings.ADMIN_EMAILS).load()
    filtered = views.search_members(workspace.managed_members, q, settings.ADMIN_EMAILS)
    items, info = views.paginate(filtered, page, size)
    return MemberPage(
        items=[views.to_member_read(m, settings.ADMIN_EMAILS) for m in items],
        page=info,
        can_manage_access=provider.is_admin,
    )


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=MemberRead,
    summary="Define member",
    description="Create a member, or update name, access level and hierarchy when the e-mail already exists.",
)
async def upsert_member(
    payload: MemberUpsert,
    response: Response,
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MemberRead:
    _ensure_can_manage(provider, CHANGE_ACCESS_DENIED)
    service = MemberService(provider.client, settings.ADMIN_EMAILS)
    member, created = await service.upsert_member(payload)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return service.to_read(member)


# PUBLIC_INTERFACE
@router.patch(
    "/{member_id}",
    response_model=MemberRead,
    summary="Edit member access",
    description="Change name, access level (and the derived role) and hierarchy.",
)
async def update_member(
    member_id: str,
    payload: MemberUpdate,
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> MemberRead:
    _ensure_can_manage(provider, CHANGE_ACCESS_DENIED)
    service = MemberService(provider.client, settings.ADMIN_EMAILS)
    return service.to_read(await service.update_member(member_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{member_id}",
    response_model=MessageResponse,
    summary="Delete member",
)
async def delete_member(
    member_id: str,
    provider: SessionContextProvider = Depends(require_session),
) -> MessageResponse:
    _ensure_can_manage(provider, DELETE_DENIED)
    await MemberService(provider.client).delete_member(member_id)
    return MessageResponse(message="Usuário excluído com sucesso.")
