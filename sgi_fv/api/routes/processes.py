from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sgi_fv.core.deps import get_settings, require_admin, require_org, require_session
from sgi_fv.core.settings import AppSettings
from sgi_fv.core.text import matches_term
from sgi_fv.schemas.common import MessageResponse
from sgi_fv.schemas.process import (
    ProcessCreate,
    ProcessDetail,
    ProcessEventCreate,
    ProcessEventRead,
    ProcessPage,
    ProcessRead,
    ProcessStatusUpdate,
    ProcessUpdate,
)
from sgi_fv.services.processes import ProcessService
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.views import paginate

router = APIRouter(prefix="/processos", tags=["Processes"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ProcessPage,
    summary="List processes",
    description="Processes of the caller's organization, newest first, with optional search and pagination.",
)
async def list_processes(
    q: Optional[str] = Query(None, description="Search in title, protocol and client name"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> ProcessPage:
    """Return one page of the organization's processes."""
    org_id = require_org(provider)
    processes = await ProcessService(provider.client).list_processes(org_id)
    filtered = [p for p in processes if matches_term(q, p.titulo, p.protocolo, p.cliente_nome)]
    items, info = paginate(filtered, page, page_size or settings.DEFAULT_PAGE_SIZE, noun="processos")
    return ProcessPage(items=items, page=info)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ProcessRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create process",
    description="Create a process in 'cadastro' and record its registration event.",
)
async def create_process(
    payload: ProcessCreate,
    provider: SessionContextProvider = Depends(require_admin),
) -> ProcessRead:
    """Create a process for the caller's organization."""
    org_id = require_org(provider)
    return await ProcessService(provider.client).create_process(org_id, payload, provider.session.user_id)


# PUBLIC_INTERFACE
@router.get(
    "/{process_id}",
    response_model=ProcessDetail,
    summary="Get process",
    description="Process with its event log (newest first).",
)
async def get_process(
    process_id: str,
    provider: SessionContextProvider = Depends(require_session),
) -> ProcessDetail:
    """Return a process and its events, or 404 when it is not visible."""
    org_id = require_org(provider)
    detail = await ProcessService(provider.client).get_process_detail(org_id, process_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Processo não encontrado.")
    return detail


# PUBLIC_INTERFACE
@router.patch(
    "/{process_id}",
    response_model=ProcessRead,
    summary="Update process",
    description="Edit title, client fields or the responsible user.",
)
async def update_process(
    process_id: str,
    payload: ProcessUpdate,
    provider: SessionContextProvider = Depends(require_session),
) -> ProcessRead:
    """Apply the provided fields to the process."""
    org_id = require_org(provider)
    return await ProcessService(provider.client).update_process(org_id, process_id, payload)


# PUBLIC_INTERFACE
@router.patch(
    "/{process_id}/status",
    response_model=ProcessRead,
    summary="Change process status",
    description="Move the process to another status and record a status_change event.",
)
async def update_process_status(
    process_id: str,
    payload: ProcessStatusUpdate,
    provider: SessionContextProvider = Depends(require_session),
) -> ProcessRead:
    org_id = require_org(provider)
    return await ProcessService(provider.client).update_process_status(
        org_id, process_id, payload.status, provider.session.user_id
    )


# PUBLIC_INTERFACE
@router.post(
    "/{process_id}/eventos",
    response_model=ProcessEventRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add process event",
    description="Append an observation (or other typed entry) to the process log.",
)
async def add_process_event(
    process_id: str,
    payload: ProcessEventCreate,
    provider: SessionContextProvider = Depends(require_session),
) -> ProcessEventRead:
    org_id = require_org(provider)
    return await ProcessService(provider.client).add_process_event(
        org_id, process_id, payload.tipo, payload.mensagem, provider.session.user_id
    )


# PUBLIC_INTERFACE
@router.delete(
    "/{process_id}",
    response_model=MessageResponse,
    summary="Delete process",
    description="Delete a process of the caller's organization.",
)
async def delete_process(
    process_id: str,
    provider: SessionContextProvider = Depends(require_admin),
) -> MessageResponse:
    org_id = require_org(provider)
    await ProcessService(provider.client).delete_process(org_id, process_id)
    return MessageResponse(message="Processo excluído com sucesso.")
