from __future__ import annotations

import logging
from typing import List, Optional

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.errors import BackendError
from sgi_fv.repositories.processes import ProcessRepository
from sgi_fv.schemas.process import (
    ProcessCreate,
    ProcessDetail,
    ProcessEventRead,
    ProcessEventType,
    ProcessRead,
    ProcessStats,
    ProcessStatus,
    ProcessUpdate,
)
from sgi_fv.services.base import BaseService

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


class ProcessService(BaseService):
    """
    Domain service for processes.

    Every write that changes the life of a process appends an entry to its
    event log.
    """

    def __init__(self, client: BackendClient) -> None:
        super().__init__(client)
        self.repo = ProcessRepository(client)

    # PUBLIC_INTERFACE
    async def list_processes(self, org_id: str) -> List[ProcessRead]:
        return [ProcessRead.model_validate(row) for row in await self.repo.list_processes(org_id)]

    # PUBLIC_INTERFACE
    async def get_process_detail(self, org_id: str, process_id: str) -> Optional[ProcessDetail]:
        """Process with its events (newest first), or None when not visible."""
        row = await self.repo.get_process(org_id, process_id)
        if row is None:
            return None
        events = await self.repo.list_events(org_id, process_id)
        return ProcessDetail(
            process=ProcessRead.model_validate(row),
            events=[ProcessEventRead.model_validate(e) for e in events],
        )

    # PUBLIC_INTERFACE
    async def create_process(self, org_id: str, payload: ProcessCreate, created_by: Optional[str]) -> ProcessRead:
        """
        Create a process in 'cadastro' and record a 'registro' event.

        Parameters:
            org_id: owning organization
            payload: title plus optional client fields (blank values are stored as null)
            created_by: acting user id
        """
        row = await self.repo.insert_process(
            {
                "org_id": org_id,
                "titulo": payload.titulo,
                "status": ProcessStatus.CADASTRO.value,
                "cliente_nome": _blank_to_none(payload.cliente_nome),
                "cliente_documento": _blank_to_none(payload.cliente_documento),
                "cliente_contato": _blank_to_none(payload.cliente_contato),
                "responsavel_user_id": _blank_to_none(payload.responsavel_user_id),
            }
        )
        await self._record_event(
            org_id,
            str(row["id"]),
            ProcessEventType.REGISTRO,
            f'Processo "{payload.titulo}" criado com sucesso',
            created_by,
        )
        return ProcessRead.model_validate(row)

    # PUBLIC_INTERFACE
    async def update_process_status(
        self, org_id: str, process_id: str, status: ProcessStatus, created_by: Optional[str]
    ) -> ProcessRead:
        row = await self.repo.update_status(org_id, process_id, status)
        await self._record_event(
            org_id,
            process_id,
            ProcessEventType.STATUS_CHANGE,
            f"Status alterado para: {status.label}",
            created_by,
        )
        return ProcessRead.model_validate(row)

    # PUBLIC_INTERFACE
    async def update_process(self, org_id: str, process_id: str, payload: ProcessUpdate) -> ProcessRead:
        values = payload.model_dump(exclude_unset=True)
        row = await self.repo.update_process(org_id, process_id, values)
        return ProcessRead.model_validate(row)

    # PUBLIC_INTERFACE
    async def add_process_event(
        self,
        org_id: str,
        process_id: str,
        tipo: ProcessEventType,
        mensagem: str,
        created_by: Optional[str],
    ) -> ProcessEventRead:
        row = await self.repo.add_event(org_id, process_id, tipo, mensagem, created_by)
        if row is None:
            raise BackendError(message="Evento não retornado após criação.")
        return ProcessEventRead.model_validate(row)

    # PUBLIC_INTERFACE
    async def delete_process(self, org_id: str, process_id: str) -> None:
        await self.repo.delete_process(org_id, process_id)

    # PUBLIC_INTERFACE
    async def get_process_stats(self, org_id: str) -> ProcessStats:
        """Counts per status; a backend error yields all zeros."""
        try:
            statuses = await self.repo.list_statuses(org_id)
        except BackendError as error:
            logger.error("Error getting process stats: %r", error)
            return ProcessStats()

        counts = {status.value: 0 for status in ProcessStatus}
        for value in statuses:
            if value in counts:
                counts[value] += 1
        return ProcessStats(total=len(statuses), **counts)

    async def _record_event(
        self,
        org_id: str,
        process_id: str,
        tipo: ProcessEventType,
        mensagem: str,
        created_by: Optional[str],
    ) -> None:
        # The process write already succeeded; a failed log entry does not undo it.
        try:
            await self.repo.add_event(org_id, process_id, tipo, mensagem, created_by)
        except BackendError as error:
            logger.warning("Could not record %s event for process %s: %r", tipo.value, process_id, error)
