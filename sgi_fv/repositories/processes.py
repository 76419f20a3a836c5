from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sgi_fv.backend.errors import BackendError
from sgi_fv.schemas.process import ProcessEventType, ProcessStatus

from .base import BaseRepository

logger = logging.getLogger(__name__)

PROCESSES_TABLE = "processes"
PROCESS_EVENTS_TABLE = "process_events"


class ProcessRepository(BaseRepository):
    """Repository for processes and their event log, always filtered by org_id."""

    async def list_processes(self, org_id: str) -> List[dict]:
        query = (
            self.table(PROCESSES_TABLE)
            .select("*")
            .eq("org_id", org_id)
            .order("created_at", desc=True)
        )
        try:
            return await self.run(query)
        except BackendError as error:
            logger.error("Error listing processes: %r", error)
            raise

    async def get_process(self, org_id: str, process_id: str) -> Optional[dict]:
        """Return the process or None; lookup failures are logged, not raised."""
        query = (
            self.table(PROCESSES_TABLE)
            .select("*")
            .eq("org_id", org_id)
            .eq("id", process_id)
            .limit(1)
        )
        try:
            return await self.first(query)
        except BackendError as error:
            logger.error("Error getting process: %r", error)
            return None

    async def list_statuses(self, org_id: str) -> List[Optional[str]]:
        query = self.table(PROCESSES_TABLE).select("status").eq("org_id", org_id)
        rows = await self.run(query)
        return [row.get("status") for row in rows]

    async def insert_process(self, values: Dict[str, Any]) -> dict:
        row = await self.first(self.table(PROCESSES_TABLE).insert(values))
        if row is None:
            raise BackendError(message="Processo não retornado após criação.")
        return row

    async def update_process(self, org_id: str, process_id: str, values: Dict[str, Any]) -> dict:
        query = (
            self.table(PROCESSES_TABLE)
            .update(values)
            .eq("org_id", org_id)
            .eq("id", process_id)
        )
        try:
            row = await self.first(query)
        except BackendError as error:
            logger.error("Error updating process: %r", error)
            raise
        if row is None:
            raise BackendError(message="Processo não encontrado.", code="PGRST116")
        return row

    async def update_status(self, org_id: str, process_id: str, status: ProcessStatus) -> dict:
        return await self.update_process(org_id, process_id, {"status": status.value})

    async def delete_process(self, org_id: str, process_id: str) -> None:
        query = (
            self.table(PROCESSES_TABLE)
            .delete()
            .eq("org_id", org_id)
            .eq("id", process_id)
        )
        try:
            await self.run(query)
        except BackendError as error:
            logger.error("Error deleting process: %r", error)
            raise

    # Events
    async def list_events(self, org_id: str, process_id: str) -> List[dict]:
        query = (
            self.table(PROCESS_EVENTS_TABLE)
            .select("*")
            .eq("org_id", org_id)
            .eq("process_id", process_id)
            .order("created_at", desc=True)
        )
        try:
            return await self.run(query)
        except BackendError as error:
            logger.error("Error listing process events: %r", error)
            raise

    async def add_event(
        self,
        org_id: str,
        process_id: str,
        tipo: ProcessEventType,
        mensagem: str,
        created_by: Optional[str],
    ) -> Optional[dict]:
        values = {
            "org_id": org_id,
            "process_id": process_id,
            "tipo": tipo.value,
            "mensagem": mensagem,
            "created_by": created_by,
        }
        return await self.first(self.table(PROCESS_EVENTS_TABLE).insert(values))
