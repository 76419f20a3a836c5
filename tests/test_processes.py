"""
Tests for the process service: writes, event logging and statistics.
"""

import pytest

from sgi_fv.backend.errors import BackendError
from sgi_fv.schemas.process import (
    ProcessCreate,
    ProcessEventType,
    ProcessStatus,
    ProcessUpdate,
)
from sgi_fv.services.processes import ProcessService
from tests.fakes import FakeClient, api_error


def process_row(**overrides):
    row = {
        "id": "p1",
        "org_id": "org-1",
        "titulo": "Visto de residência",
        "protocolo": "FV-2024-001",
        "status": "cadastro",
        "cliente_nome": "Carlos",
    }
    row.update(overrides)
    return row


def event_row(**overrides):
    row = {
        "id": "e1",
        "org_id": "org-1",
        "process_id": "p1",
        "tipo": "registro",
        "mensagem": "criado",
    }
    row.update(overrides)
    return row


# ============================================================================
# WRITES
# ============================================================================


class TestCreateProcess:
    @pytest.mark.asyncio
    async def test_creates_in_cadastro_and_logs_registration(self):
        client = FakeClient()
        client.on("public", "processes", "insert", [process_row()])
        client.on("public", "process_events", "insert", [event_row()])

        payload = ProcessCreate(titulo="Visto de residência", cliente_nome="Carlos", cliente_documento="")
        process = await ProcessService(client).create_process("org-1", payload, "user-1")

        assert process.status is ProcessStatus.CADASTRO
        insert = client.calls_to("processes", "insert")[0]
        assert insert.payload["status"] == "cadastro"
        assert insert.payload["org_id"] == "org-1"
        assert insert.payload["cliente_documento"] is None

        event = client.calls_to("process_events", "insert")[0].payload
        assert event["tipo"] == "registro"
        assert event["mensagem"] == 'Processo "Visto de residência" criado com sucesso'
        assert event["process_id"] == "p1"
        assert event["created_by"] == "user-1"

    @pytest.mark.asyncio
    async def test_event_failure_does_not_fail_creation(self):
        client = FakeClient()
        client.on("public", "processes", "insert", [process_row()])
        client.on("public", "process_events", "insert", api_error("42501", "denied"))

        process = await ProcessService(client).create_process("org-1", ProcessCreate(titulo="X"), None)

        assert process.id == "p1"

    @pytest.mark.asyncio
    async def test_insert_without_row_raises(self):
        client = FakeClient()
        with pytest.raises(BackendError):
            await ProcessService(client).create_process("org-1", ProcessCreate(titulo="X"), None)
        assert client.calls_to("process_events") == []


class TestStatusAndEdits:
    @pytest.mark.asyncio
    async def test_status_change_is_logged_with_label(self):
        client = FakeClient()
        client.on("public", "processes", "update", [process_row(status="analise")])

        process = await ProcessService(client).update_process_status("org-1", "p1", ProcessStatus.ANALISE, "user-1")

        assert process.status is ProcessStatus.ANALISE
        update = client.calls_to("processes", "update")[0]
        assert update.payload == {"status": "analise"}
        assert update.filters == [("org_id", "org-1"), ("id", "p1")]
        event = client.calls_to("process_events", "insert")[0].payload
        assert event["tipo"] == "status_change"
        assert event["mensagem"] == "Status alterado para: Análise"

    @pytest.mark.asyncio
    async def test_update_sends_only_given_fields(self):
        client = FakeClient()
        client.on("public", "processes", "update", [process_row(titulo="Novo")])

        await ProcessService(client).update_process("org-1", "p1", ProcessUpdate(titulo="Novo"))

        assert client.calls_to("processes", "update")[0].payload == {"titulo": "Novo"}

    @pytest.mark.asyncio
    async def test_update_missing_process(self):
        client = FakeClient()
        with pytest.raises(BackendError) as exc:
            await ProcessService(client).update_process("org-1", "nope", ProcessUpdate(titulo="Novo"))
        assert exc.value.code == "PGRST116"

    @pytest.mark.asyncio
    async def test_add_event(self):
        client = FakeClient()
        client.on("public", "process_events", "insert", [event_row(tipo="observacao", mensagem="Ligar amanhã")])

        event = await ProcessService(client).add_process_event(
            "org-1", "p1", ProcessEventType.OBSERVACAO, "Ligar amanhã", "user-1"
        )

        assert event.tipo is ProcessEventType.OBSERVACAO
        assert event.mensagem == "Ligar amanhã"


# ============================================================================
# READS
# ============================================================================


class TestReads:
    @pytest.mark.asyncio
    async def test_detail_includes_events(self):
        client = FakeClient()
        client.on("public", "processes", "select", [process_row()])
        client.on("public", "process_events", "select", [event_row(id="e2"), event_row(id="e1")])

        detail = await ProcessService(client).get_process_detail("org-1", "p1")

        assert detail.process.id == "p1"
        assert [e.id for e in detail.events] == ["e2", "e1"]

    @pytest.mark.asyncio
    async def test_detail_not_found(self):
        assert await ProcessService(FakeClient()).get_process_detail("org-1", "p1") is None

    @pytest.mark.asyncio
    async def test_list_error_propagates(self):
        client = FakeClient().on("public", "processes", "select", api_error("42501", "denied"))
        with pytest.raises(BackendError):
            await ProcessService(client).list_processes("org-1")


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_per_status(self):
        client = FakeClient()
        client.on(
            "public",
            "processes",
            "select",
            [
                {"status": "cadastro"},
                {"status": "cadastro"},
                {"status": "triagem"},
                {"status": "concluido"},
                {"status": "arquivado"},
            ],
        )

        stats = await ProcessService(client).get_process_stats("org-1")

        assert stats.total == 5
        assert stats.cadastro == 2
        assert stats.triagem == 1
        assert stats.analise == 0
        assert stats.concluido == 1
        assert stats.in_progress == 3

    @pytest.mark.asyncio
    async def test_error_yields_zeros(self):
        client = FakeClient().on("public", "processes", "select", api_error("PGRST205", "schema cache"))

        stats = await ProcessService(client).get_process_stats("org-1")

        assert stats.model_dump() == {"total": 0, "cadastro": 0, "triagem": 0, "analise": 0, "concluido": 0}
