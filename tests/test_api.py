"""
API tests: routes, dependencies and the error envelope, over a scripted backend.
"""

from typing import Any, Dict, List
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from supabase import AuthApiError

from sgi_fv.api.generate_openapi import build_openapi_schema
from sgi_fv.api.main import app
from sgi_fv.api.routes.members import CHANGE_ACCESS_DENIED, DELETE_DENIED
from sgi_fv.core.logging import correlation_id_var
from tests.conftest import context_row, make_token
from tests.fakes import api_error, auth_session

ORGANIZATIONS = [
    {"id": "org-1", "nome": "Organização Padrão", "slug": "default", "active": True},
    {"id": "org-2", "nome": "Filial", "slug": "filial"},
]

PROFILES = [
    {
        "id": "user-1",
        "nome_completo": "Ana Souza",
        "email": "user@example.com",
        "role": "admin",
        "org_id": "org-1",
        "status": "concluido",
    },
    {
        "id": "c1",
        "nome_completo": "Carlos",
        "email": "c1@example.com",
        "role": "client",
        "org_id": "org-2",
        "status": "TRIAGEM",
        "protocolo": "FV-2024-001",
    },
    {
        "id": "c2",
        "nome_completo": "Dora",
        "email": "c2@example.com",
        "role": "client",
        "org_id": "org-2",
        "status": "ANÁLISE",
    },
]


def filtered(rows: List[Dict[str, Any]]):
    """Result that applies the query's equality filters to the given rows."""

    def result(call):
        return [row for row in rows if all(row.get(column) == value for column, value in call.filters)]

    return result


@pytest.fixture
def workspace(fake_client):
    fake_client.on("public", "profiles", "select", filtered(PROFILES))
    fake_client.on("public", "banco", "select", ORGANIZATIONS)
    return fake_client


# ============================================================================
# HEALTH AND ERROR ENVELOPE
# ============================================================================


class TestHealth:
    def test_health(self, api):
        response = api.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["message"] == "Healthy"
        assert response.headers["X-Correlation-ID"]

    def test_correlation_id_is_echoed(self, api):
        response = api.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestErrorEnvelope:
    def test_unauthenticated(self, api):
        response = api.get("/api/v1/auth/me", headers={"X-Correlation-ID": "corr-1"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["status"] == 401
        assert body["error"] == {"type": "http_error", "message": "Não autenticado.", "details": None}
        assert body["correlation_id"] == "corr-1"
        assert body["path"] == "/api/v1/auth/me"
        assert body["method"] == "GET"

    def test_invalid_token(self, api):
        response = api.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_org_id_is_reported(self, api, client_headers):
        response = api.delete("/api/v1/configuracoes/membros/c1", headers=client_headers)
        assert response.status_code == 403
        assert response.json()["org_id"] == "org-2"

    def test_validation_error(self, api):
        response = api.post("/api/v1/auth/login", json={"email": "not-an-email", "password": "x"})
        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

    def test_backend_error(self, api, admin_headers, fake_client):
        response = api.delete("/api/v1/configuracoes/membros/missing", headers=admin_headers)

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["type"] == "backend_error"
        assert error["message"] == "Registro não encontrado."
        assert error["details"]["code"] == "PGRST116"

    def test_unexpected_error_keeps_correlation_id(self, api, admin_headers, fake_client):
        fake_client.on("public", "processes", "select", RuntimeError("boom"))
        logged: List[Any] = []

        def capture(message, *args, **kwargs):
            logged.append((message, correlation_id_var.get()))

        # api installs the backend override; this client returns 500s instead of raising
        with TestClient(app, raise_server_exceptions=False) as client:
            with patch("sgi_fv.api.main.logger.exception", side_effect=capture):
                response = client.get(
                    "/api/v1/processos",
                    headers={**admin_headers, "X-Correlation-ID": "corr-500"},
                )

        assert response.status_code == 500
        assert response.headers["X-Correlation-ID"] == "corr-500"
        body = response.json()
        assert body["correlation_id"] == "corr-500"
        assert body["error"]["type"] == "internal_error"
        assert logged == [("Unhandled error processing request", "corr-500")]


# ============================================================================
# AUTH
# ============================================================================


class TestAuth:
    def test_me(self, api, admin_headers):
        response = api.get("/api/v1/auth/me", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["authenticated"] is True
        assert body["user_id"] == "user-1"
        assert body["is_admin"] is True
        assert body["user_context"]["org_slug"] == "default"

    def test_me_without_context_is_unprivileged(self, api, fake_client):
        fake_client.on("public", "v_user_context", "select", api_error("42501", "denied"))
        response = api.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {make_token()}"})

        assert response.status_code == 200
        assert response.json()["user_context"] is None
        assert response.json()["is_admin"] is False

    def test_login(self, api, fake_client):
        fake_client.on("public", "v_user_context", "select", [context_row(org_role="member")])
        fake_client.auth.sign_in_session = auth_session(token="fresh-token")

        response = api.post("/api/v1/auth/login", json={"email": "user@example.com", "password": "secret"})

        assert response.status_code == 200
        body = response.json()
        assert body["tokens"]["access_token"] == "fresh-token"
        assert body["tokens"]["token_type"] == "bearer"
        assert body["session"]["user_context"]["org_id"] == "org-1"
        assert body["session"]["is_admin"] is False
        assert fake_client.auth.callbacks == []

    def test_login_rejected(self, api, fake_client):
        fake_client.auth.sign_in_error = AuthApiError("Invalid login credentials", 400, "invalid_credentials")

        response = api.post("/api/v1/auth/login", json={"email": "user@example.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Credenciais inválidas."

    def test_refresh(self, api):
        response = api.post("/api/v1/auth/refresh", json={"refresh_token": "refresh-token"})
        assert response.status_code == 200
        assert response.json()["refresh_token"] == "refresh-token"

    def test_logout(self, api, admin_headers, fake_client):
        response = api.post("/api/v1/auth/logout", json={"refresh_token": "r1"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Sessão encerrada."}
        assert fake_client.auth.signed_out is True
        assert fake_client.auth.restored[1] == "r1"


# ============================================================================
# DASHBOARD
# ============================================================================


class TestDashboard:
    def test_navigation(self, api, admin_headers):
        response = api.get("/api/v1/navegacao", headers=admin_headers)
        assert len(response.json()) == 6

    def test_dashboard(self, api, admin_headers, workspace):
        workspace.on(
            "public",
            "processes",
            "select",
            [{"id": "p1", "org_id": "org-1", "titulo": "Visto", "status": "triagem"}],
        )

        response = api.get("/api/v1/dashboard", params={"selected": "c2"}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["greeting"] == "Bem-vindo, Ana Souza | Organização Padrão"
        assert body["is_admin"] is True
        assert body["stats"]["total"] == 1
        assert [c["value"] for c in body["cards"]] == [1, 1, 0]
        assert [p["id"] for p in body["recent_processes"]] == ["p1"]
        assert len(body["user_rows"]) == 3
        assert body["user_stats"]["active_users"] == 1
        assert body["user_stats"]["total_value"] == 11200.0
        assert body["distribution"] == {"triagem": 33, "analise": 33, "concluido": 33, "pendente": 0}
        assert body["pie"] == {"triagem": 33, "analise": 66, "concluido": 99}
        assert body["selected_process"]["id"] == "c2"

    def test_dashboard_degrades_on_backend_errors(self, api, admin_headers, fake_client):
        fake_client.on("public", "processes", "select", api_error("42501", "denied"))
        fake_client.on("public", "profiles", "select", api_error("42501", "denied"))

        response = api.get("/api/v1/dashboard", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["stats"]["total"] == 0
        assert body["recent_processes"] == []
        assert body["user_rows"] == []


# ============================================================================
# PROCESSES
# ============================================================================


class TestProcesses:
    def test_list_with_search(self, api, admin_headers, fake_client):
        fake_client.on(
            "public",
            "processes",
            "select",
            [
                {"id": "p1", "org_id": "org-1", "titulo": "Visto", "protocolo": "FV-1"},
                {"id": "p2", "org_id": "org-1", "titulo": "Cidadania", "cliente_nome": "Carlos"},
            ],
        )

        response = api.get("/api/v1/processos", params={"q": "carlos"}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body["items"]] == ["p2"]
        assert body["page"]["label"] == "1 - 1 de 1 processos"
        assert fake_client.calls_to("processes")[0].filters == [("org_id", "org-1")]

    def test_create_requires_admin(self, api, client_headers):
        response = api.post("/api/v1/processos", json={"titulo": "Novo"}, headers=client_headers)
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Acesso restrito a administradores."

    def test_create(self, api, admin_headers, fake_client):
        fake_client.on("public", "processes", "insert", [{"id": "p3", "org_id": "org-1", "titulo": "Novo"}])

        response = api.post("/api/v1/processos", json={"titulo": "Novo"}, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["status"] == "cadastro"
        event = fake_client.calls_to("process_events", "insert")[0].payload
        assert event["created_by"] == "user-1"

    def test_not_found(self, api, admin_headers):
        response = api.get("/api/v1/processos/p404", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Processo não encontrado."

    def test_user_without_organization(self, api, fake_client):
        fake_client.on("public", "v_user_context", "select", [context_row(org_id=None)])
        response = api.get("/api/v1/processos", headers={"Authorization": f"Bearer {make_token()}"})
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Usuário sem organização vinculada."


# ============================================================================
# MEMBERS AND CLIENTS
# ============================================================================


class TestMembers:
    def test_list_falls_back_to_default_page_size(self, api, admin_headers, workspace):
        response = api.get("/api/v1/configuracoes/membros", params={"page_size": 7}, headers=admin_headers)

        body = response.json()
        assert body["page"]["page_size"] == 10
        assert body["page"]["total"] == 3
        assert body["can_manage_access"] is True

    def test_search_by_access_level(self, api, admin_headers, workspace):
        response = api.get("/api/v1/configuracoes/membros", params={"q": "cliente"}, headers=admin_headers)
        assert [m["id"] for m in response.json()["items"]] == ["c1", "c2"]

    def test_client_sees_own_organization(self, api, client_headers, workspace):
        response = api.get("/api/v1/configuracoes/membros", headers=client_headers)
        body = response.json()
        assert [m["id"] for m in body["items"]] == ["c1", "c2"]
        assert body["can_manage_access"] is False

    def test_non_admin_cannot_change_access(self, api, client_headers):
        payload = {"name": "X", "email": "x@example.com"}
        response = api.post("/api/v1/configuracoes/membros", json=payload, headers=client_headers)
        assert response.status_code == 403
        assert response.json()["error"]["message"] == CHANGE_ACCESS_DENIED

    def test_non_admin_cannot_delete(self, api, client_headers):
        response = api.delete("/api/v1/configuracoes/membros/c1", headers=client_headers)
        assert response.json()["error"]["message"] == DELETE_DENIED

    def test_create_member(self, api, admin_headers, workspace):
        workspace.on(
            "public",
            "profiles",
            "insert",
            [{"id": "n1", "nome_completo": "Nova", "email": "nova@example.com", "role": "ADMIN", "nivel_acesso": "USUÁRIO PLENO"}],
        )
        payload = {"name": "Nova", "email": "nova@example.com", "access_level": "USUÁRIO PLENO"}

        response = api.post("/api/v1/configuracoes/membros", json=payload, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["effective_access_level"] == "USUÁRIO PLENO"
        row = workspace.calls_to("profiles", "insert")[0].payload
        assert row["role"] == "ADMIN"
        assert row["unidade"] == "ADMINISTRATIVO"
        assert row["nif_cpf"] == "---"
        assert row["protocolo"].startswith("ADM-")

    def test_existing_email_is_updated(self, api, admin_headers, workspace):
        workspace.on("public", "profiles", "update", [dict(PROFILES[1], nivel_acesso="CLIENTE")])
        payload = {"name": "Carlos", "email": "c1@example.com", "access_level": "CLIENTE"}

        response = api.post("/api/v1/configuracoes/membros", json=payload, headers=admin_headers)

        assert response.status_code == 200
        update = workspace.calls_to("profiles", "update")[0]
        assert update.filters == [("id", "c1")]
        assert update.payload["role"] == "CLIENT"
        assert workspace.calls_to("profiles", "insert") == []

    def test_delete(self, api, admin_headers, fake_client):
        fake_client.on("public", "profiles", "delete", [{"id": "c1"}])
        response = api.delete("/api/v1/configuracoes/membros/c1", headers=admin_headers)
        assert response.json()["message"] == "Usuário excluído com sucesso."


class TestClients:
    def test_list(self, api, admin_headers, workspace):
        response = api.get("/api/v1/clientes", params={"q": "FV-2024"}, headers=admin_headers)
        assert [m["id"] for m in response.json()["items"]] == ["c1"]

    def test_update_tracking(self, api, admin_headers, fake_client):
        fake_client.on("public", "profiles", "update", [dict(PROFILES[1], status="CONCLUÍDO")])
        payload = {"status": "CONCLUÍDO", "deadline": "2024-12-01", "notes": "ok"}

        response = api.patch("/api/v1/clientes/c1/acompanhamento", json=payload, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "concluido"
        row = fake_client.calls_to("profiles", "update")[0].payload
        assert row["status"] == "concluido"
        assert row["prazo"] == "2024-12-01"
        assert "updated_at" in row

    def test_unknown_service_manager(self, api, admin_headers, monkeypatch):
        monkeypatch.setenv("SERVICE_MANAGERS", "Bruna,Carla")
        payload = {"status": "triagem", "service_manager": "Zé"}

        response = api.patch("/api/v1/clientes/c1/acompanhamento", json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Gestor do serviço inválido."


# ============================================================================
# ORGANIZATIONS
# ============================================================================


class TestOrganizations:
    def test_list(self, api, client_headers, fake_client):
        fake_client.on("public", "banco", "select", ORGANIZATIONS)
        response = api.get("/api/v1/organizacoes", headers=client_headers)

        body = response.json()
        assert [o["name"] for o in body["organizations"]] == ["Filial", "Organização Padrão"]
        assert body["resolved_schema"] == "public"

    def test_create_requires_admin(self, api, client_headers):
        response = api.post("/api/v1/organizacoes", json={"name": "Nova"}, headers=client_headers)
        assert response.status_code == 403

    def test_create(self, api, admin_headers, fake_client):
        fake_client.on("public", "banco", "insert", [{"id": "org-3", "nome": "Nova"}])

        response = api.post("/api/v1/organizacoes", json={"name": "Nova"}, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["message"] == "Organização cadastrada com sucesso."

    def test_create_denied_by_policy(self, api, admin_headers, fake_client):
        fake_client.on("public", "banco", "insert", api_error("42501", "denied"))

        response = api.post("/api/v1/organizacoes", json={"name": "Nova"}, headers=admin_headers)

        assert response.status_code == 403
        assert "RLS" in response.json()["error"]["message"]

    def test_central_cannot_be_deleted(self, api, admin_headers, workspace):
        response = api.delete("/api/v1/organizacoes/org-1", headers=admin_headers)
        assert response.status_code == 400
        assert workspace.calls_to("banco", "delete") == []

    def test_toggle(self, api, admin_headers, workspace):
        workspace.on("public", "banco", "update", [{"id": "org-2"}])

        response = api.patch("/api/v1/organizacoes/org-2/status", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Organização inativada com sucesso."
        assert response.json()["organization"]["active"] is False

    def test_insights(self, api, admin_headers, workspace):
        response = api.get("/api/v1/organizacoes/insights", headers=admin_headers)

        body = response.json()
        assert [(i["id"], i["clients_count"], i["process_count"]) for i in body] == [
            ("org-2", 2, 1),
            ("org-1", 0, 0),
        ]

    def test_insights_organization_error(self, api, admin_headers, fake_client):
        fake_client.on("public", "banco", "select", api_error("42501", "denied"))
        response = api.get("/api/v1/organizacoes/insights", headers=admin_headers)
        assert response.status_code == 502


# ============================================================================
# FINANCIAL
# ============================================================================


class TestFinancial:
    def test_requires_admin(self, api, client_headers):
        assert api.get("/api/v1/financeiro", headers=client_headers).status_code == 403

    def test_overview(self, api, admin_headers, workspace):
        response = api.get("/api/v1/financeiro", headers=admin_headers)

        body = response.json()
        assert [row["id"] for row in body["rows"]] == ["user-1"]
        assert body["paid_percent"] == 100

    def test_export_csv(self, api, admin_headers, workspace):
        response = api.get("/api/v1/financeiro/export", params={"format": "csv"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Ana Souza" in response.text


class TestOpenAPI:
    def test_schema(self):
        schema = build_openapi_schema()
        assert "/api/v1/health" in schema["paths"]
        assert "/api/v1/organizacoes/{organization_id}/status" in schema["paths"]
        assert schema["info"]["x-auth"]["login"] == "/api/v1/auth/login"
