"""
Pytest Configuration and Fixtures.

Provides a scripted backend client, signed access tokens and an API test
client wired to both.
"""

import os
import time
from typing import Any, Dict

import pytest
from jose import jwt

# Configure the environment before importing the app
os.environ["SUPABASE_URL"] = "http://backend.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_EMAILS"] = "root@sgifv.test"
os.environ.pop("SUPABASE_ORG_SCHEMA", None)

from fastapi.testclient import TestClient  # noqa: E402

from sgi_fv.api.main import app  # noqa: E402
from sgi_fv.core.deps import get_backend_client  # noqa: E402
from tests.fakes import FakeClient  # noqa: E402

TEST_SECRET = "test-secret"


def make_token(user_id: str = "user-1", email: str = "user@example.com", **claims: Any) -> str:
    """Access token shaped like the ones issued by the auth service."""
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def context_row(
    user_id: str = "user-1",
    org_id: str = "org-1",
    org_role: str = "admin",
    org_name: str = "Organização Padrão",
    org_slug: str = "default",
    nome_completo: str = "Ana Souza",
    email: str = "user@example.com",
) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "email": email,
        "nome_completo": nome_completo,
        "org_id": org_id,
        "org_slug": org_slug,
        "org_name": org_name,
        "org_role": org_role,
    }


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def api(fake_client):
    """TestClient whose backend client dependency yields the fake."""

    async def _override():
        yield fake_client

    app.dependency_overrides[get_backend_client] = _override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(fake_client) -> Dict[str, str]:
    fake_client.on("public", "v_user_context", "select", [context_row()])
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def client_headers(fake_client) -> Dict[str, str]:
    fake_client.on(
        "public",
        "v_user_context",
        "select",
        [context_row(user_id="user-2", org_id="org-2", org_role="member", org_name="Filial", org_slug="filial")],
    )
    return {"Authorization": f"Bearer {make_token(user_id='user-2', email='client@example.com')}"}
