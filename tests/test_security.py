"""
Tests for access token validation.
"""

import time

from jose import jwt

from sgi_fv.core.security import session_from_token
from tests.conftest import make_token


class TestSessionFromToken:
    def test_valid_token(self):
        token = make_token(user_id="user-9", email="nove@example.com")
        session = session_from_token(token, refresh_token="r1")

        assert session.user_id == "user-9"
        assert session.email == "nove@example.com"
        assert session.access_token == token
        assert session.refresh_token == "r1"

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "u", "aud": "authenticated"}, "other-secret", algorithm="HS256")
        assert session_from_token(token) is None

    def test_expired(self):
        assert session_from_token(make_token(exp=int(time.time()) - 60)) is None

    def test_wrong_audience(self):
        assert session_from_token(make_token(aud="anon")) is None

    def test_missing_subject(self):
        token = jwt.encode({"aud": "authenticated"}, "test-secret", algorithm="HS256")
        assert session_from_token(token) is None

    def test_garbage(self):
        assert session_from_token("not-a-jwt") is None

    def test_no_secret_configured(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_JWT_SECRET", "")
        assert session_from_token(make_token()) is None
