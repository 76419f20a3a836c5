"""
Backend error model.

PostgREST reports failures with a code field: PostgREST's own codes
(PGRSTxxx) or the Postgres SQLSTATE. Only a few of them matter here.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from postgrest.exceptions import APIError

SCHEMA_CACHE_ERROR = "PGRST205"
MISSING_COLUMN_ERROR = "PGRST204"
NOT_FOUND_ERROR = "PGRST116"
PERMISSION_DENIED_ERROR = "42501"


class BackendError(Exception):
    """A data error reported by the hosted backend."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message or code or "backend error")
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_api_error(cls, exc: APIError) -> "BackendError":
        return cls(
            message=getattr(exc, "message", None),
            code=getattr(exc, "code", None),
            details=getattr(exc, "details", None),
            hint=getattr(exc, "hint", None),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BackendError":
        return cls(
            message=data.get("message"),
            code=data.get("code"),
            details=data.get("details"),
            hint=data.get("hint"),
        )

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
        }

    def __repr__(self) -> str:
        return f"BackendError(code={self.code!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BackendError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = Exception.__hash__


def is_schema_cache_error(error: Optional[BackendError]) -> bool:
    """True when the queried table is not visible under the assumed schema."""
    if error is None:
        return False
    return error.code == SCHEMA_CACHE_ERROR or "schema cache" in (error.message or "")


def is_missing_column_error(error: Optional[BackendError]) -> bool:
    return error is not None and error.code == MISSING_COLUMN_ERROR


def is_permission_denied(error: Optional[BackendError]) -> bool:
    return error is not None and error.code == PERMISSION_DENIED_ERROR


def is_not_found(error: Optional[BackendError]) -> bool:
    return error is not None and error.code == NOT_FOUND_ERROR


# PUBLIC_INTERFACE
def translate_backend_error(error: Optional[BackendError]) -> str:
    """Return a Portuguese, user-facing message for a backend error."""
    if error is None:
        return "Não foi possível concluir a operação."
    if is_permission_denied(error):
        return "Sem permissão para executar esta operação."
    if is_not_found(error):
        return "Registro não encontrado."
    if is_schema_cache_error(error):
        return "Tabela não encontrada no schema esperado."
    if is_missing_column_error(error):
        return "A tabela foi encontrada, mas uma coluna esperada não existe."
    return error.message or "Erro inesperado ao acessar o servidor."


# PUBLIC_INTERFACE
def backend_error_status(error: BackendError) -> int:
    """Map a backend error to the HTTP status reported to API clients."""
    if is_permission_denied(error):
        return 403
    if is_not_found(error):
        return 404
    if is_schema_cache_error(error) or is_missing_column_error(error):
        return 502
    return 400
