from __future__ import annotations

from typing import Any, List, Optional

from postgrest.exceptions import APIError

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.errors import BackendError

DEFAULT_SCHEMA = "public"


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      Tenant isolation is enforced by the backend's row-level security using the
      bearer token the client was created with. Repositories only reflect and
      request; they never decide who may see what.
    """

    schema: str = DEFAULT_SCHEMA

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def table(self, name: str, schema: Optional[str] = None):
        """Start a query on a schema-qualified table."""
        return self.client.schema(schema or self.schema).table(name)

    async def run(self, query) -> List[dict[str, Any]]:
        """Execute a query and return its rows; backend failures raise BackendError."""
        try:
            response = await query.execute()
        except APIError as exc:
            raise BackendError.from_api_error(exc) from exc
        data = response.data if response is not None else None
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    async def first(self, query) -> Optional[dict[str, Any]]:
        """Execute and return the first row or None."""
        rows = await self.run(query)
        return rows[0] if rows else None
