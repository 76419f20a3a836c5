from __future__ import annotations

from sgi_fv.backend.client import BackendClient


class BaseService:
    """
    Base class for services. Holds a backend client for use across multiple repositories.

    Services keep orchestration and presentation rules, delegating data access
    to repositories.
    """

    def __init__(self, client: BackendClient) -> None:
        self.client = client
