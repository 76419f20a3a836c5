"""
Backend package exposing configuration, client creation and the error model
for the hosted data service.
"""

from .config import BackendSettings, get_backend_settings
from .errors import BackendError, translate_backend_error

__all__ = [
    "BackendSettings",
    "get_backend_settings",
    "BackendError",
    "translate_backend_error",
]
