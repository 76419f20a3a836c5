from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Iterable, Optional, Union

# Request-scoped values stamped on every log record
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
org_id_var: ContextVar[Optional[str]] = ContextVar("org_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | org=%(org_id)s | %(message)s"

# The backend SDK logs every HTTP round trip at INFO through these
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


class LoggingContextFilter(logging.Filter):
    """Copy the correlation id and organization id of the current request onto the record ('-' when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.correlation_id = correlation_id_var.get() or "-"
        record.org_id = org_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def bind_org_id(org_id: Optional[str]) -> None:
    """Attach the caller's organization to the records logged for the rest of the request."""
    org_id_var.set(org_id or None)


# PUBLIC_INTERFACE
def configure_logging(
    level: Union[int, str] = logging.INFO,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Handlers installed earlier (e.g. by basicConfig or uvicorn) are replaced so
    every line carries the request context. Loggers listed in `quiet` are
    raised to WARNING.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
