from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sgi_fv.backend.errors import BackendError, backend_error_status, translate_backend_error
from sgi_fv.core.logging import configure_logging, correlation_id_var, org_id_var
from sgi_fv.core.settings import get_app_settings
from sgi_fv.schemas.common import ErrorInfo, ErrorResponse, MessageResponse

# Routers
from sgi_fv.api.routes.auth import router as auth_router
from sgi_fv.api.routes.clients import router as clients_router
from sgi_fv.api.routes.dashboard import router as dashboard_router
from sgi_fv.api.routes.financial import router as financial_router
from sgi_fv.api.routes.members import router as members_router
from sgi_fv.api.routes.organizations import router as organizations_router
from sgi_fv.api.routes.processes import router as processes_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Auth", "description": "Sign-in, token refresh, sign-out and session context."},
    {"name": "Dashboard", "description": "Dashboard and navigation views."},
    {"name": "Processes", "description": "Processes and their event log."},
    {"name": "Clients", "description": "Client process tracking."},
    {"name": "Members", "description": "Access management (levels and hierarchy)."},
    {"name": "Organizations", "description": "Organizations (tenants) and their status."},
    {"name": "Financial", "description": "Financial overview and exports (CSV/Excel/PDF)."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation id for logging and error responses.
    Adds 'X-Correlation-ID' to every response. The org id is bound later, once
    the caller's user context is known.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    token_org = org_id_var.set(None)
    request.state.correlation_id = corr
    request.state.org_id = None

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        org_id_var.reset(token_org)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """
    Build a standardized ErrorResponse JSONResponse.

    The correlation id is set on the response here as well: the catch-all
    handler runs outside the request middleware, after it has returned.
    """
    corr = getattr(request.state, "correlation_id", None)
    headers = dict(headers or {})
    if corr:
        headers["X-Correlation-ID"] = corr
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=corr,
        org_id=getattr(request.state, "org_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"), headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(BackendError)
async def backend_exception_handler(request: Request, exc: BackendError):
    """
    Backend data errors: translated message, status derived from the error code.
    """
    status_code = backend_error_status(exc)
    logger.warning("Backend error on %s %s: %r", request.method, request.url.path, exc)
    return _build_error_response(
        request=request,
        status_code=status_code,
        error_type="backend_error",
        message=translate_backend_error(exc),
        details=exc.to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=exc.errors(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    # The middleware has already reset the log context at this point
    token_corr = correlation_id_var.set(getattr(request.state, "correlation_id", None))
    token_org = org_id_var.set(getattr(request.state, "org_id", None))
    try:
        logger.exception("Unhandled error processing request")
    finally:
        correlation_id_var.reset(token_corr)
        org_id_var.reset(token_org)
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


api_v1.include_router(auth_router)
api_v1.include_router(dashboard_router)
api_v1.include_router(processes_router)
api_v1.include_router(clients_router)
api_v1.include_router(members_router)
api_v1.include_router(organizations_router)
api_v1.include_router(financial_router)

# Attach api_v1 to app
app.include_router(api_v1)
