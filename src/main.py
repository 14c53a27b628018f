"""FastAPI application entry point."""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middleware import RateLimitMiddleware, RequestLoggingMiddleware
from src.api.routes import (
    action_plans,
    assessments,
    metrics,
    portal,
    reminders,
    risk_settings,
    templates,
)
from src.core.config import get_settings
from src.core.errors import (
    EngineError,
    InvalidTransition,
    TokenAlreadyUsed,
    TokenError,
    TokenNotFound,
    ValidationError,
)
from src.schemas.errors import ErrorResponse

settings = get_settings()
docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"

app = FastAPI(
    title="PsyRisk API",
    description="Assessment lifecycle and psychosocial risk scoring API",
    version="1.0.0",
    docs_url="/api/docs" if docs_enabled else None,
    redoc_url="/api/redoc" if docs_enabled else None,
    openapi_url="/api/openapi.json" if docs_enabled else None,
)

# Middleware configuration (order matters - applied in reverse order)
# 1. Request logging (outermost - logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Rate limiting on the public portal
app.add_middleware(RateLimitMiddleware)

# 3. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


def error_status(exc: EngineError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, TokenNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (TokenAlreadyUsed, InvalidTransition)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, TokenError):
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    body = ErrorResponse(error=exc.code, message=exc.message, details=exc.details or None)
    return JSONResponse(status_code=error_status(exc), content=body.model_dump(mode="json"))


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(templates.router, prefix="/api/templates", tags=["templates"])
app.include_router(assessments.router, prefix="/api/assessments", tags=["assessments"])
app.include_router(portal.router, prefix="/api/portal", tags=["portal"])
app.include_router(action_plans.router, prefix="/api/action-plans", tags=["reminders"])
app.include_router(reminders.router, prefix="/api/reminders", tags=["reminders"])
app.include_router(risk_settings.router, prefix="/api/settings", tags=["settings"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])
