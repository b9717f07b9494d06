from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from app.api.auth_routes import router as auth_router
from app.api.catalog_routes import router as catalog_router
from app.api.document_routes import router as document_router
from app.api.admin_routes import router as admin_router
from app.api.audit_routes import router as audit_router
from contextlib import asynccontextmanager
from app.database.connection import init_db, close_db
from app.core.config import settings
from app.workflow.errors import (
    Forbidden,
    IllegalTransition,
    NotFound,
    PermissionDenied,
    ServerUnavailable,
    TransportError,
    Unauthorized,
    ValidationError,
    WorkflowError,
)
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import logging
import traceback


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every API response.

    OPTIONS requests are left alone so CORSMiddleware can answer preflights
    with its own Access-Control headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["X-XSS-Protection"] = "1; mode=block"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Student registration document portal",
    version="1.0.0",
    lifespan=lifespan
)


logger = logging.getLogger("server_exception_handler")


def _error_body(code: str, message: str, status_code: int) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "status_code": status_code
        }
    }


_WORKFLOW_STATUS = (
    (ValidationError, 400),
    (PermissionDenied, 403),
    (IllegalTransition, 409),
)

_TRANSPORT_STATUS = (
    (Unauthorized, 401),
    (Forbidden, 403),
    (NotFound, 404),
    (ServerUnavailable, 503),
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = str(exc.detail) if exc.detail else str(exc.status_code)
    logger.warning(f"HTTPException handled: {exc.status_code} {message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", message, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = _error_body("validation_error", "Request validation failed", 422)
    body["error"]["details"] = exc.errors()
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(status_code=422, content=jsonable_encoder(body))


# Workflow rule violations map onto 400, 403 and 409
@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    status_code = next((code for cls, code in _WORKFLOW_STATUS if isinstance(exc, cls)), 400)
    logger.warning(f"Workflow error on {request.url.path}: {exc.code} {exc.message}")
    return JSONResponse(status_code=status_code, content=_error_body(exc.code, exc.message, status_code))


# Storage and upstream failures; anything unclassified is a bad gateway
@app.exception_handler(TransportError)
async def transport_exception_handler(request: Request, exc: TransportError):
    status_code = next((code for cls, code in _TRANSPORT_STATUS if isinstance(exc, cls)), 502)
    logger.warning(f"Transport error on {request.url.path}: {exc.code} {exc.message}")
    body = _error_body(exc.code, exc.message, status_code)
    body["error"]["retry_hint"] = exc.retry_hint
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", "An unexpected error occurred", 500)
    )


# Support comma-separated CLIENT_URL values (e.g. "http://localhost:5173,http://localhost:3000")
raw_origins = settings.CLIENT_URL or ""
allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
logger.info(f"CORS allowed origins: {allowed_origins}")

# Middleware runs last-added-first, so CORS is added after the security headers
# to answer preflight requests before anything else sees them.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "Accept-Language",
        "Content-Language",
        "X-Requested-With",
        "Cache-Control",
        "If-Modified-Since",
        "If-None-Match",
        "Pragma",
    ],
    expose_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(document_router)
app.include_router(admin_router)
app.include_router(audit_router)

@app.get("/")
async def root():
    return {"message": "Document portal API is running!"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
