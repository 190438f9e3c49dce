# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS middleware (origins from settings).
* Turn ``AppError`` and request-validation failures into
  ``{"message", "error"}`` JSON bodies; anything unexpected becomes a
  logged 500.
* Mount the four feature routers (auth, students, courses, attendance)
  under ``/api``.
* Expose a /health endpoint for container liveness checks.
"""

import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from attendance.router import router as attendance_router
from auth.router import router as auth_router
from core.config import settings
from core.errors import AppError, InternalError
from core.logger import logger
from courses.router import router as courses_router
from students.router import router as students_router

app = FastAPI(title="Aaghaaz LMS", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies (passwords, 2FA codes) are never echoed.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def _error_body(message: str, cause: str = None) -> dict:
    body = {"message": message}
    if cause and not settings.is_production:
        body["error"] = cause
    return body


@app.exception_handler(AppError)
async def _app_error(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.cause),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content=_error_body(message, str(errors)))


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=InternalError.status_code,
        content=_error_body(InternalError.default_message, repr(exc)),
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router, prefix="/api")
app.include_router(students_router, prefix="/api")
app.include_router(courses_router, prefix="/api")
app.include_router(attendance_router, prefix="/api")

# ---------------------------------------------------------------------------
# Lifecycle and health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    logger.info("Aaghaaz LMS service starting up (%s)", settings.environment)


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Aaghaaz LMS service shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}
