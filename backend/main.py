# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
FastAPI application.

Responsibilities
----------------
* Instantiate the FastAPI app and its cipher engine (``app.state.cipher``).
* Load the master key into the engine on startup; a bad key stops the
  process before it serves a single request.
* Register CORS and request-logging middleware.
* Map service errors onto HTTP status codes.
* Mount the feature routers (sessions, tags, credentials).
* Expose a /health endpoint for container liveness checks.
"""

import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from core.config import settings
from core.crypto import CipherEngine
from core.errors import SessionVaultError, ValidationError
from core.logger import logger
from credentials.router import router as credentials_router
from sessions.router import router as sessions_router
from tags.router import router as tags_router

app = FastAPI(title="SSH Session Vault", version="1.0.0")

# Keyed by the startup hook; until then every write raises EngineNotReady.
app.state.cipher = CipherEngine()

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies are never echoed; they may carry passwords and private keys.


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
# Error mapping
# ---------------------------------------------------------------------------
_STATUS_BY_KIND = {
    "not_found": 404,
    "validation": 400,
    "conflict": 409,
    "decryption": 422,
    "engine_not_ready": 503,
}


@app.exception_handler(SessionVaultError)
async def _service_error_handler(request: Request, exc: SessionVaultError):
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "kind": exc.kind}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(sessions_router)
app.include_router(tags_router)
app.include_router(credentials_router)

# ---------------------------------------------------------------------------
# Lifecycle + health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    app.state.cipher.initialize(settings.master_encryption_key)
    logger.info("SSH Session Vault starting up (cipher engine ready)")


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("SSH Session Vault shutting down")


@app.get("/health")
def health():
    return {"status": "ok", "cipher_ready": app.state.cipher.ready}
