"""
FastAPI app entrypoint.

Scheduling core: sessions (single and recurring), eligibility, assignments, swaps, rota.
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from serve_rota.api.routes import assignments, notifications, rota, sessions, staff, swaps
from serve_rota.config import settings
from serve_rota.core.errors import DomainError, status_for

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Serve Rota", version="0.1.0")

# CORS: dev origins + optional CORS_ORIGINS (comma-separated) for the production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("Unmapped domain error on %s %s: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s %s -> %s %s: %s", request.method, request.url.path, status_code, exc.code, exc.detail)
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": exc.detail})


app.include_router(sessions.router, tags=["sessions"])
app.include_router(staff.router, tags=["staff"])
app.include_router(assignments.router, tags=["assignments"])
app.include_router(swaps.router, tags=["swaps"])
app.include_router(rota.router, tags=["rota"])
app.include_router(notifications.router, tags=["notifications"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Serve Rota API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
