"""
FastAPI main application entry point.

  Browser → http://localhost:8000/api/auth/...    → registration and sessions
  Browser → http://localhost:8000/api/notes/...   → notes, sharing, images
  Browser → http://localhost:8000/api/ai/...      → AI helpers
  Browser → http://localhost:8000/api/uploads/... → stored note images

Each bearer token maps to one session (identity plus note caches) held
by the SessionRegistry for the lifetime of the process.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from renotefy.ai import get_note_assistant
from renotefy.config import get_settings
from renotefy.database import connect_db, close_db, get_database
from renotefy.errors import NoteError
from renotefy.routers import ai, auth, notes, uploads
from renotefy.sessions import init_session_registry
from renotefy.store import LocalObjectStore, SQLiteDocumentStore

# ============================================================
# Logging Configuration
# ============================================================
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# httpx logs every provider request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)


# ============================================================
# Application Lifespan (startup/shutdown)
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info("Starting up notes service...")

    _settings = get_settings()
    if _settings.jwt_secret_key == "your-super-secret-key-change-in-production":
        logger.warning(
            "JWT_SECRET_KEY is still the default! "
            "Generate a real secret and set it in .env"
        )
    logger.info(f"CORS origins: {_settings.cors_origins_list}")

    _settings.data_dir.mkdir(parents=True, exist_ok=True)
    db = await connect_db()

    init_session_registry(
        SQLiteDocumentStore(db),
        assistant=get_note_assistant(),
        object_store=LocalObjectStore(_settings.uploads_dir, _settings.uploads_url_prefix),
        default_emoji=_settings.default_emoji,
        default_title=_settings.default_note_title,
        idle_timeout=_settings.jwt_expiration_hours * 3600,
        max_sessions=_settings.max_sessions,
    )

    yield  # Application runs here

    logger.info("Shutting down notes service...")
    await close_db()


# ============================================================
# Create FastAPI Application
# ============================================================
app = FastAPI(
    title="Renotefy API",
    description="Notes with sharing, public publishing, templates and AI helpers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NoteError)
async def note_error_handler(request: Request, exc: NoteError) -> JSONResponse:
    """Answer domain errors with their status code and message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ============================================================
# API routes, all mounted under /api
# ============================================================
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(notes.router, prefix="/api/notes", tags=["Notes"])
app.include_router(ai.router, prefix="/api/ai", tags=["AI"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["Uploads"])


# ============================================================
# Health Check Endpoints
# ============================================================
@app.get("/api/health")
async def health_check() -> dict:
    """Liveness probe: the process is up."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/api/health/ready")
async def readiness_check():
    """Readiness probe: the database answers a ping."""
    checks: dict = {}
    try:
        await get_database().ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}


# ============================================================
# Run with Uvicorn (for development)
# ============================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "renotefy.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
