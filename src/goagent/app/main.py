"""FastAPI application entry point for the GoAgent API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from goagent.app.config import get_settings
from goagent.app.errors import register_exception_handlers
from goagent.domain.errors import AppError, ErrorKind
from goagent.infra.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database on startup."""
    if get_settings().is_store_configured:
        await init_db()
    else:
        logger.error("DATABASE_URL is not set; API routes will answer 503")
    if not get_settings().is_oracle_configured:
        logger.warning("GEMINI_API_KEY not set; verification will return INCONCLUSIVE")
    yield


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="GoAgent Field Agent API",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware: allow all origins in debug mode for LAN/IP access
_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def require_store_configuration(request: Request, call_next):
    """Answer every API call with a configuration error when no store is set."""
    if request.url.path.startswith("/api") and not get_settings().is_store_configured:
        return JSONResponse(status_code=503, content=AppError(ErrorKind.CONFIGURATION).to_dict())
    return await call_next(request)


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from goagent.app.routes.auth import router as auth_router
from goagent.app.routes.profile import router as profile_router
from goagent.app.routes.agreements import router as agreements_router
from goagent.app.routes.submissions import router as submissions_router
from goagent.app.routes.admin import router as admin_router
from goagent.app.routes.preferences import router as preferences_router
from goagent.app.routes.insights import router as insights_router

app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(agreements_router)
app.include_router(submissions_router)
app.include_router(admin_router)
app.include_router(preferences_router)
app.include_router(insights_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {
        "status": "ok",
        "service": "goagent",
        "store_configured": settings.is_store_configured,
        "oracle_configured": settings.is_oracle_configured,
    }


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "goagent.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
