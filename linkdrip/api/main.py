import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkdrip.adapters.sqlite.migrator import SQLiteMigrator
from linkdrip.api.deps import get_settings
from linkdrip.app_shell.config import validate_ops_rules
from linkdrip.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.base_dir)
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="LinkDrip API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from linkdrip.api.routes import (  # noqa: E402
    auth,
    crawler,
    drips,
    operations,
    opportunities,
    outreach,
    usage,
    websites,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(websites.router, prefix="/api/websites", tags=["Websites"])
app.include_router(opportunities.router, prefix="/api/opportunities", tags=["Opportunities"])
app.include_router(drips.router, prefix="/api/drips", tags=["Drips"])
app.include_router(crawler.router, prefix="/api/crawler", tags=["Crawler"])
app.include_router(operations.router, prefix="/api", tags=["Operations"])
app.include_router(outreach.router, prefix="/api/outreach", tags=["Outreach"])
app.include_router(usage.router, prefix="/api", tags=["Usage"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "linkdrip"}
