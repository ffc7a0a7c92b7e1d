"""Evite Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from evite.config import settings
from evite.database import init_db

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database on startup."""
    init_db()
    if not settings.admin_email_list:
        logger.warning("EVITE_ADMIN_EMAILS is empty; nobody can use the admin API")
    yield


app = FastAPI(
    title="Evite",
    description="Event invitations and RSVP tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# --- Register API routers ---
from evite.api.admin import router as admin_router  # noqa: E402
from evite.api.rsvp import router as rsvp_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(rsvp_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
