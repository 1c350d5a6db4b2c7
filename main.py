"""
Application entry point for the career course resolver backend.

Design choices for future-proofing:
- Mounts versioned routers using a configurable prefix from core.config Settings.
- Keeps a basic root route for quick health checks while the API evolves.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.v1.routes import router as v1_router
from core.config import get_settings
from core.logging_config import configure_logging
from database import init_db

_settings = get_settings()

# Configure structured logging
configure_logging()

app = FastAPI(title="Career Course Resolver - Backend", version="0.1.0")

# Basic CORS (can be restricted via settings in the future)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Server running"}


# Mount versioned API routers
app.include_router(v1_router, prefix=_settings.api_v1_prefix)


@app.on_event("startup")
async def startup_event():
    """Create missing tables before the first request."""
    logger = logging.getLogger("startup")
    init_db()
    logger.info("Database tables ready")
