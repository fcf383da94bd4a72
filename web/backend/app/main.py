"""FastAPI application exposing rostersync over HTTP.

Provides REST endpoints for:
- Manually triggering a reconciliation (optionally as a dry run)
- Inspecting the last committed sync state per guild
"""

from __future__ import annotations

from fastapi import FastAPI

from rostersync import __version__
from web.backend.app.routers import sync

app = FastAPI(
    title="rostersync API",
    description="Trigger roster-to-role reconciliation and inspect sync state.",
    version=__version__,
)

app.include_router(sync.router)


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "rostersync API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
