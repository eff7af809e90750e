# src/secure_workroom/main.py
"""Main entry point for the Secure Workroom application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from secure_workroom.api.v1 import (
    internal_router,
    realtime_router,
    secure_conversations_router,
)
from secure_workroom.core.logging_config import configure_logging
from secure_workroom.core.settings import settings
from secure_workroom.services.errors import ConversationError
from secure_workroom.services.presence import PresenceRouter, get_presence_router

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="End-to-end encrypted conversations between clients and freelancers",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(secure_conversations_router, prefix="/api/v1")
app.include_router(internal_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")


@app.exception_handler(ConversationError)
async def conversation_error_handler(request: Request, exc: ConversationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled conversation failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=400,
        content={"error": {"kind": "invalid_input", "message": message}},
    )


@app.on_event("startup")
async def on_startup() -> None:
    presence = get_presence_router()
    await presence.start()
    app.state.presence = presence
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    presence: PresenceRouter | None = getattr(app.state, "presence", None)
    if presence:
        await presence.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "End-to-end encrypted conversations between clients and freelancers",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("secure_workroom.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
