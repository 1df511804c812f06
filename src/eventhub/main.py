#!/usr/bin/env python3
"""EventHub - Event management API server"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventhub.config import config
from eventhub.errors import EventHubError
from eventhub.logging_config import get_logger, setup_logging
from eventhub.routers.auth import router as auth_router
from eventhub.routers.companies import router as companies_router
from eventhub.routers.events import router as events_router
from eventhub.routers.health import health
from eventhub.routers.users import router as users_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


# Create FastAPI app
app = FastAPI(
    title="EventHub",
    description="Event management API - companies publish events, participants join them and organizers approve requests",
    version="1.0.0",
    license_info={
        "name": "MIT",
    },
)


# The browser frontend calls the API cross-origin with bearer tokens
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config["frontend_url"]],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EventHubError)
async def eventhub_error_handler(request: Request, exc: EventHubError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code.value, "detail": exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "detail": "Internal server error"},
    )


# Include routers
app.include_router(health)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(companies_router)
app.include_router(events_router)


if __name__ == "__main__":
    port = config.get("port")
    logger.info(f"Starting EventHub on 0.0.0.0:{port}")
    logger.info(f"Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
