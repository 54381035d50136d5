"""Main FastAPI application module for the Schedule Command Engine.

This module initializes the FastAPI application and sets up the core routes and dependencies.
"""

import logging
from contextlib import asynccontextmanager
import uvicorn

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from typing import Dict, Any

from schedule_engine.core.config import Settings, get_settings
from schedule_engine.core.errors import ScheduleEngineError
from schedule_engine.core.logging_config import setup_logging
from schedule_engine.core import dependencies as core_deps
from schedule_engine.api.routers import commands as commands_router
from schedule_engine.api.routers import events as events_router
from schedule_engine.api.routers import trello_cards as trello_cards_router

logger = logging.getLogger(__name__)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Schedule Command Engine API...")
    try:
        settings = get_settings()
        logger.info(
            f"Settings loaded (google_configured={settings.google_configured}, "
            f"trello_configured={settings.trello_configured}, llm_provider={settings.llm_provider})"
        )
    except Exception as e:
        logger.error(f"Failed to load settings on startup: {e}", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Schedule Command Engine API...")
    core_deps.reset_singletons()
    logger.info("Shutdown complete.")


# Create FastAPI app
app = FastAPI(
    title="Schedule Command Engine API",
    description="Turns natural-language commands into calendar events and task-board cards.",
    version="0.1.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def answer_preflight(request: Request, call_next):
    """Any OPTIONS request gets a 200 with no body."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=PREFLIGHT_HEADERS)
    return await call_next(request)


@app.exception_handler(ScheduleEngineError)
async def schedule_engine_error_handler(request: Request, exc: ScheduleEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# Include API routers
app.include_router(commands_router.router, prefix="/api", tags=["Commands"])
app.include_router(events_router.router, prefix="/api", tags=["Calendar Events"])
app.include_router(trello_cards_router.router, prefix="/api", tags=["Trello Cards"])


@app.get("/api/health", response_model=Dict[str, Any])
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Health check endpoint to verify the API is running.

    Returns:
        Dict[str, Any]: Health status information
    """
    return {
        "status": "healthy",
        "version": app.version,
        "environment": settings.environment,
        "googleConfigured": settings.google_configured,
        "trelloConfigured": settings.trello_configured,
        "llmProvider": settings.llm_provider,
    }


if __name__ == "__main__":
    settings = get_settings()
    uvicorn_log_config = setup_logging(settings.log_level)

    logger.info(f"Starting Uvicorn server on {settings.api_host}:{settings.api_port} with reload={settings.api_reload}")

    uvicorn.run(
        "schedule_engine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_config=uvicorn_log_config, # Pass the logging config
        log_level=settings.api_log_level.lower()
    )
