"""
Main Application Entry Point.

Builds the FastAPI application: exception handlers, the middleware stack
(CORS, request logging, access control) and every API router. Run with
``uvicorn namc_portal.server.main:app`` or the ``namc-portal`` script.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from namc_portal.core.database import async_session_maker
from namc_portal.core.logging_config import get_logger, setup_logging
from namc_portal.core.monitoring import initialize_logfire
from namc_portal.security.rate_limit import build_rate_limiter

from .api.v1 import (
    admin,
    auth,
    content,
    events,
    health,
    hubspot,
    members,
    messages,
    projects,
    service_requests,
    tech,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import AccessControlMiddleware, RequestLoggingMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Startup configures logging and monitoring; shutdown releases the rate
    limiter backend. The schema itself is managed by Alembic migrations.
    """
    setup_logging()
    initialize_logfire(app)
    logger.info(f"Starting up {constant.PROJECT_NAME} ({settings.environment})...")

    yield

    logger.info(f"Shutting down {constant.PROJECT_NAME}...")
    await app.state.rate_limiter.store.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=constant.PROJECT_NAME,
        description="""
    NAMC NorCal Member Portal API

    Member authentication and directory, messaging, events, projects and service
    requests, admin tools for the California contractor registry, the TECH Clean
    California program and HubSpot CRM sync.
    """,
        version=constant.VERSION,
        openapi_url=f"{constant.API_V1_STR}/openapi.json",
        docs_url=f"{constant.API_V1_STR}/docs",
        redoc_url=f"{constant.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    app.state.rate_limiter = build_rate_limiter(settings)
    app.state.session_factory = async_session_maker
    app.state.last_sync_stats = None

    setup_exception_handlers(app)

    # Added innermost first: CORS wraps request logging, which wraps access control
    app.add_middleware(AccessControlMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    cors = settings.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    api = constant.API_V1_STR
    app.include_router(health.router, tags=["health"])
    app.include_router(health.api_router, prefix=f"{api}/health", tags=["health"])
    app.include_router(auth.router, prefix=f"{api}/auth")
    app.include_router(members.router, prefix=f"{api}/members")
    app.include_router(messages.router, prefix=f"{api}/messages")
    app.include_router(events.router, prefix=f"{api}/events")
    app.include_router(projects.router, prefix=f"{api}/projects")
    app.include_router(service_requests.router, prefix=f"{api}/service-requests")
    app.include_router(content.announcements_router, prefix=f"{api}/announcements")
    app.include_router(content.resources_router, prefix=f"{api}/resources")
    app.include_router(admin.router, prefix=f"{api}/admin")
    app.include_router(tech.router, prefix=f"{api}/tech")
    app.include_router(hubspot.router, prefix=f"{api}/hubspot")
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "namc_portal.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
