"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing, organization suspension), registers the error handlers and
includes all API and page routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from takt import __version__
from takt.core.database import async_session_maker, engine
from takt.core.logging_config import get_logger, setup_logging
from takt.core.monitoring import initialize_logfire

from . import pages
from .api.v1 import (
    audit,
    auth,
    contact,
    demand,
    health,
    intelligence,
    invitations,
    organizations,
    profile,
    repositories,
    superadmin,
    supply,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware, SuspensionMiddleware

# Initialize logging
setup_logging(settings.log_level, settings.log_format, settings.enable_file_logging)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    The schema is owned by Alembic; startup only announces the server and
    shutdown releases pooled database connections.
    """
    logger.info(f"Starting up {constant.PROJECT_NAME} Server {__version__}...")
    yield
    logger.info(f"Shutting down {constant.PROJECT_NAME} Server...")
    await engine.dispose()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Takt Server API

    Multi-tenant logistics planning: demand forecasts, supply commitments,
    planning intelligence, master-data repositories, invitations and platform
    administration.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

# Sessions for middleware, which runs outside FastAPI dependency injection
app.state.session_maker = async_session_maker

# Set all CORS enabled origins
cors = settings.cors
app.add_middleware(SuspensionMiddleware)
app.add_middleware(LogfireMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)

setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, tags=["health"])
app.include_router(pages.router)
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(demand.router, prefix=f"{constant.API_V1_STR}/demand")
app.include_router(supply.router, prefix=f"{constant.API_V1_STR}/supply")
app.include_router(intelligence.router, prefix=f"{constant.API_V1_STR}/intelligence")
app.include_router(repositories.router, prefix=f"{constant.API_V1_STR}/repositories")
app.include_router(organizations.router, prefix=f"{constant.API_V1_STR}/organizations")
app.include_router(profile.router, prefix=f"{constant.API_V1_STR}/profile")
app.include_router(invitations.router, prefix=f"{constant.API_V1_STR}/invitations")
app.include_router(audit.router, prefix=f"{constant.API_V1_STR}/admin/audit")
app.include_router(superadmin.router, prefix=f"{constant.API_V1_STR}/superadmin")
app.include_router(contact.router, prefix=f"{constant.API_V1_STR}/contact")
