"""
Content Review API - Main Application Entry Point.

This module initializes and configures the FastAPI application behind the
marketing content review dashboard: media files synced from a cloud drive,
AI-generated caption proposals arriving from an n8n workflow, and the human
review that edits and approves them.

Key Responsibilities:
- Configure logging, open the database (engine and connection pool are built
  once here and shared through `app.state`), create tables and bootstrap the
  first admin account.
- Set up middleware for correlation IDs, error handling and request timing.
- Mount the routers under `/api`.

Configuration is read from the environment; see `core.database`,
`core.auth` and `core.logging_config` for the variables each part reads.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.admin_endpoints import router as admin_router
from api.auth_endpoints import router as auth_router
from api.content_endpoints import router as content_router
from api.health_router import health_router, monitoring_router
from api.metrics_endpoints import router as metrics_router
from api.webhook_endpoints import router as webhook_router
from core.auth import init_jwt_manager
from core.database import Database
from core.logging_config import get_logger, setup_logging
from core.middleware import (
    CorrelationMiddleware,
    ErrorHandlingMiddleware,
    PerformanceMiddleware,
    register_exception_handlers,
)
from services.user_service import UserService

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


async def bootstrap_admin(database: Database, logger) -> None:
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin bootstrap")
        return

    async with database.session() as session:
        admin = await UserService(session).ensure_admin(
            email, password, os.getenv("ADMIN_NAME")
        )
        await session.commit()
    logger.info("Admin account ready", extra={"user_id": admin.id})


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger = get_logger("api.startup")

    database = Database()
    await database.create_tables()
    app.state.database = database
    logger.info("Database initialized", extra={"database_url": database.engine.url.render_as_string()})

    init_jwt_manager()
    await bootstrap_admin(database, logger)

    logger.info("Service startup completed")
    yield

    logger.info("Shutting down Content Review API")
    await database.dispose()
    logger.info("Cleanup completed")


app = FastAPI(
    title="Content Review API",
    description="Caption review and approval backend for the marketing dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added last runs first: correlation wraps everything below it
app.add_middleware(PerformanceMiddleware)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(CorrelationMiddleware)

register_exception_handlers(app)

app.include_router(health_router, prefix="/api")
app.include_router(monitoring_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(content_router, prefix="/api")
app.include_router(webhook_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(metrics_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
        log_level="info",
    )
