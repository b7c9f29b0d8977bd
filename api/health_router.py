"""
Health and Monitoring Router.

Endpoints Provided:
- `/health`: Unauthenticated liveness check including a database round trip.
  Answers 503 when the database cannot be reached, so load balancers and
  uptime checkers can act on the status code alone.
- `/monitoring/database`: Database backend and connection pool details (admin).
- `/monitoring/caption-links`: Audits caption ownership, optionally for one
  drive file (admin).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from core.database import Database
from core.logging_config import get_logger
from core.models import User
from services.link_verifier import CaptionLinkVerifier

from .dependencies import get_database, get_session, require_admin

logger = get_logger(__name__)

health_router = APIRouter(tags=["Health & Monitoring"])
monitoring_router = APIRouter(prefix="/monitoring", tags=["Health & Monitoring"])


@health_router.get("/health")
async def health_check(database: Database = Depends(get_database)):
    logger.debug("Health check requested")
    timestamp = datetime.now(timezone.utc).isoformat()

    if not await database.ping():
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "disconnected", "timestamp": timestamp},
        )
    return {"status": "ok", "database": "connected", "timestamp": timestamp}


@monitoring_router.get("/database")
async def database_info(
    database: Database = Depends(get_database), admin: User = Depends(require_admin)
) -> Dict[str, Any]:
    return {"database": await database.get_database_info()}


@monitoring_router.get("/caption-links")
async def verify_caption_links(
    driveFileId: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> Dict[str, Any]:
    logger.info("Caption link verification requested", extra={"drive_file_id": driveFileId})
    return await CaptionLinkVerifier(session).verify(driveFileId)
