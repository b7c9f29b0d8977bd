"""
Social engagement endpoints backed by the Facebook Graph API.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from core.logging_config import get_logger, log_function_call
from core.models import User
from core.validation import InputValidator
from providers.social_provider import SocialProvider
from services.metrics_service import SocialMetricsService

from .dependencies import get_current_user, get_session, get_social_provider
from .schemas import FacebookSyncRequest, MetricsResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/facebook", tags=["Social Metrics"])


@router.post("/sync/{content_id}")
@log_function_call(logger)
async def sync_post_metrics(
    content_id: str,
    request: FacebookSyncRequest,
    session: AsyncSession = Depends(get_session),
    provider: SocialProvider = Depends(get_social_provider),
    current_user: User = Depends(get_current_user),
):
    content_id = InputValidator.validate_uuid(content_id)
    metrics = await SocialMetricsService(session, provider).sync(content_id, request.postId)
    await session.commit()
    return {"message": "Metrics synced", "metrics": MetricsResponse.from_row(metrics)}


@router.get("/metrics")
@log_function_call(logger)
async def list_metrics(
    session: AsyncSession = Depends(get_session),
    provider: SocialProvider = Depends(get_social_provider),
    current_user: User = Depends(get_current_user),
):
    rows = await SocialMetricsService(session, provider).list_all()
    return {"metrics": [MetricsResponse.from_row(m) for m in rows]}


@router.get("/metrics/{content_id}")
@log_function_call(logger)
async def get_metrics(
    content_id: str,
    session: AsyncSession = Depends(get_session),
    provider: SocialProvider = Depends(get_social_provider),
    current_user: User = Depends(get_current_user),
):
    content_id = InputValidator.validate_uuid(content_id)
    metrics = await SocialMetricsService(session, provider).get_for_content(content_id)
    return {"metrics": MetricsResponse.from_row(metrics) if metrics else None}


@router.post("/test-connection")
@log_function_call(logger)
async def test_connection(
    session: AsyncSession = Depends(get_session),
    provider: SocialProvider = Depends(get_social_provider),
    current_user: User = Depends(get_current_user),
):
    page = await SocialMetricsService(session, provider).test_connection()
    return {"success": True, "page": page}
