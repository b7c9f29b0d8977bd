"""
Social metrics for published content.

One `PostMetrics` row per content item, refreshed on demand from the social
provider with the access token and page configured in settings.
"""

from typing import Any, Dict, List, Optional

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import InvalidInputError
from core.logging_config import get_logger
from core.models import PostMetrics, utc_now
from providers.social_provider import SocialProvider
from services.content_store import ContentItemStore
from services.settings_store import SettingsStore

logger = get_logger(__name__)


class SocialMetricsService:
    def __init__(self, session: AsyncSession, provider: SocialProvider):
        self.session = session
        self.provider = provider
        self.settings = SettingsStore(session)
        self.content = ContentItemStore(session)

    async def _access_token(self) -> str:
        token = await self.settings.get_value("facebook_access_token")
        if not token:
            raise InvalidInputError(
                "facebook_access_token", "Facebook access token is not configured"
            )
        return token

    async def sync(self, content_item_id: str, post_id: Any) -> PostMetrics:
        if not isinstance(post_id, str) or not post_id.strip():
            raise InvalidInputError("postId", "Post ID is required")
        post_id = post_id.strip()

        await self.content.get(content_item_id)
        engagement = await self.provider.get_post_engagement(post_id, await self._access_token())

        metrics = await self.get_for_content(content_item_id)
        if metrics is None:
            metrics = PostMetrics(content_item_id=content_item_id, post_id=post_id)
        metrics.post_id = post_id
        metrics.likes = engagement.likes
        metrics.comments = engagement.comments
        metrics.shares = engagement.shares
        metrics.reactions = engagement.reactions
        metrics.fetched_at = utc_now()
        self.session.add(metrics)
        await self.session.flush()

        logger.info(
            "Post metrics synced",
            extra={"content_item_id": content_item_id, "post_id": post_id},
        )
        return metrics

    async def list_all(self) -> List[PostMetrics]:
        result = await self.session.exec(
            select(PostMetrics).order_by(col(PostMetrics.fetched_at).desc())
        )
        return list(result.all())

    async def get_for_content(self, content_item_id: str) -> Optional[PostMetrics]:
        result = await self.session.exec(
            select(PostMetrics).where(PostMetrics.content_item_id == content_item_id)
        )
        return result.first()

    async def test_connection(self) -> Dict[str, Any]:
        page_id = await self.settings.get_value("facebook_page_id")
        if not page_id:
            raise InvalidInputError("facebook_page_id", "Facebook page ID is not configured")
        return await self.provider.get_page(page_id, await self._access_token())
