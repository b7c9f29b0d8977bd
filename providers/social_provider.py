"""
Social Provider

Reads engagement counts of published posts and page details from the
Facebook Graph API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict

import aiohttp

from core.exceptions import UpstreamError
from core.logging_config import get_logger

logger = get_logger(__name__)

GRAPH_API_URL = "https://graph.facebook.com/v18.0"
POST_FIELDS = "likes.summary(true),comments.summary(true),shares,reactions.summary(true)"


@dataclass
class PostEngagement:
    post_id: str
    likes: int = 0
    comments: int = 0
    shares: int = 0
    reactions: int = 0


class SocialProvider(ABC):
    """Abstract base class for social network metrics"""

    @abstractmethod
    async def get_post_engagement(self, post_id: str, access_token: str) -> PostEngagement:
        pass

    @abstractmethod
    async def get_page(self, page_id: str, access_token: str) -> Dict[str, Any]:
        pass


def _summary_count(payload: Dict[str, Any], key: str) -> int:
    section = payload.get(key) or {}
    return int((section.get("summary") or {}).get("total_count", 0))


class FacebookMetricsProvider(SocialProvider):
    """Graph API client"""

    source_name = "facebook"

    def __init__(self, timeout_seconds: float = 10, base_url: str = GRAPH_API_URL):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.base_url = base_url

    async def get_post_engagement(self, post_id: str, access_token: str) -> PostEngagement:
        payload = await self._get(post_id, {"fields": POST_FIELDS, "access_token": access_token})
        return PostEngagement(
            post_id=post_id,
            likes=_summary_count(payload, "likes"),
            comments=_summary_count(payload, "comments"),
            shares=int((payload.get("shares") or {}).get("count", 0)),
            reactions=_summary_count(payload, "reactions"),
        )

    async def get_page(self, page_id: str, access_token: str) -> Dict[str, Any]:
        payload = await self._get(
            page_id, {"fields": "id,name,fan_count", "access_token": access_token}
        )
        return {
            "id": payload.get("id"),
            "name": payload.get("name"),
            "fanCount": payload.get("fan_count"),
        }

    async def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(f"{self.base_url}/{path}", params=params) as response:
                    body = await response.json(content_type=None)
                    if response.status != 200:
                        error = body.get("error", {}) if isinstance(body, dict) else {}
                        reason = error.get("message") or f"HTTP {response.status}"
                        logger.warning(
                            "Graph API request failed",
                            extra={"path": path, "status": response.status, "reason": reason},
                        )
                        raise UpstreamError(self.source_name, reason, response.status)
                    return body
        except (aiohttp.ClientError, ValueError) as e:
            raise UpstreamError(self.source_name, f"request failed: {type(e).__name__}")
