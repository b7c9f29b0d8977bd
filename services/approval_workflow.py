"""
Approval Workflow.

Approving a caption marks it approved and moves its content item to
`approved`: choosing any one caption is the content decision. The caption and
status writes commit together; only after the commit is the automation system
notified, and a failed notification is logged without touching the approval.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import ConflictError, NotFoundError
from core.logging_config import get_logger
from core.models import Caption, ContentItem, ContentStatus, utc_now
from services.caption_store import CaptionStore
from services.content_store import ContentItemStore
from services.notifier import OutboundNotifier
from services.settings_store import SettingsStore

logger = get_logger(__name__)


@dataclass
class ApprovalResult:
    caption: Caption
    content_item: ContentItem
    webhook_triggered: bool
    webhook_delivered: bool


class ApprovalWorkflow:
    """approve caption -> cascade status -> notify"""

    def __init__(self, session: AsyncSession, notifier: OutboundNotifier):
        self.session = session
        self.notifier = notifier
        self.captions = CaptionStore(session)
        self.content = ContentItemStore(session)
        self.settings = SettingsStore(session)

    async def approve_caption(self, caption_id: str, approver_id: str) -> ApprovalResult:
        result = await self.session.exec(
            select(Caption, ContentItem)
            .join(ContentItem, Caption.content_item_id == ContentItem.id)
            .where(Caption.id == caption_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Caption", caption_id)
        caption, item = row

        # Published items are final, so approval there is a conflict rather than a cascade
        if not ContentStatus.can_transition(item.status, ContentStatus.APPROVED):
            raise ConflictError(
                f"Content item is {item.status}; captions can no longer be approved",
                {"contentItemId": item.id, "status": item.status},
            )

        caption = await self.captions.approve(caption_id, approver_id)
        item = await self.content.set_status(item.id, ContentStatus.APPROVED)
        await self.session.commit()

        logger.info(
            "Caption approved",
            extra={
                "caption_id": caption.id,
                "content_item_id": item.id,
                "approved_by": approver_id,
            },
        )

        webhook_url = await self._webhook_url()
        delivered = False
        if webhook_url:
            delivered = await self.notifier.notify_best_effort(
                webhook_url, self._notification(caption, item, approver_id)
            )

        return ApprovalResult(
            caption=caption,
            content_item=item,
            webhook_triggered=webhook_url is not None,
            webhook_delivered=delivered,
        )

    async def _webhook_url(self) -> Optional[str]:
        return await self.settings.get_value("n8n_webhook_url") or os.getenv("N8N_WEBHOOK_URL") or None

    @staticmethod
    def _notification(caption: Caption, item: ContentItem, approver_id: str) -> Dict[str, Any]:
        return {
            "event": "caption_approved",
            "captionId": caption.id,
            "contentItemId": item.id,
            "driveFileId": item.drive_file_id,
            "caption": {
                "tone": caption.tone,
                "content": caption.content,
                "version": caption.version,
            },
            "content": {
                "filename": item.filename,
                "fileType": item.file_type,
                "driveUrl": item.drive_url,
                "embedUrl": item.embed_url,
            },
            "approvedBy": approver_id,
            "approvedAt": (caption.approved_at or utc_now()).isoformat(),
        }
