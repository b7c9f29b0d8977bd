"""
Caption link verification.

Read-only audit of caption ownership: every caption listed under a content
item must still point at that item, and no caption may point at an item that
does not exist.

The ownership re-read runs in the same session right after the listing, so
it only reports captions moved by another writer between the two reads.
Orphaned captions are the signal that matters after a bad write.
"""

from typing import Any, Dict, List, Optional

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.logging_config import get_logger
from core.models import Caption, ContentItem
from services.content_store import ContentItemStore

logger = get_logger(__name__)


class CaptionLinkVerifier:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.content = ContentItemStore(session)

    async def verify(self, drive_file_id: Optional[str] = None) -> Dict[str, Any]:
        listing = await self.content.list_with_captions(drive_file_id=drive_file_id)

        caption_ids = [c.id for entry in listing for c in entry.captions]
        owners = await self._current_owners(caption_ids)

        issues = 0
        items: List[Dict[str, Any]] = []
        for entry in listing:
            mismatched = []
            for caption in entry.captions:
                owner = owners.get(caption.id)
                if owner != entry.item.id:
                    mismatched.append(
                        {"captionId": caption.id, "expected": entry.item.id, "actual": owner}
                    )
            issues += len(mismatched)
            items.append(
                {
                    "contentItemId": entry.item.id,
                    "driveFileId": entry.item.drive_file_id,
                    "filename": entry.item.filename,
                    "fileType": entry.item.file_type,
                    "captionCount": len(entry.captions),
                    "mismatchedCaptions": mismatched,
                }
            )

        orphaned = await self._orphaned_captions()
        issues += len(orphaned)

        if issues:
            logger.warning(
                "Caption link verification found issues",
                extra={"issues": issues, "orphaned": len(orphaned)},
            )
        else:
            logger.info("Caption link verification passed", extra={"items": len(items)})

        return {
            "items": items,
            "orphanedCaptions": orphaned,
            "issues": issues,
            "passed": issues == 0,
        }

    async def _current_owners(self, caption_ids: List[str]) -> Dict[str, str]:
        if not caption_ids:
            return {}
        result = await self.session.exec(
            select(Caption.id, Caption.content_item_id).where(col(Caption.id).in_(caption_ids))
        )
        return {caption_id: owner for caption_id, owner in result.all()}

    async def _orphaned_captions(self) -> List[Dict[str, Any]]:
        result = await self.session.exec(
            select(Caption)
            .outerjoin(ContentItem, Caption.content_item_id == ContentItem.id)
            .where(col(ContentItem.id).is_(None))
        )
        return [
            {
                "captionId": caption.id,
                "contentItemId": caption.content_item_id,
                "tone": caption.tone,
                "status": caption.status,
            }
            for caption in result.all()
        ]
