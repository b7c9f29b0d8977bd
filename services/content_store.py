"""
Content Item Store.

Persistence for content items synced from the cloud drive: sync upserts keyed
by the drive file id, status writes guarded by the content lifecycle, and the
joined read used by the review screens.

The store never commits on its own except in `sync_batch`, whose contract is
per-item: every item that was written before a failure stays written, and a
retried sync converges because the upsert is keyed by the drive file id.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.logging_config import get_logger
from core.models import Caption, ContentItem, ContentStatus, PostMetrics, utc_now
from core.validation import InputValidator, MAX_SYNC_BATCH

logger = get_logger(__name__)


@dataclass
class ContentDescriptor:
    """What the drive tells us about one file."""

    drive_file_id: str
    filename: str
    file_type: str
    drive_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    embed_url: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "ContentDescriptor":
        if not isinstance(item, dict):
            raise InvalidInputError("contentItems", "Each content item must be an object")
        drive_file_id = item.get("id")
        filename = item.get("filename")
        if not isinstance(drive_file_id, str) or not drive_file_id.strip():
            raise InvalidInputError(
                "contentItems", "Each content item must have id, filename, and fileType"
            )
        if not isinstance(filename, str) or not filename.strip():
            raise InvalidInputError(
                "contentItems", "Each content item must have id, filename, and fileType"
            )
        return cls(
            drive_file_id=drive_file_id.strip(),
            filename=filename,
            file_type=InputValidator.validate_file_type(item.get("fileType")),
            drive_url=item.get("driveUrl"),
            thumbnail_url=item.get("thumbnailUrl"),
            embed_url=item.get("embedUrl"),
            mime_type=item.get("mimeType"),
        )


@dataclass
class ContentWithCaptions:
    item: ContentItem
    captions: List[Caption] = field(default_factory=list)


class ContentItemStore:
    """Content item persistence on an injected session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, content_item_id: str) -> ContentItem:
        item = await self.session.get(ContentItem, content_item_id)
        if item is None:
            raise NotFoundError("Content item", content_item_id)
        return item

    async def upsert_from_sync(self, descriptor: ContentDescriptor) -> Tuple[str, bool]:
        """
        Insert or refresh one synced file.

        Returns the internal id and whether a row was created. The drive file
        id and the status of an existing row are never touched.
        """
        result = await self.session.exec(
            select(ContentItem).where(ContentItem.drive_file_id == descriptor.drive_file_id)
        )
        existing = result.first()
        now = utc_now()

        if existing:
            existing.filename = descriptor.filename
            existing.file_type = descriptor.file_type
            existing.drive_url = descriptor.drive_url
            existing.thumbnail_url = descriptor.thumbnail_url
            existing.embed_url = descriptor.embed_url
            existing.mime_type = descriptor.mime_type
            existing.updated_at = now
            self.session.add(existing)
            await self.session.flush()
            return existing.id, False

        item = ContentItem(
            drive_file_id=descriptor.drive_file_id,
            filename=descriptor.filename,
            file_type=descriptor.file_type,
            drive_url=descriptor.drive_url,
            thumbnail_url=descriptor.thumbnail_url,
            embed_url=descriptor.embed_url,
            mime_type=descriptor.mime_type,
            status=ContentStatus.PENDING_REVIEW.value,
            uploaded_at=now,
        )
        self.session.add(item)
        try:
            await self.session.flush()
        except IntegrityError:
            # A concurrent sync inserted the same drive file first
            await self.session.rollback()
            raise ConflictError(
                "Content item already exists for this drive file",
                {"driveFileId": descriptor.drive_file_id},
            )
        logger.info(
            "Content item created from sync",
            extra={"content_item_id": item.id, "drive_file_id": item.drive_file_id},
        )
        return item.id, True

    async def sync_batch(self, descriptors: Sequence[ContentDescriptor]) -> List[str]:
        """Upsert each descriptor and commit it before moving to the next."""
        if not descriptors:
            raise InvalidInputError("contentItems", "Content items array cannot be empty")
        if len(descriptors) > MAX_SYNC_BATCH:
            raise InvalidInputError(
                "contentItems", f"Cannot sync more than {MAX_SYNC_BATCH} items at once"
            )

        synced_ids = []
        for descriptor in descriptors:
            content_item_id, _ = await self.upsert_from_sync(descriptor)
            await self.session.commit()
            synced_ids.append(content_item_id)
        return synced_ids

    async def set_status(self, content_item_id: str, new_status: ContentStatus) -> ContentItem:
        item = await self.get(content_item_id)
        if not ContentStatus.can_transition(item.status, new_status):
            raise ConflictError(
                f"Cannot move content item from {item.status} to {new_status.value}",
                {"contentItemId": content_item_id, "status": item.status},
            )
        item.status = new_status.value
        item.updated_at = utc_now()
        self.session.add(item)
        await self.session.flush()
        return item

    async def list_with_captions(
        self,
        status: Optional[str] = None,
        file_type: Optional[str] = None,
        drive_file_id: Optional[str] = None,
    ) -> List[ContentWithCaptions]:
        statement = select(ContentItem)
        if drive_file_id:
            statement = statement.where(ContentItem.drive_file_id == drive_file_id)
        if status:
            statement = statement.where(ContentItem.status == status)
        if file_type:
            statement = statement.where(ContentItem.file_type == file_type)
        statement = statement.order_by(col(ContentItem.uploaded_at).desc())

        items = (await self.session.exec(statement)).all()
        return await self._attach_captions(items)

    async def get_with_captions(self, content_item_id: str) -> ContentWithCaptions:
        item = await self.get(content_item_id)
        return (await self._attach_captions([item]))[0]

    async def _attach_captions(self, items: Sequence[ContentItem]) -> List[ContentWithCaptions]:
        grouped = {item.id: ContentWithCaptions(item=item) for item in items}
        if not grouped:
            return []

        result = await self.session.exec(
            select(Caption)
            .where(col(Caption.content_item_id).in_(list(grouped.keys())))
            .order_by(col(Caption.created_at))
        )
        for caption in result.all():
            grouped[caption.content_item_id].captions.append(caption)
        return list(grouped.values())

    async def delete(self, content_item_id: str) -> int:
        """Delete an item with its captions and metrics; returns removed caption count."""
        await self.get(content_item_id)
        removed = await self.session.execute(
            delete(Caption).where(Caption.content_item_id == content_item_id)
        )
        await self.session.execute(
            delete(PostMetrics).where(PostMetrics.content_item_id == content_item_id)
        )
        await self.session.execute(delete(ContentItem).where(ContentItem.id == content_item_id))
        await self.session.flush()
        logger.info(
            "Content item deleted",
            extra={"content_item_id": content_item_id, "captions_removed": removed.rowcount},
        )
        return removed.rowcount
