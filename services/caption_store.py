"""
Caption Store.

Creation, editing and approval of caption rows on an injected session.

Versioning: a caption is created at version 1 and every content edit moves it
to exactly the next version. Edits are compare-and-swap on the version column,
so two concurrent edits of the same caption cannot both land on the same
version; the loser gets a `ConflictError` and must reload.

The store flushes but does not commit; the caller owns the transaction.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.logging_config import get_logger
from core.models import Caption, CaptionStatus, utc_now
from core.validation import InputValidator, MAX_CAPTIONS_PER_BATCH

logger = get_logger(__name__)


@dataclass(frozen=True)
class CaptionDraft:
    tone: str
    content: str

    @classmethod
    def from_payload(cls, payload: Any) -> "CaptionDraft":
        if not isinstance(payload, dict):
            raise InvalidInputError("captions", "Each caption must have tone and content")
        return cls(
            tone=InputValidator.validate_tone(payload.get("tone")),
            content=InputValidator.validate_caption_content(payload.get("content")),
        )


class CaptionStore:
    """Caption persistence"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, caption_id: str) -> Caption:
        caption = await self.session.get(Caption, caption_id)
        if caption is None:
            raise NotFoundError("Caption", caption_id)
        return caption

    async def create(self, content_item_id: str, tone: str, content: str) -> Caption:
        caption = Caption(
            content_item_id=content_item_id,
            tone=InputValidator.validate_tone(tone),
            content=InputValidator.validate_caption_content(content),
            status=CaptionStatus.PENDING.value,
            version=1,
            created_at=utc_now(),
        )
        self.session.add(caption)
        await self.session.flush()
        return caption

    async def create_batch(
        self, content_item_id: str, captions: Sequence[Dict[str, Any]]
    ) -> List[Caption]:
        """Validate every caption first, then insert them in order."""
        if not captions:
            raise InvalidInputError("captions", "At least one caption is required")
        if len(captions) > MAX_CAPTIONS_PER_BATCH:
            raise InvalidInputError(
                "captions",
                f"Cannot create more than {MAX_CAPTIONS_PER_BATCH} captions at once",
            )

        drafts = [CaptionDraft.from_payload(c) for c in captions]
        created = []
        for draft in drafts:
            created.append(await self.create(content_item_id, draft.tone, draft.content))
        return created

    async def update(
        self, caption_id: str, new_content: str, expected_version: Optional[int] = None
    ) -> Caption:
        content = InputValidator.validate_caption_content(new_content)
        caption = await self.get(caption_id)
        current_version = caption.version

        if expected_version is not None and expected_version != current_version:
            raise ConflictError(
                "Caption was edited by someone else; reload and retry",
                {"captionId": caption_id, "currentVersion": current_version},
            )

        result = await self.session.execute(
            update(Caption)
            .where(Caption.id == caption_id, Caption.version == current_version)
            .values(
                content=content,
                version=current_version + 1,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(
                "Caption version moved during update",
                extra={"caption_id": caption_id, "expected_version": current_version},
            )
            raise ConflictError(
                "Caption was edited by someone else; reload and retry",
                {"captionId": caption_id, "expectedVersion": current_version},
            )

        await self.session.refresh(caption)
        logger.info(
            "Caption updated",
            extra={"caption_id": caption_id, "version": caption.version},
        )
        return caption

    async def approve(self, caption_id: str, approver_id: str) -> Caption:
        caption = await self.get(caption_id)
        if caption.status == CaptionStatus.APPROVED.value:
            # Approver and approval time are written once
            return caption

        caption.status = CaptionStatus.APPROVED.value
        caption.approved_by = approver_id
        caption.approved_at = utc_now()
        self.session.add(caption)
        await self.session.flush()
        return caption

    async def list_for_content(self, content_item_id: str) -> List[Caption]:
        result = await self.session.exec(
            select(Caption)
            .where(Caption.content_item_id == content_item_id)
            .order_by(Caption.created_at)
        )
        return list(result.all())
