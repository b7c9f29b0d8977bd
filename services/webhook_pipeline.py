"""
Webhook Ingestion Pipeline.

Accepts caption-generation results from the automation system and stores
them against the right content item, or stores nothing.

Each delivery passes these gates in order; any of them ends the request:

1. Shared secret (`verify_webhook_secret`), before any database access.
2. Event dispatch: only `captions_generated` stores anything; other events are
   acknowledged and ignored.
3. Identity: `contentItemId`, `driveFileId` or both, parsed into a content
   reference and resolved by `IdentityResolver`.
4. Caption filtering: captions without a known tone or with fewer than ten
   characters of trimmed content are dropped; if none survive the delivery is
   rejected.
5. Re-verification: the content item is read again right before the write
   and the caller's drive file id must still match it.
6. One transaction for all caption rows. Any insert failure rolls back every
   row of the delivery.

Captions already stored for the item with the same tone and text are skipped,
so a redelivery that arrives after the first one committed does not duplicate
rows. Two identical deliveries running concurrently can both pass that check;
there is no uniqueness constraint on (content item, tone, text).
"""

import hmac
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import (
    InvalidInputError,
    LinkIntegrityError,
    TransactionFailureError,
    UnauthorizedError,
    ValidationError,
)
from core.logging_config import get_logger
from core.models import Caption, ContentItem, utc_now
from core.validation import InputValidator
from services.caption_store import CaptionDraft, CaptionStore
from services.identity_resolver import (
    ByBoth,
    ByExternalId,
    ContentReference,
    IdentityResolver,
    parse_content_reference,
)

logger = get_logger(__name__)

CAPTIONS_GENERATED = "captions_generated"


def verify_webhook_secret(provided: Optional[str]) -> None:
    """Reject the delivery unless it carries the configured shared secret."""
    expected = os.getenv("WEBHOOK_SECRET")
    if not expected:
        return
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Webhook rejected: invalid secret")
        raise UnauthorizedError("Invalid webhook secret")


@dataclass
class IngestionResult:
    content_item: ContentItem
    captions: List[Caption]
    skipped_duplicates: int = 0
    verified_at: datetime = field(default_factory=utc_now)


class WebhookIngestionPipeline:
    """Stores generated captions for one delivery"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.resolver = IdentityResolver(session)
        self.captions = CaptionStore(session)

    async def ingest(self, event: str, data: Any) -> Optional[IngestionResult]:
        if event != CAPTIONS_GENERATED:
            logger.info("Webhook event acknowledged without storage", extra={"event": event})
            return None

        if not isinstance(data, dict):
            raise InvalidInputError("data", "Event data object is required")

        reference = parse_content_reference(data.get("contentItemId"), data.get("driveFileId"))

        raw_captions = data.get("captions")
        if not isinstance(raw_captions, list):
            raise InvalidInputError("captions", "Captions array is required")

        item = await self.resolver.resolve(reference)

        drafts = self._filter_captions(raw_captions)
        if not drafts:
            raise ValidationError(
                "captions",
                "No valid captions provided. Captions must have tone "
                "(Professional/Casual/Engaging) and content (min 10 characters)",
                {"received": len(raw_captions)},
            )

        item = await self._reverify(item.id, reference)

        drafts, skipped = await self._drop_already_stored(item.id, drafts)
        inserted = await self._insert_atomically(item, drafts)

        logger.info(
            f"Stored {len(inserted)} caption(s)",
            extra={
                "content_item_id": item.id,
                "drive_file_id": item.drive_file_id,
                "file_name": item.filename,
                "caption_ids": [c.id for c in inserted],
                "received": len(raw_captions),
                "skipped_duplicates": skipped,
            },
        )
        return IngestionResult(content_item=item, captions=inserted, skipped_duplicates=skipped)

    @staticmethod
    def _filter_captions(raw_captions: List[Any]) -> List[CaptionDraft]:
        return [
            CaptionDraft(tone=c["tone"], content=c["content"].strip())
            for c in raw_captions
            if InputValidator.is_acceptable_generated_caption(c)
        ]

    async def _reverify(self, content_item_id: str, reference: ContentReference) -> ContentItem:
        fresh = await self.resolver.by_internal_id(content_item_id, refresh=True)

        supplied = None
        if isinstance(reference, (ByBoth, ByExternalId)):
            supplied = reference.drive_file_id

        if supplied is not None and supplied != fresh.drive_file_id:
            logger.error(
                "Drive file id drifted between resolution and write",
                extra={
                    "content_item_id": content_item_id,
                    "provided": supplied,
                    "actual": fresh.drive_file_id,
                },
            )
            raise LinkIntegrityError(content_item_id, supplied, fresh.drive_file_id)
        return fresh

    async def _drop_already_stored(self, content_item_id: str, drafts: List[CaptionDraft]):
        existing = {
            (c.tone, c.content.strip())
            for c in await self.captions.list_for_content(content_item_id)
        }
        fresh_drafts = []
        for draft in drafts:
            key = (draft.tone, draft.content)
            if key in existing:
                continue
            existing.add(key)
            fresh_drafts.append(draft)
        return fresh_drafts, len(drafts) - len(fresh_drafts)

    async def _insert_atomically(
        self, item: ContentItem, drafts: List[CaptionDraft]
    ) -> List[Caption]:
        # Rollback expires loaded rows; read the id before anything can fail
        content_item_id = item.id
        inserted = []
        try:
            for draft in drafts:
                inserted.append(
                    await self.captions.create(content_item_id, draft.tone, draft.content)
                )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Error storing captions, transaction rolled back",
                extra={"content_item_id": content_item_id, "attempted": len(drafts)},
                exc_info=True,
            )
            raise TransactionFailureError("store_generated_captions") from e
        return inserted
