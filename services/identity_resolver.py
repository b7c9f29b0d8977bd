"""
Content Identity Resolution.

A content item is known by two identifiers: the internal row id and the drive
file id assigned by the cloud drive. Callers outside the dashboard (the caption
generation automation in particular) may send either one or both. This module
turns whatever was sent into exactly one `ContentItem`, or fails.

Key Components:
- `ByInternalId`, `ByExternalId`, `ByBoth`: the three shapes a reference can
  take. `parse_content_reference` builds one from raw request fields and
  validates identifier formats before any query runs.
- `IdentityResolver`: read-only lookups for each shape.

Resolution rules:
- Internal id only: primary key lookup, `NotFoundError` if absent.
- Drive file id only: lookup by the unique drive id, `NotFoundError` if
  absent. More than one row means the uniqueness constraint is missing; that
  is logged as a data-integrity problem and the first row is used.
- Both: the row must match on both columns at once; otherwise the pairing is
  stale or forged and `IdentityMismatchError` is raised.
"""

from dataclasses import dataclass
from typing import Any, Union

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import IdentityMismatchError, InvalidInputError, NotFoundError
from core.logging_config import get_logger
from core.models import ContentItem
from core.validation import InputValidator

logger = get_logger(__name__)


@dataclass(frozen=True)
class ByInternalId:
    content_item_id: str


@dataclass(frozen=True)
class ByExternalId:
    drive_file_id: str


@dataclass(frozen=True)
class ByBoth:
    content_item_id: str
    drive_file_id: str


ContentReference = Union[ByInternalId, ByExternalId, ByBoth]


def _present(value: Any) -> bool:
    return value is not None and value != ""


def parse_content_reference(content_item_id: Any, drive_file_id: Any) -> ContentReference:
    """Build a reference from optional request fields; no database access."""
    has_internal = _present(content_item_id)
    has_external = _present(drive_file_id)

    if not has_internal and not has_external:
        raise InvalidInputError(
            "contentItemId",
            "Either contentItemId or driveFileId must be provided",
        )

    external = (
        InputValidator.validate_drive_file_id(drive_file_id) if has_external else None
    )
    internal = (
        InputValidator.validate_uuid(content_item_id, "contentItemId")
        if has_internal
        else None
    )

    if internal and external:
        return ByBoth(content_item_id=internal, drive_file_id=external)
    if internal:
        return ByInternalId(content_item_id=internal)
    return ByExternalId(drive_file_id=external)


class IdentityResolver:
    """Maps a content reference to exactly one content item"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, reference: ContentReference) -> ContentItem:
        if isinstance(reference, ByBoth):
            return await self._resolve_pair(reference)
        if isinstance(reference, ByInternalId):
            return await self.by_internal_id(reference.content_item_id)
        if isinstance(reference, ByExternalId):
            return await self.by_external_id(reference.drive_file_id)
        raise TypeError(f"Unsupported content reference: {reference!r}")

    async def by_internal_id(self, content_item_id: str, refresh: bool = False) -> ContentItem:
        statement = select(ContentItem).where(ContentItem.id == content_item_id)
        if refresh:
            statement = statement.execution_options(populate_existing=True)
        result = await self.session.exec(statement)
        item = result.first()
        if item is None:
            raise NotFoundError("Content item", content_item_id)
        return item

    async def by_external_id(self, drive_file_id: str) -> ContentItem:
        result = await self.session.exec(
            select(ContentItem).where(ContentItem.drive_file_id == drive_file_id)
        )
        matches = result.all()

        if not matches:
            logger.warning(
                "Content item lookup failed",
                extra={"drive_file_id": drive_file_id},
            )
            raise NotFoundError("Content item", drive_file_id, field="driveFileId")

        if len(matches) > 1:
            logger.error(
                "Multiple content items share one drive file id",
                extra={
                    "drive_file_id": drive_file_id,
                    "content_item_ids": [m.id for m in matches],
                },
            )

        item = matches[0]
        logger.info(
            "Content item resolved by drive file id",
            extra={"drive_file_id": drive_file_id, "content_item_id": item.id},
        )
        return item

    async def _resolve_pair(self, reference: ByBoth) -> ContentItem:
        result = await self.session.exec(
            select(ContentItem).where(
                ContentItem.id == reference.content_item_id,
                ContentItem.drive_file_id == reference.drive_file_id,
            )
        )
        item = result.first()
        if item is None:
            logger.error(
                "Content identifiers do not refer to the same item",
                extra={
                    "content_item_id": reference.content_item_id,
                    "drive_file_id": reference.drive_file_id,
                },
            )
            raise IdentityMismatchError(reference.content_item_id, reference.drive_file_id)
        return item
