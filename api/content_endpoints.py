"""
Content and Caption Endpoints.

This module is the review surface of the dashboard: listing synced content
with its captions, pulling new files from the drive folder, and the caption
lifecycle (create, edit, approve).

Endpoints Provided:
- `GET /content`, `GET /content/{id}`: Content items with nested captions.
- `POST /content/sync`: Upserts a batch of drive file descriptors.
- `POST /drive/fetch`: Lists the configured drive folder.
- `POST /content/{id}/recaption`: Asks the automation system for new captions.
- `DELETE /content/{id}`: Removes an item with its captions and metrics (admin).
- `POST /content/{id}/captions`: Creates up to ten captions directly.
- `PUT /captions/{id}`: Edits a caption's text, bumping its version.
- `POST /captions/{id}/approve`: Approves a caption and its content item.

Every endpoint requires a bearer token. Path ids are validated as UUIDs before
any database access.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import InvalidInputError
from core.logging_config import get_logger, log_function_call
from core.models import ContentStatus, User
from core.validation import InputValidator
from providers.drive_provider import DriveProvider
from services.approval_workflow import ApprovalWorkflow
from services.caption_store import CaptionStore
from services.content_store import ContentDescriptor, ContentItemStore
from services.notifier import OutboundNotifier
from services.settings_store import SettingsStore

from .dependencies import (
    get_current_user,
    get_drive_provider,
    get_notifier,
    get_session,
    require_admin,
)
from .schemas import (
    CaptionResponse,
    ContentItemResponse,
    CreateCaptionsRequest,
    SyncRequest,
    UpdateCaptionRequest,
)

logger = get_logger(__name__)
router = APIRouter(tags=["Content Review"])


@router.get("/content")
@log_function_call(logger)
async def list_content(
    status: Optional[str] = Query(None),
    fileType: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """List content items, newest first, each with its captions"""
    if status:
        try:
            status = ContentStatus(status).value
        except ValueError:
            raise InvalidInputError("status", "Unknown content status")
    if fileType:
        fileType = InputValidator.validate_file_type(fileType)

    listing = await ContentItemStore(session).list_with_captions(status, fileType)
    return {"content": [ContentItemResponse.from_listing(entry) for entry in listing]}


@router.get("/content/{content_id}")
@log_function_call(logger)
async def get_content(
    content_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    content_id = InputValidator.validate_uuid(content_id)
    entry = await ContentItemStore(session).get_with_captions(content_id)
    return {"content": ContentItemResponse.from_listing(entry)}


@router.post("/content/sync")
@log_function_call(logger)
async def sync_content(
    request: SyncRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Upsert drive files by drive file id; each item commits on its own"""
    if not isinstance(request.contentItems, list):
        raise InvalidInputError("contentItems", "Content items array is required")

    descriptors = [ContentDescriptor.from_payload(item) for item in request.contentItems]
    synced_ids = await ContentItemStore(session).sync_batch(descriptors)

    logger.info(
        f"Synced {len(synced_ids)} content item(s)",
        extra={"synced_count": len(synced_ids), "user_id": current_user.id},
    )
    return {
        "message": f"Synced {len(synced_ids)} content item(s)",
        "syncedCount": len(synced_ids),
        "syncedIds": synced_ids,
    }


@router.post("/drive/fetch")
@log_function_call(logger)
async def fetch_drive_files(
    session: AsyncSession = Depends(get_session),
    provider: DriveProvider = Depends(get_drive_provider),
    current_user: User = Depends(get_current_user),
):
    """List the configured drive folder in sync-descriptor shape"""
    settings = SettingsStore(session)
    folder_id = await settings.get_value("google_drive_folder_id")
    api_key = await settings.get_value("google_drive_api_key")
    if not folder_id or not api_key:
        raise InvalidInputError(
            "settings",
            "Google Drive settings not configured. Configure the folder ID and API key "
            "in admin settings.",
        )

    files = await provider.list_media_files(folder_id, api_key)
    return {"files": files, "count": len(files)}


@router.post("/content/{content_id}/recaption")
@log_function_call(logger)
async def request_recaption(
    content_id: str,
    session: AsyncSession = Depends(get_session),
    notifier: OutboundNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    """Ask the automation system to generate new captions for an item"""
    content_id = InputValidator.validate_uuid(content_id)
    item = await ContentItemStore(session).get(content_id)

    webhook_url = await SettingsStore(session).get_value("n8n_recaption_webhook_url")
    if not webhook_url:
        raise InvalidInputError(
            "n8n_recaption_webhook_url", "Re-caption webhook URL is not configured"
        )

    await notifier.send(
        webhook_url,
        {
            "event": "recaption_requested",
            "contentItemId": item.id,
            "driveFileId": item.drive_file_id,
            "filename": item.filename,
            "fileType": item.file_type,
            "driveUrl": item.drive_url,
            "embedUrl": item.embed_url,
            "requestedBy": current_user.id,
        },
    )

    logger.info(
        "Re-caption requested",
        extra={"content_item_id": item.id, "user_id": current_user.id},
    )
    return {"message": "Re-caption requested", "contentItemId": item.id}


@router.delete("/content/{content_id}")
@log_function_call(logger)
async def delete_content(
    content_id: str,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    content_id = InputValidator.validate_uuid(content_id)
    removed = await ContentItemStore(session).delete(content_id)
    await session.commit()
    return {
        "message": "Content item deleted",
        "contentItemId": content_id,
        "captionsRemoved": removed,
    }


@router.post("/content/{content_id}/captions", status_code=201)
@log_function_call(logger)
async def create_captions(
    content_id: str,
    request: CreateCaptionsRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Create captions directly (all or none)"""
    content_id = InputValidator.validate_uuid(content_id)
    if not isinstance(request.captions, list):
        raise InvalidInputError("captions", "Captions array is required")

    await ContentItemStore(session).get(content_id)
    captions = await CaptionStore(session).create_batch(content_id, request.captions)
    await session.commit()

    logger.info(
        f"Created {len(captions)} caption(s)",
        extra={"content_item_id": content_id, "user_id": current_user.id},
    )
    return {"captions": [CaptionResponse.from_row(c) for c in captions]}


@router.put("/captions/{caption_id}")
@log_function_call(logger)
async def update_caption(
    caption_id: str,
    request: UpdateCaptionRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    caption_id = InputValidator.validate_uuid(caption_id)
    caption = await CaptionStore(session).update(
        caption_id, request.content, request.expectedVersion
    )
    await session.commit()
    return {"caption": CaptionResponse.from_row(caption)}


@router.post("/captions/{caption_id}/approve")
@log_function_call(logger)
async def approve_caption(
    caption_id: str,
    session: AsyncSession = Depends(get_session),
    notifier: OutboundNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    """Approve a caption; the content item follows and n8n is notified"""
    caption_id = InputValidator.validate_uuid(caption_id)
    result = await ApprovalWorkflow(session, notifier).approve_caption(
        caption_id, current_user.id
    )
    return {
        "message": "Caption approved",
        "captionId": result.caption.id,
        "contentItemId": result.content_item.id,
        "caption": CaptionResponse.from_row(result.caption),
        "webhookTriggered": result.webhook_triggered,
        "webhookDelivered": result.webhook_delivered,
    }
