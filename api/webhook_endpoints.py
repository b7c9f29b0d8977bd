"""
Inbound webhooks from the automation system and the drive watcher.

Both endpoints sit behind the shared-secret gate instead of a bearer token.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from core.logging_config import get_logger, log_function_call
from services.webhook_pipeline import WebhookIngestionPipeline

from .dependencies import get_session, verify_webhook
from .schemas import CaptionResponse, DriveWebhookRequest, N8nWebhookRequest

logger = get_logger(__name__)
router = APIRouter(prefix="/webhooks", tags=["Webhooks"], dependencies=[Depends(verify_webhook)])

DRIVE_FILE_EVENTS = {"file_created", "file_updated"}


@router.post("/n8n")
@log_function_call(logger)
async def receive_n8n_event(
    request: N8nWebhookRequest, session: AsyncSession = Depends(get_session)
):
    """Store generated captions; other events are acknowledged only"""
    result = await WebhookIngestionPipeline(session).ingest(request.event, request.data)
    if result is None:
        return {"received": True, "event": request.event}

    item = result.content_item
    return {
        "received": True,
        "event": request.event,
        "message": f"Successfully stored {len(result.captions)} caption(s)",
        "contentItemId": item.id,
        "driveFileId": item.drive_file_id,
        "filename": item.filename,
        "fileType": item.file_type,
        "captions": [CaptionResponse.from_row(c) for c in result.captions],
        "skippedDuplicates": result.skipped_duplicates,
        "verification": {
            "driveFileId": item.drive_file_id,
            "contentItemId": item.id,
            "captionCount": len(result.captions),
            "timestamp": result.verified_at.isoformat(),
        },
    }


@router.post("/drive")
@log_function_call(logger)
async def receive_drive_event(request: DriveWebhookRequest):
    if request.event in DRIVE_FILE_EVENTS:
        logger.info(
            f"Drive {request.event.replace('file_', 'file ')}",
            extra={
                "event": request.event,
                "file_id": request.fileId,
                "file_name": request.fileName,
                "file_type": request.fileType,
                "mime_type": request.mimeType,
                "received_at": datetime.now(timezone.utc).isoformat(),
            },
        )
    else:
        logger.debug("Unhandled drive event", extra={"event": request.event})
    return {"received": True, "event": request.event}
