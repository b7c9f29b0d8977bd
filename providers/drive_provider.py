"""
Drive Provider

Lists the video and image files of a cloud drive folder and turns each one
into the descriptor shape accepted by content sync.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp

from core.exceptions import InvalidInputError, UpstreamError
from core.logging_config import get_logger

logger = get_logger(__name__)

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_FIELDS = "files(id,name,mimeType,createdTime,thumbnailLink,webViewLink)"

OAUTH_CLIENT_SECRET_PREFIX = "GOCSPX-"
API_KEY_PREFIX = "AIzaSy"


class DriveProvider(ABC):
    """Abstract base class for drive folder listings"""

    @abstractmethod
    async def list_media_files(self, folder_id: str, api_key: str) -> List[Dict[str, Any]]:
        """Return the folder's media files as sync descriptors."""
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass


def validate_api_key(api_key: Optional[str]) -> str:
    key = (api_key or "").strip()
    if not key:
        raise InvalidInputError("google_drive_api_key", "API key cannot be empty")
    if key.startswith(OAUTH_CLIENT_SECRET_PREFIX):
        raise InvalidInputError(
            "google_drive_api_key",
            "This is an OAuth client secret, not an API key. API keys start with "
            f"'{API_KEY_PREFIX}'",
        )
    if not key.startswith(API_KEY_PREFIX):
        raise InvalidInputError(
            "google_drive_api_key",
            f"Invalid API key format: API keys start with '{API_KEY_PREFIX}'",
        )
    return key


def to_sync_descriptor(drive_file: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map one Drive API file resource to a sync descriptor, or None if not media."""
    mime_type = drive_file.get("mimeType") or ""
    is_video = mime_type.startswith("video/")
    is_image = mime_type.startswith("image/")
    if not (is_video or is_image):
        return None

    file_id = drive_file["id"]
    if is_video:
        embed_url = f"https://drive.google.com/file/d/{file_id}/preview"
    else:
        embed_url = f"https://drive.google.com/uc?export=view&id={file_id}"

    return {
        "id": file_id,
        "filename": drive_file.get("name"),
        "fileType": "video" if is_video else "image",
        "uploadedAt": drive_file.get("createdTime"),
        "status": "pending_review",
        "driveUrl": f"https://drive.google.com/file/d/{file_id}/view",
        "thumbnailUrl": drive_file.get("thumbnailLink")
        or f"https://drive.google.com/thumbnail?id={file_id}&sz=w400",
        "embedUrl": embed_url,
        "mimeType": mime_type,
    }


class GoogleDriveProvider(DriveProvider):
    """Google Drive v3 files listing with an API key"""

    def __init__(self, timeout_seconds: float = 15):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def source_name(self) -> str:
        return "google_drive"

    async def list_media_files(self, folder_id: str, api_key: str) -> List[Dict[str, Any]]:
        folder_id = (folder_id or "").strip()
        if not folder_id:
            raise InvalidInputError("google_drive_folder_id", "Folder ID cannot be empty")
        api_key = validate_api_key(api_key)

        params = {
            "q": (
                f"'{folder_id}' in parents and "
                "(mimeType contains 'video/' or mimeType contains 'image/')"
            ),
            "fields": DRIVE_FIELDS,
            "key": api_key,
        }
        logger.info(
            "Fetching drive folder listing",
            extra={"folder_id": folder_id, "api_key_length": len(api_key)},
        )

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    DRIVE_FILES_URL, params=params, headers={"Accept": "application/json"}
                ) as response:
                    if response.status != 200:
                        reason = await self._error_message(response)
                        logger.warning(
                            "Drive listing failed",
                            extra={"status": response.status, "reason": reason},
                        )
                        raise UpstreamError(self.source_name, reason, response.status)
                    payload = await response.json()
        except aiohttp.ClientError as e:
            raise UpstreamError(self.source_name, f"request failed: {type(e).__name__}")

        files = [to_sync_descriptor(f) for f in payload.get("files", [])]
        files = [f for f in files if f is not None]
        logger.info(f"Fetched {len(files)} file(s) from drive", extra={"folder_id": folder_id})
        return files

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        text = await response.text()
        try:
            body = await response.json(content_type=None)
        except ValueError:
            return f"HTTP {response.status}: {text[:200]}"
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return body["error"].get("message") or f"HTTP {response.status}"
        return f"HTTP {response.status}: {text[:200]}"
