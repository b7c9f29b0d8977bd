"""
Unit tests for the drive provider: API key checks, descriptor mapping and the
folder listing with a mocked aiohttp session.
"""
import aiohttp
import pytest

from core.exceptions import InvalidInputError, UpstreamError
from providers.drive_provider import (
    DRIVE_FILES_URL,
    GoogleDriveProvider,
    to_sync_descriptor,
    validate_api_key,
)

API_KEY = "AIzaSyTestKey0123456789"

VIDEO = {
    "id": "gdrive123456789",
    "name": "ad.mp4",
    "mimeType": "video/mp4",
    "createdTime": "2024-05-01T10:00:00.000Z",
    "thumbnailLink": "https://lh3.googleusercontent.com/thumb",
}
IMAGE = {"id": "gdrive987654321", "name": "banner.png", "mimeType": "image/png"}
DOCUMENT = {"id": "gdoc111111111", "name": "brief.pdf", "mimeType": "application/pdf"}


class TestValidateApiKey:

    def test_valid_key_is_trimmed(self):
        assert validate_api_key(f"  {API_KEY} ") == API_KEY

    @pytest.mark.parametrize("key", [None, "", "   ", "not-a-key"])
    def test_rejects_malformed_keys(self, key):
        with pytest.raises(InvalidInputError):
            validate_api_key(key)

    def test_rejects_oauth_client_secret(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_api_key("GOCSPX-abcdef")
        assert "OAuth client secret" in exc_info.value.details["reason"]


class TestToSyncDescriptor:

    def test_video(self):
        d = to_sync_descriptor(VIDEO)

        assert d["id"] == "gdrive123456789"
        assert d["fileType"] == "video"
        assert d["status"] == "pending_review"
        assert d["embedUrl"] == "https://drive.google.com/file/d/gdrive123456789/preview"
        assert d["driveUrl"] == "https://drive.google.com/file/d/gdrive123456789/view"
        assert d["thumbnailUrl"] == VIDEO["thumbnailLink"]
        assert d["uploadedAt"] == VIDEO["createdTime"]

    def test_image_without_thumbnail(self):
        d = to_sync_descriptor(IMAGE)

        assert d["fileType"] == "image"
        assert d["embedUrl"] == "https://drive.google.com/uc?export=view&id=gdrive987654321"
        assert d["thumbnailUrl"] == "https://drive.google.com/thumbnail?id=gdrive987654321&sz=w400"

    def test_non_media_is_skipped(self):
        assert to_sync_descriptor(DOCUMENT) is None


@pytest.mark.unit
class TestGoogleDriveProvider:

    @pytest.fixture
    def provider(self):
        return GoogleDriveProvider()

    def test_source_name(self, provider):
        assert provider.source_name == "google_drive"

    async def test_lists_media_files(self, provider, fake_http):
        http = fake_http(payload={"files": [VIDEO, DOCUMENT, IMAGE]})

        files = await provider.list_media_files("folder-1", API_KEY)

        assert [f["id"] for f in files] == ["gdrive123456789", "gdrive987654321"]
        method, url, kwargs = http.requests[0]
        assert url == DRIVE_FILES_URL
        assert kwargs["params"]["key"] == API_KEY
        assert "'folder-1' in parents" in kwargs["params"]["q"]

    async def test_empty_folder_listing(self, provider, fake_http):
        fake_http(payload={})
        assert await provider.list_media_files("folder-1", API_KEY) == []

    async def test_missing_folder_id(self, provider, fake_http):
        http = fake_http()
        with pytest.raises(InvalidInputError):
            await provider.list_media_files("  ", API_KEY)
        assert http.requests == []

    async def test_provider_error_message_is_surfaced(self, provider, fake_http):
        fake_http(status=403, payload={"error": {"message": "API key not valid"}})

        with pytest.raises(UpstreamError) as exc_info:
            await provider.list_media_files("folder-1", API_KEY)

        assert exc_info.value.status_code == 403
        assert "API key not valid" in exc_info.value.message

    async def test_non_json_error_body(self, provider, fake_http):
        fake_http(status=500, text="<html>oops</html>")

        with pytest.raises(UpstreamError) as exc_info:
            await provider.list_media_files("folder-1", API_KEY)

        assert exc_info.value.status_code == 502
        assert "HTTP 500" in exc_info.value.message

    async def test_network_failure(self, provider, fake_http):
        fake_http(error=aiohttp.ClientConnectionError("dns"))

        with pytest.raises(UpstreamError):
            await provider.list_media_files("folder-1", API_KEY)
