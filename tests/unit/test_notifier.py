"""
Unit tests for outbound webhook notifications with aiohttp replaced by a fake session.
"""
import aiohttp
import pytest

from core.exceptions import UpstreamError
from services.notifier import OutboundNotifier

URL = "https://n8n.example.com/webhook/caption-approved"
PAYLOAD = {"event": "caption_approved", "captionId": "abc"}


class TestSend:

    async def test_posts_json_payload(self, fake_http):
        http = fake_http(status=200)

        await OutboundNotifier().send(URL, PAYLOAD)

        method, url, kwargs = http.requests[0]
        assert method == "POST"
        assert url == URL
        assert kwargs["json"] == PAYLOAD

    async def test_server_error_raises_upstream_error(self, fake_http):
        fake_http(status=500, text="boom")

        with pytest.raises(UpstreamError) as exc_info:
            await OutboundNotifier().send(URL, PAYLOAD)

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["providerStatus"] == 500

    async def test_client_error_status_passes_through(self, fake_http):
        fake_http(status=404, text="no such webhook")

        with pytest.raises(UpstreamError) as exc_info:
            await OutboundNotifier().send(URL, PAYLOAD)

        assert exc_info.value.status_code == 404

    async def test_unreachable(self, fake_http):
        fake_http(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(UpstreamError) as exc_info:
            await OutboundNotifier().send(URL, PAYLOAD)

        assert "ClientConnectionError" in exc_info.value.message


class TestNotifyBestEffort:

    async def test_delivered(self, fake_http):
        fake_http(status=204)
        assert await OutboundNotifier().notify_best_effort(URL, PAYLOAD) is True

    async def test_failure_is_swallowed(self, fake_http):
        fake_http(status=503)
        assert await OutboundNotifier().notify_best_effort(URL, PAYLOAD) is False

    async def test_connection_failure_is_swallowed(self, fake_http):
        fake_http(error=aiohttp.ClientConnectionError("refused"))
        assert await OutboundNotifier().notify_best_effort(URL, PAYLOAD) is False
