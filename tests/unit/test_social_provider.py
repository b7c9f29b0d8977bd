"""
Unit tests for the Facebook Graph API metrics provider.
"""
import aiohttp
import pytest

from core.exceptions import UpstreamError
from providers.social_provider import GRAPH_API_URL, FacebookMetricsProvider, PostEngagement


@pytest.fixture
def provider():
    return FacebookMetricsProvider()


class TestGetPostEngagement:

    async def test_reads_summary_counts(self, provider, fake_http):
        http = fake_http(
            payload={
                "likes": {"summary": {"total_count": 12}},
                "comments": {"summary": {"total_count": 3}},
                "shares": {"count": 2},
                "reactions": {"summary": {"total_count": 20}},
            }
        )

        engagement = await provider.get_post_engagement("123_456", "token")

        assert engagement == PostEngagement(
            post_id="123_456", likes=12, comments=3, shares=2, reactions=20
        )
        method, url, kwargs = http.requests[0]
        assert url == f"{GRAPH_API_URL}/123_456"
        assert kwargs["params"]["access_token"] == "token"

    async def test_missing_sections_count_as_zero(self, provider, fake_http):
        fake_http(payload={"id": "123_456"})

        engagement = await provider.get_post_engagement("123_456", "token")

        assert (engagement.likes, engagement.comments, engagement.shares) == (0, 0, 0)

    async def test_graph_error(self, provider, fake_http):
        fake_http(
            status=400,
            payload={"error": {"message": "Invalid OAuth access token", "code": 190}},
        )

        with pytest.raises(UpstreamError) as exc_info:
            await provider.get_post_engagement("123_456", "expired")

        assert exc_info.value.status_code == 400
        assert "Invalid OAuth access token" in exc_info.value.message

    async def test_unparseable_body(self, provider, fake_http):
        fake_http(status=200, payload=None, text="not json")

        with pytest.raises(UpstreamError) as exc_info:
            await provider.get_post_engagement("123_456", "token")

        assert exc_info.value.status_code == 502


class TestGetPage:

    async def test_page_details(self, provider, fake_http):
        fake_http(payload={"id": "42", "name": "Acme", "fan_count": 1500})

        page = await provider.get_page("42", "token")

        assert page == {"id": "42", "name": "Acme", "fanCount": 1500}

    async def test_network_failure(self, provider, fake_http):
        fake_http(error=aiohttp.ServerTimeoutError("slow"))

        with pytest.raises(UpstreamError):
            await provider.get_page("42", "token")
