"""
Outbound webhook notifications to the automation system.

`send` delivers one JSON event and raises `UpstreamError` if delivery fails;
use it where the outbound call is the whole point of the request (re-caption).
`notify_best_effort` wraps `send` for side effects that must never fail the
caller (approval notification): it logs the failure and returns False. There
is no retry.
"""

import asyncio
from typing import Any, Dict

import aiohttp

from core.exceptions import UpstreamError
from core.logging_config import get_logger

logger = get_logger(__name__)


class OutboundNotifier:
    """POSTs JSON events to configured webhook URLs"""

    def __init__(self, timeout_seconds: float = 10):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def send(self, url: str, payload: Dict[str, Any]) -> None:
        event = payload.get("event")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload) as response:
                    if response.status >= 300:
                        body = await response.text()
                        logger.warning(
                            "Webhook delivery rejected",
                            extra={
                                "event": event,
                                "status": response.status,
                                "response_body": body[:500],
                            },
                        )
                        raise UpstreamError(
                            "n8n", f"webhook answered {response.status}", response.status
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError("n8n", f"webhook unreachable: {type(e).__name__}")

        logger.info("Webhook delivered", extra={"event": event})

    async def notify_best_effort(self, url: str, payload: Dict[str, Any]) -> bool:
        try:
            await self.send(url, payload)
            return True
        except Exception as e:
            logger.error(
                f"Webhook error (non-critical): {e}",
                extra={"event": payload.get("event")},
                exc_info=True,
            )
            return False
