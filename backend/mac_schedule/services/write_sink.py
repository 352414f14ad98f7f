from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Sequence

import httpx

from mac_schedule.utils.config import get_settings, is_webhook_configured
from mac_schedule.utils.csv_records import join_names

logger = logging.getLogger(__name__)


def build_booking_payload(session_id: str, names: Sequence[str]) -> Dict[str, Any]:
    return {
        "sessionId": session_id,
        "names": join_names(names),
        "count": len(names),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class WebhookWriteSink:
    """Fire-and-forget writer for the spreadsheet webhook.

    The webhook's response is opaque, so ``dispatch`` reports whether the request
    left this process, not whether the spreadsheet accepted it. One attempt per
    call, no retries.
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def is_configured(self) -> bool:
        return is_webhook_configured(self.url)

    async def dispatch(self, payload: Dict[str, Any]) -> bool:
        if not self.is_configured():
            logger.warning("Webhook URL not configured, skipping sync", extra={"url": self.url})
            return False

        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as error:
            logger.warning("Refusing to dispatch malformed payload", extra={"error": str(error)})
            return False

        try:
            await self._client.post(
                self.url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as error:
            logger.warning(
                "Webhook dispatch failed",
                extra={"url": self.url, "error": str(error), "payload": payload},
            )
            return False

        logger.info("Webhook dispatched", extra={"url": self.url, "payload": payload})
        return True

    async def push(self, session_id: str, merged_names: Sequence[str]) -> bool:
        return await self.dispatch(build_booking_payload(session_id, list(merged_names)))

    async def aclose(self) -> None:
        await self._client.aclose()


_write_sink: WebhookWriteSink | None = None


def get_write_sink() -> WebhookWriteSink:
    global _write_sink
    if not _write_sink:
        settings = get_settings()
        _write_sink = WebhookWriteSink(settings.bookings_webhook_url, timeout=settings.webhook_timeout_seconds)
    return _write_sink
