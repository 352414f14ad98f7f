from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class CsvFeedReader:
    """Downloads a published spreadsheet CSV export.

    Transport errors and non-success statuses resolve to ``None``; callers treat
    that as "remote state unknown".
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch_text(self) -> Optional[str]:
        try:
            response = await self._client.get(self.url)
        except httpx.HTTPError as error:
            logger.warning("CSV feed unreachable", extra={"url": self.url, "error": str(error)})
            return None

        if not response.is_success:
            logger.warning(
                "CSV feed not accessible",
                extra={"url": self.url, "status": response.status_code},
            )
            return None
        return response.text

    async def aclose(self) -> None:
        await self._client.aclose()
