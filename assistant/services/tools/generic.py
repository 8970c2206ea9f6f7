# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Generic tools: clock, news and video search.

News and video lookups call public HTTP APIs with ``httpx`` and hand the
raw JSON body to the model behind a short prefix.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set

import httpx

from assistant.config import GENERIC_TOOLS, settings
from assistant.errors import ToolExecutionError, UnknownToolError

logger = logging.getLogger(__name__)

# search_news argument -> currentsapi query parameter
_SEARCH_NEWS_PARAMS = {
    "keywords": "keywords",
    "endDate": "end_date",
    "newsType": "type",
    "country": "country",
    "category": "category",
    "domain": "domain",
    "domainsNot": "domains_not",
    "pageNumber": "page_number",
    "pageSize": "page_size",
    "limit": "limit",
}


class GenericTools:
    """Handler for every tool outside the reminder, music and voice families."""

    tool_names: Set[str] = GENERIC_TOOLS

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the handler.

        Args:
            clock (Callable[[], datetime]): Local wall-clock source.
            transport (Optional[httpx.AsyncBaseTransport]): Transport for the
                HTTP client. ``None`` uses the default network transport.
        """
        self._clock = clock
        self._transport = transport

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        """Dispatch generic tool calls by name."""
        if name == "get_current_time":
            return json.dumps({"current_time": self._clock().strftime("%H:%M:%S")})
        if name == "get_current_date":
            return json.dumps({"current_date": self._clock().strftime("%Y-%m-%d")})
        if name == "get_news":
            return await self._get_news()
        if name == "search_news":
            return await self._search_news(arguments)
        if name == "search_video":
            return await self._search_video(arguments)
        raise UnknownToolError(name)

    async def _get(self, url: str, params: Dict[str, Any]) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=settings.HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"failed to make GET request: {e}") from e
        if resp.status_code != 200:
            raise ToolExecutionError(f"API request failed with status code: {resp.status_code}")
        return resp.text

    async def _get_news(self) -> str:
        logger.info("User requested news")
        body = await self._get(
            f"{settings.NEWS_API_BASE_URL}/latest-news",
            {"language": "en", "apiKey": settings.NEWS_API_KEY},
        )
        return "News: " + body

    async def _search_news(self, arguments: Dict[str, Any]) -> str:
        logger.info("User requested search news")
        params: Dict[str, Any] = {"language": "en", "apiKey": settings.NEWS_API_KEY}
        for arg_name, param_name in _SEARCH_NEWS_PARAMS.items():
            value = arguments.get(arg_name)
            if value not in (None, ""):
                params[param_name] = value
        body = await self._get(f"{settings.NEWS_API_BASE_URL}/search", params)
        return "News: " + body

    async def _search_video(self, arguments: Dict[str, Any]) -> str:
        keyword = str(arguments.get("keyword", "")).strip()
        if not keyword:
            raise ToolExecutionError("keyword is required")
        logger.info("Searching videos for %r", keyword)
        body = await self._get(
            f"{settings.YOUTUBE_API_BASE_URL}/search",
            {
                "part": "snippet",
                "q": keyword,
                "maxResults": 5,
                "type": "video",
                "key": settings.YOUTUBE_API_KEY,
            },
        )
        return "Video: " + body
