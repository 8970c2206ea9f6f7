# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Image attachment descriptions.

Each image is downloaded, inlined as a base64 data URI and described by a
one-shot vision call that bypasses the tool-call loop.  Failures are
logged and produce an empty description; they never abort a cycle.
"""

import base64
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
from langchain_core.messages import HumanMessage

from assistant.config import settings
from assistant.errors import TransportError
from assistant.models import Attachment
from assistant.services.llm_client import LLMClient
from assistant.services.prompts.base import IMAGE_DESCRIPTION_PROMPT

logger = logging.getLogger(__name__)


@dataclass
class ImageDescription:
    """Description of one attachment; ``index`` is its position in the message."""

    index: int
    description: str


def detect_content_type(data: bytes, declared: str = "") -> str:
    """Declared type when it is an image type, else sniff JPEG/PNG magic bytes."""
    if declared.startswith("image/"):
        return declared
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    return "application/octet-stream"


def to_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class AttachmentDescriber:
    """Turns image attachments into text via the vision model."""

    def __init__(
        self,
        llm_client: LLMClient,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._llm_client = llm_client
        self._model = model or settings.get_image_model()
        self._transport = transport

    async def _download(self, url: str) -> bytes:
        async with httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.content

    async def describe(self, attachment: Attachment) -> str:
        """Describe one image. Returns ``""`` on any failure."""
        try:
            data = await self._download(attachment.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Failed to download attachment %s: %s", attachment.url, e)
            return ""

        data_uri = to_data_uri(data, detect_content_type(data, attachment.content_type))
        message = HumanMessage(
            content=[
                {"type": "text", "text": IMAGE_DESCRIPTION_PROMPT},
                {"type": "image_url", "image_url": {"url": data_uri}},
            ]
        )
        try:
            choice = await self._llm_client.chat_completion(self._model, [message], tools=None)
        except TransportError as e:
            logger.warning("Vision call failed for %s: %s", attachment.url, e)
            return ""
        return choice.message.content.strip()

    async def describe_all(self, attachments: Sequence[Attachment]) -> List[ImageDescription]:
        """Describe every image attachment, in order, keeping original indices."""
        descriptions: List[ImageDescription] = []
        for index, attachment in enumerate(attachments):
            if not attachment.is_image:
                continue
            descriptions.append(ImageDescription(index=index, description=await self.describe(attachment)))
        return descriptions
