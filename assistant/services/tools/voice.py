# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Voice channel lookup tool."""

import logging
from typing import Any, Dict, Set

from assistant.config import VOICE_TOOLS
from assistant.errors import ToolExecutionError, UnknownToolError
from assistant.platform import Bot

logger = logging.getLogger(__name__)


class VoiceTools:
    """Voice family handler backed by the platform adapter."""

    tool_names: Set[str] = VOICE_TOOLS

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        if name != "find_voice_channel":
            raise UnknownToolError(name)
        gid = str(arguments.get("gid", ""))
        user_id = str(arguments.get("userid", ""))
        if not gid or not user_id:
            raise ToolExecutionError("gid and userid are required")
        channel_id = await self._bot.find_voice_channel(gid, user_id)
        if not channel_id:
            raise ToolExecutionError(f"User {user_id} is not in a voice channel")
        return channel_id
