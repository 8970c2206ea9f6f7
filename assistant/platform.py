# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Interfaces of the chat-platform collaborators.

The engine never talks to a chat platform directly.  The adapter that
owns the platform session implements ``Bot`` (and optionally
``AudioPlayer``) and hands it to ``AssistantRuntime``.
"""

from typing import Any, List, Optional, Protocol

from assistant.models import Song


class Bot(Protocol):
    """Outbound operations provided by the platform adapter."""

    async def respond_to_message(
        self, channel_id: str, text: str, reply_ref: Any = None, ack_handle: Any = None
    ) -> None:
        """Send one reply and resolve the "please wait" placeholder."""
        ...

    async def respond_to_long_message(
        self, channel_id: str, chunks: List[str], reply_ref: Any = None, ack_handle: Any = None
    ) -> None:
        """Send an ordered multi-part reply and resolve the placeholder."""
        ...

    async def playback_response(self, voice: Any, text: str) -> None:
        """Speak ``text`` into the voice connection ``voice``."""
        ...

    async def send_message_to_channel(self, channel_id: str, text: str) -> None:
        """Post a message that is not a reply to anything."""
        ...

    async def find_voice_channel(self, guild_id: str, user_id: str) -> Optional[str]:
        """Id of the voice channel ``user_id`` is connected to, if any."""
        ...


class AudioPlayer(Protocol):
    """Plays queued songs into a voice channel.

    When a song ends by itself the adapter calls
    ``AssistantRuntime.song_finished(guild_id, channel_id)`` so the queue
    moves on to the next song.
    """

    async def play(self, guild_id: str, channel_id: str, song: Song) -> None:
        ...

    async def pause(self, guild_id: str, channel_id: str) -> None:
        ...

    async def stop(self, guild_id: str, channel_id: str) -> None:
        ...
