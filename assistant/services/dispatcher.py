# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Reply dispatcher: decides how a finished answer leaves the engine.

  playback + voice connection  -> spoken into the voice channel, in
                                  per-channel FIFO order (while music is
                                  playing there, an empty reply
                                  resolves the placeholder instead)
  longer than MAX_MESSAGE_LENGTH -> numbered "[Section i/N]" chunks
  otherwise                    -> a single reply

Every send runs as a fire-and-forget task on ``DispatchPool`` so the
orchestration loop never waits on platform I/O.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

from assistant.config import settings
from assistant.models import InboundMessage, VoiceConnectionRef
from assistant.platform import Bot
from assistant.services.playback import PlaybackQueues
from assistant.services.prompts.base import SECTION_HEADER
from assistant.services.tools.music import MusicQueueRegistry

logger = logging.getLogger(__name__)

DispatchFactory = Callable[[], Awaitable[Any]]


def split_reply(text: str, limit: int) -> List[str]:
    """Split ``text`` into consecutive chunks of at most ``limit`` characters.

    Python strings index by code point, so a multi-byte character is never
    cut in half.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    return [text[i : i + limit] for i in range(0, len(text), limit)]


def format_sections(chunks: List[str]) -> List[str]:
    """Prefix each chunk with ``[Section i/N]``."""
    total = len(chunks)
    return [SECTION_HEADER.format(index=i, total=total) + chunk for i, chunk in enumerate(chunks, 1)]


class DispatchPool:
    """Bounded pool of fire-and-forget send tasks.

    Failures are logged and swallowed.
    """

    def __init__(self, max_concurrency: Optional[int] = None) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.DISPATCH_CONCURRENCY)
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def submit(self, factory: DispatchFactory, label: str = "dispatch") -> asyncio.Task:
        """Schedule ``factory()`` and return immediately."""
        task = asyncio.create_task(self._run(factory, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, factory: DispatchFactory, label: str) -> None:
        async with self._semaphore:
            try:
                await factory()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s failed", label)

    async def drain(self, grace: Optional[float] = None) -> None:
        """Wait up to ``grace`` seconds for in-flight tasks, then cancel the rest."""
        if not self._tasks:
            return
        timeout = settings.SHUTDOWN_GRACE_SECONDS if grace is None else grace
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Cancelling %d task(s) after %.1fs grace", len(pending), timeout)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)


class ReplyDispatcher:
    """Chooses between voice playback, chunked and single replies."""

    def __init__(
        self,
        bot: Bot,
        pool: DispatchPool,
        playback: Optional[PlaybackQueues] = None,
        music: Optional[MusicQueueRegistry] = None,
        max_length: Optional[int] = None,
    ) -> None:
        self._bot = bot
        self._pool = pool
        self._playback = playback or PlaybackQueues()
        self._music = music
        self._max_length = max_length or settings.MAX_MESSAGE_LENGTH

    def dispatch(self, message: InboundMessage, text: str) -> asyncio.Task:
        """Send ``text`` as the reply to ``message``.

        A playback reply skipped because audio is already active in the
        channel still resolves the placeholder with an empty reply.

        Returns:
            asyncio.Task: The scheduled send.
        """
        if message.playback and message.voice is not None:
            voice = message.voice
            if self._music is None or not self._music.is_playing(voice.guild_id, voice.channel_id):
                return self._dispatch_playback(voice, text)
            logger.info(
                "Audio already active in %s/%s, skipping playback reply",
                voice.guild_id,
                voice.channel_id,
            )
            text = ""

        if len(text) > self._max_length:
            sections = format_sections(split_reply(text, self._max_length))
            logger.info("Sending %d sections to %s", len(sections), message.channel_id)
            return self._pool.submit(
                functools.partial(
                    self._bot.respond_to_long_message,
                    message.channel_id,
                    sections,
                    message.reply_ref,
                    message.ack_handle,
                ),
                label=f"long reply to {message.channel_id}",
            )

        return self._pool.submit(
            functools.partial(
                self._bot.respond_to_message,
                message.channel_id,
                text,
                message.reply_ref,
                message.ack_handle,
            ),
            label=f"reply to {message.channel_id}",
        )

    def _dispatch_playback(self, voice: VoiceConnectionRef, text: str) -> asyncio.Task:
        # Ticket is taken now so playbacks keep dispatch order.
        ticket = self._playback.enqueue(voice.guild_id, voice.channel_id)

        async def play() -> None:
            try:
                await self._playback.wait_turn(voice.guild_id, voice.channel_id, ticket)
                await self._bot.playback_response(voice.handle, text)
            finally:
                await self._playback.release(voice.guild_id, voice.channel_id, ticket)

        return self._pool.submit(play, label=f"playback to {voice.guild_id}/{voice.channel_id}")
