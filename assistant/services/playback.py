# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Per guild/channel playback ordering.

Voice replies for the same channel must be spoken one after another in
the order they were queued.  Each playback takes a ticket; the holder of
the head ticket plays, and releasing it wakes the waiters.
"""

import asyncio
import itertools
import logging
from collections import deque
from typing import Deque, Dict, Tuple

logger = logging.getLogger(__name__)

QueueKey = Tuple[str, str]


class PlaybackQueues:
    """FIFO of playback tickets per (guild_id, channel_id)."""

    def __init__(self) -> None:
        self._queues: Dict[QueueKey, Deque[int]] = {}
        self._cond = asyncio.Condition()
        self._tickets = itertools.count()

    def pending(self, guild_id: str, channel_id: str) -> int:
        """Tickets queued or playing for the channel."""
        return len(self._queues.get((guild_id, channel_id), ()))

    def enqueue(self, guild_id: str, channel_id: str) -> int:
        """Take a ticket at the back of the channel's queue."""
        ticket = next(self._tickets)
        self._queues.setdefault((guild_id, channel_id), deque()).append(ticket)
        return ticket

    async def wait_turn(self, guild_id: str, channel_id: str, ticket: int) -> None:
        """Block until ``ticket`` is at the head of its queue."""
        key = (guild_id, channel_id)
        async with self._cond:
            await self._cond.wait_for(lambda: self._queues[key][0] == ticket)

    async def release(self, guild_id: str, channel_id: str, ticket: int) -> None:
        """Remove ``ticket`` from its queue and wake the waiters."""
        key = (guild_id, channel_id)
        async with self._cond:
            queue = self._queues.get(key)
            if queue is not None:
                try:
                    queue.remove(ticket)
                except ValueError:
                    logger.warning("Playback ticket %d not queued for %s/%s", ticket, *key)
                if not queue:
                    del self._queues[key]
            self._cond.notify_all()
