# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Orchestration loop: the single consumer of inbound messages.

Messages are processed strictly one at a time in arrival order; the next
message is not dequeued until the previous cycle (every LLM round-trip,
tool call, commit and persist) has finished.  Because only this task ever
mutates the conversation store, the store needs no lock.

Per message:
  forget        -> reset to the bootstrap sequence, persist, acknowledge
  blank         -> empty acknowledgement, nothing else
  otherwise     -> describe images, compose the user turn, run the
                   tool-call loop on a copy, then commit + compact +
                   persist + reply, or roll back + apologise
"""

import asyncio
import json
import logging
from typing import List, Optional, Sequence

from assistant.config import CompactionPolicy, settings
from assistant.errors import StorageError, TransportError
from assistant.models import InboundMessage, MessageRole, Turn
from assistant.services.attachments import AttachmentDescriber, ImageDescription
from assistant.services.compaction import compact_turns
from assistant.services.conversation_store import ConversationStore
from assistant.services.dispatcher import ReplyDispatcher
from assistant.services.llm_client import LLMClient
from assistant.services.prompts.base import APOLOGY_REPLY, FORGET_REPLY
from assistant.services.tool_loop import ToolCallLoop

logger = logging.getLogger(__name__)


def compose_user_text(message: InboundMessage, images: Sequence[ImageDescription] = ()) -> str:
    """JSON envelope giving the model addressable ids next to the text."""
    payload = {
        "userID": message.author_id,
        "userName": message.author_name,
        "guildID": message.guild_id,
        "textchannelID": message.channel_id,
        "images": [{"index": img.index, "description": img.description} for img in images],
        "content": message.text.strip(),
    }
    return json.dumps(payload, indent=1, ensure_ascii=False)


def is_blank(message: InboundMessage) -> bool:
    """No text after trimming and no image worth describing."""
    return not message.text.strip() and not any(a.is_image for a in message.attachments)


class Orchestrator:
    """Drains the inbound queue and runs one cycle per message."""

    def __init__(
        self,
        store: ConversationStore,
        tool_loop: ToolCallLoop,
        dispatcher: ReplyDispatcher,
        llm_client: LLMClient,
        describer: Optional[AttachmentDescriber] = None,
        compaction_policy: Optional[CompactionPolicy] = None,
        max_messages_to_keep: Optional[int] = None,
    ) -> None:
        self._store = store
        self._tool_loop = tool_loop
        self._dispatcher = dispatcher
        self._llm_client = llm_client
        self._describer = describer or AttachmentDescriber(llm_client)
        self._policy = compaction_policy or settings.COMPACTION_POLICY
        self._max_keep = (
            settings.MAX_MESSAGES_TO_KEEP if max_messages_to_keep is None else max_messages_to_keep
        )
        self._queue: "asyncio.Queue[InboundMessage]" = asyncio.Queue()
        self._shutdown = asyncio.Event()

    @property
    def queue_size(self) -> int:
        return self._queue.qsize()

    def submit(self, message: InboundMessage) -> None:
        """Enqueue a message. Safe to call from any producer on the loop."""
        self._queue.put_nowait(message)

    def stop(self) -> None:
        """Ask the loop to exit after the message it is working on."""
        self._shutdown.set()

    async def run(self) -> None:
        """Consume messages until ``stop()`` is called."""
        logger.info("Loop started")
        while not self._shutdown.is_set():
            message = await self._next_message()
            if message is None:
                break
            try:
                await self.process(message)
            except Exception:
                logger.exception("Unhandled error for user %s", message.author_id)
                self._dispatcher.dispatch(message, APOLOGY_REPLY)
            finally:
                self._queue.task_done()
        logger.info("Loop stopped")

    async def _next_message(self) -> Optional[InboundMessage]:
        """Next queued message, or None once shutdown wins the race."""
        get_task = asyncio.ensure_future(self._queue.get())
        stop_task = asyncio.ensure_future(self._shutdown.wait())
        try:
            await asyncio.wait({get_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not get_task.done():
                get_task.cancel()
        if get_task.done() and not get_task.cancelled():
            return get_task.result()
        return None

    async def process(self, message: InboundMessage) -> None:
        """Run one full cycle for ``message``."""
        user_id = message.author_id

        if message.forget:
            self._store.reset(user_id)
            self._persist()
            logger.info("Cleared history for user %s", user_id)
            self._dispatcher.dispatch(message, FORGET_REPLY)
            return

        if is_blank(message):
            logger.info("Empty message from %s, acknowledging", user_id)
            self._dispatcher.dispatch(message, "")
            return

        images = await self._describer.describe_all(message.attachments)
        user_turn = Turn(role=MessageRole.USER, content=compose_user_text(message, images))
        working: List[Turn] = self._store.get(user_id) + [user_turn]

        try:
            result = await self._tool_loop.run(working)
        except TransportError as e:
            logger.error("Cycle failed for user %s, rolling back: %s", user_id, e)
            self._dispatcher.dispatch(message, APOLOGY_REPLY)
            return

        turns = result.turns
        if len(turns) > self._max_keep:
            turns = await compact_turns(
                turns,
                self._policy,
                self._llm_client,
                self._store.base_instructions(user_id),
                self._max_keep,
            )
        self._store.replace(user_id, turns)
        self._persist()

        logger.info(
            "Answered %s after %d iteration(s), %d tool call(s)",
            user_id,
            result.iterations,
            result.tool_call_count,
        )
        self._dispatcher.dispatch(message, result.text)

    def _persist(self) -> None:
        try:
            self._store.persist()
        except StorageError as e:
            logger.warning("Failed to save chat history: %s", e)
