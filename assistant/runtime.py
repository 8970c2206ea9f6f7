# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Runtime wiring.

``AssistantRuntime`` builds every engine component from ``Settings`` and a
platform ``Bot``, loads persisted state on ``start()`` and shuts down in
order on ``stop()``: loop first, then in-flight replies, then reminders.
"""

import asyncio
import logging
from typing import Optional

import httpx

from assistant.config import Settings, settings
from assistant.errors import StorageError
from assistant.models import InboundMessage
from assistant.platform import AudioPlayer, Bot
from assistant.services.attachments import AttachmentDescriber
from assistant.services.conversation_store import ConversationStore
from assistant.services.dispatcher import DispatchPool, ReplyDispatcher
from assistant.services.llm_client import LLMClient
from assistant.services.orchestrator import Orchestrator
from assistant.services.playback import PlaybackQueues
from assistant.services.tool_loop import ToolCallLoop
from assistant.services.tools import (
    GenericTools,
    MusicQueueRegistry,
    MusicTools,
    ReminderScheduler,
    ReminderTools,
    VoiceTools,
    build_registry,
)

logger = logging.getLogger(__name__)


class AssistantRuntime:
    """Owns the engine components and their lifecycle."""

    def __init__(
        self,
        bot: Bot,
        config: Settings = settings,
        llm_client: Optional[LLMClient] = None,
        audio_player: Optional[AudioPlayer] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the runtime.

        Args:
            bot (Bot): Platform adapter used for every outbound operation.
            config (Settings): Application settings.
            llm_client (Optional[LLMClient]): Chat-completion client.
                Defaults to one backed by ``ChatOpenAI``.
            audio_player (Optional[AudioPlayer]): Plays music queues. Music
                tools that need audio fail without one.
            http_transport (Optional[httpx.AsyncBaseTransport]): Transport
                for outbound HTTP (news, video, attachment downloads).
        """
        self.settings = config
        self.bot = bot
        self.llm_client = llm_client or LLMClient()

        self.store = ConversationStore(config.CHAT_HISTORY_FILE_PATH, config.INSTRUCTIONS)

        self.reminders = ReminderTools(config.REMINDERS_FILE_PATH, utc_offset=config.REMINDER_UTC_OFFSET)
        self.scheduler = ReminderScheduler(
            bot.send_message_to_channel,
            on_delivered=self.reminders.mark_delivered,
            retry_seconds=config.REMINDER_RETRY_SECONDS,
        )
        self.reminders.attach_scheduler(self.scheduler)

        self.music_queues = MusicQueueRegistry(config.SONG_QUEUE_FILE_PATH)
        self.music = MusicTools(self.music_queues, audio_player)
        self.registry = build_registry(
            self.reminders,
            self.music,
            VoiceTools(bot),
            GenericTools(transport=http_transport),
        )

        self.pool = DispatchPool(config.DISPATCH_CONCURRENCY)
        self.dispatcher = ReplyDispatcher(
            bot,
            self.pool,
            playback=PlaybackQueues(),
            music=self.music_queues,
            max_length=config.MAX_MESSAGE_LENGTH,
        )
        self.tool_loop = ToolCallLoop(
            self.llm_client,
            self.registry,
            model=config.CHAT_MODEL,
            max_iterations=config.MAX_TOOL_CALL_ITERATIONS,
        )
        self.orchestrator = Orchestrator(
            self.store,
            self.tool_loop,
            self.dispatcher,
            self.llm_client,
            describer=AttachmentDescriber(
                self.llm_client, model=config.get_image_model(), transport=http_transport
            ),
            compaction_policy=config.COMPACTION_POLICY,
            max_messages_to_keep=config.MAX_MESSAGES_TO_KEEP,
        )
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def queue_size(self) -> int:
        return self.orchestrator.queue_size

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def submit(self, message: InboundMessage) -> None:
        """Hand an inbound message to the orchestration loop."""
        self.orchestrator.submit(message)

    async def song_finished(self, guild_id: str, channel_id: str) -> None:
        """Move a voice channel's queue on after its song ended."""
        await self.music.song_finished(guild_id, channel_id)

    def _load_state(self) -> None:
        for name, load in (
            ("chat history", self.store.load),
            ("song queues", self.music_queues.load),
        ):
            try:
                load()
            except StorageError as e:
                logger.error("Failed to load %s, starting empty: %s", name, e)
        try:
            pending = self.reminders.load()
        except StorageError as e:
            logger.error("Failed to load reminders, starting empty: %s", e)
            pending = []
        for reminder in pending:
            self.scheduler.schedule(reminder)

    async def start(self) -> None:
        """Load persisted state and start the scheduler and the loop."""
        if self.running:
            return
        self._load_state()
        self.scheduler.start()
        self._loop_task = asyncio.create_task(self.orchestrator.run(), name="orchestrator")
        logger.info("Assistant runtime started (model=%s)", self.settings.CHAT_MODEL)

    async def stop(self) -> None:
        """Stop between messages, drain replies within the grace period, stop reminders."""
        self.orchestrator.stop()
        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None
        await self.pool.drain(self.settings.SHUTDOWN_GRACE_SECONDS)
        await self.scheduler.stop()
        logger.info("Assistant runtime stopped")
