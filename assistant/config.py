# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Application configuration using pydantic-settings.
"""

from enum import Enum
from typing import Set

from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Tool family constants
# ---------------------------------------------------------------------------

# Substrings matched against a tool name, checked in this order.
REMINDER_FAMILY = "reminder"
MUSIC_FAMILY = "song"
VOICE_FAMILY = "voice"

REMINDER_TOOLS: Set[str] = {"create_reminder", "list_reminders", "delete_reminder"}

MUSIC_TOOLS: Set[str] = {
    "get_current_songList",
    "add_song",
    "remove_song",
    "play_song",
    "pause_song",
    "stop_song",
    "skip_song",
}

VOICE_TOOLS: Set[str] = {"find_voice_channel"}

GENERIC_TOOLS: Set[str] = {
    "get_current_time",
    "get_current_date",
    "get_news",
    "search_news",
    "search_video",
}


class CompactionPolicy(str, Enum):
    """History compaction strategy applied when a conversation grows too long.

    ``value`` is the string operators put in ``COMPACTION_POLICY``.
    """

    SUMMARIZE = "summarize"
    TRUNCATE = "truncate"


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        APP_NAME (str): Display name of the application.
        DEBUG (bool): Whether to enable debug logging.
        LOG_LEVEL (str): Root log level when DEBUG is off.
        OPENROUTER_API_KEY (str): API key for the chat-completion provider.
        OPENROUTER_BASE_URL (str): OpenAI-compatible endpoint base URL.
        CHAT_MODEL (str): Model used by the tool-call loop.
        COMPRESSION_MODEL (str): Model used for history summarization.
            Falls back to CHAT_MODEL when empty.
        IMAGE_MODEL (str): Model used for attachment descriptions.
            Falls back to CHAT_MODEL when empty.
        INSTRUCTIONS (str): Persona / instructions seeded into every
            conversation's system turn.
        MAX_MESSAGE_LENGTH (int): Reply chunk size in characters.
        MAX_MESSAGES_TO_KEEP (int): Turn ceiling that triggers compaction.
        MAX_TOOL_CALL_ITERATIONS (int): LLM round-trips allowed per cycle.
        COMPACTION_POLICY (CompactionPolicy): ``summarize`` or ``truncate``.
        DISPATCH_CONCURRENCY (int): Concurrent outbound dispatch tasks.
        SHUTDOWN_GRACE_SECONDS (float): Grace period for in-flight
            dispatches at shutdown.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Chat Assistant"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # LLM provider (OpenAI-compatible, OpenRouter by default)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_REFERER: str = "http://localhost"
    OPENROUTER_APP_TITLE: str = "Chat Assistant"
    CHAT_MODEL: str = "google/gemini-2.5-flash"
    COMPRESSION_MODEL: str = ""
    IMAGE_MODEL: str = ""
    INSTRUCTIONS: str = (
        "You are a friendly assistant living in a chat server. Keep answers short "
        "unless the user asks for detail, and use the available tools when they help."
    )

    # Conversation engine
    MAX_MESSAGE_LENGTH: int = 1900
    MAX_MESSAGES_TO_KEEP: int = 20
    MAX_TOOL_CALL_ITERATIONS: int = 10
    COMPACTION_POLICY: CompactionPolicy = CompactionPolicy.SUMMARIZE

    # Persisted state
    CHAT_HISTORY_FILE_PATH: str = "chat_history.json"
    REMINDERS_FILE_PATH: str = "reminders.json"
    SONG_QUEUE_FILE_PATH: str = "song_queues.json"

    # Tools
    REMINDER_UTC_OFFSET: str = "+08:00"
    REMINDER_RETRY_SECONDS: float = 30.0
    NEWS_API_KEY: str = ""
    NEWS_API_BASE_URL: str = "https://api.currentsapi.services/v1"
    YOUTUBE_API_KEY: str = ""
    YOUTUBE_API_BASE_URL: str = "https://www.googleapis.com/youtube/v3"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Dispatch / lifecycle
    DISPATCH_CONCURRENCY: int = 4
    SHUTDOWN_GRACE_SECONDS: float = 5.0

    def get_compression_model(self) -> str:
        """Model for history summarization (CHAT_MODEL when unset)."""
        return self.COMPRESSION_MODEL or self.CHAT_MODEL

    def get_image_model(self) -> str:
        """Model for attachment descriptions (CHAT_MODEL when unset)."""
        return self.IMAGE_MODEL or self.CHAT_MODEL


settings = Settings()
