# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared test fixtures for the chat-assistant test suite."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from assistant.models import (
    Attachment,
    FinishReason,
    InboundMessage,
    LLMChoice,
    MessageRole,
    ToolCallInfo,
    Turn,
    VoiceConnectionRef,
)
from assistant.services.conversation_store import ConversationStore
from assistant.services.dispatcher import DispatchPool, ReplyDispatcher
from assistant.services.llm_client import LLMClient


# ---------------------------------------------------------------------------
# Turn / message factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_turn():
    """Factory fixture for creating Turn instances."""

    def _factory(
        role: MessageRole = MessageRole.USER,
        content: str = "hello",
        tool_call_id: Optional[str] = None,
        tool_calls: Optional[List[ToolCallInfo]] = None,
    ) -> Turn:
        return Turn(role=role, content=content, tool_call_id=tool_call_id, tool_calls=tool_calls)

    return _factory


@pytest.fixture
def make_message():
    """Factory fixture for creating InboundMessage instances."""

    def _factory(
        text: str = "hello",
        author_id: str = "u1",
        channel_id: str = "c1",
        guild_id: str = "g1",
        attachments: Optional[List[Attachment]] = None,
        forget: bool = False,
        playback: bool = False,
        voice: Optional[VoiceConnectionRef] = None,
        ack_handle: Any = "ack-1",
    ) -> InboundMessage:
        return InboundMessage(
            author_id=author_id,
            author_name=f"name-{author_id}",
            guild_id=guild_id,
            channel_id=channel_id,
            text=text,
            attachments=attachments or [],
            forget=forget,
            playback=playback,
            voice=voice,
            reply_ref="ref-1",
            ack_handle=ack_handle,
        )

    return _factory


# ---------------------------------------------------------------------------
# LLM response helpers
# ---------------------------------------------------------------------------


def _text_choice(text: str = "Hello!") -> LLMChoice:
    return LLMChoice(
        finish_reason=FinishReason.STOP.value,
        message=Turn(role=MessageRole.ASSISTANT, content=text),
    )


def _tool_choice(
    name: str = "get_current_time",
    args: Optional[Dict[str, Any]] = None,
    call_id: str = "call_1",
) -> LLMChoice:
    return LLMChoice(
        finish_reason=FinishReason.TOOL_CALLS.value,
        message=Turn(
            role=MessageRole.ASSISTANT,
            content="",
            tool_calls=[ToolCallInfo(id=call_id, name=name, arguments=json.dumps(args or {}))],
        ),
    )


@pytest.fixture
def text_choice():
    """Factory fixture for an LLMChoice carrying a final answer."""
    return _text_choice


@pytest.fixture
def tool_choice():
    """Factory fixture for an LLMChoice requesting a single tool call."""
    return _tool_choice


@pytest.fixture
def mock_llm_client():
    """Factory fixture for an LLMClient whose chat_completion is an AsyncMock."""

    def _factory(*choices: Any) -> MagicMock:
        client = MagicMock(spec=LLMClient)
        client.chat_completion = AsyncMock(side_effect=list(choices))
        return client

    return _factory


# ---------------------------------------------------------------------------
# Platform / engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_bot() -> AsyncMock:
    """Platform adapter with every outbound method as an AsyncMock."""
    bot = AsyncMock()
    bot.find_voice_channel.return_value = "vc-1"
    return bot


@pytest.fixture
def store(tmp_path) -> ConversationStore:
    """ConversationStore backed by a temp file."""
    return ConversationStore(str(tmp_path / "chat_history.json"), instructions="Be nice.")


@pytest.fixture
def dispatcher(mock_bot):
    """ReplyDispatcher over the mock bot with a fresh pool."""
    return ReplyDispatcher(mock_bot, DispatchPool(4), max_length=1900)
