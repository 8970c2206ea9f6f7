# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared models for the application."""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Conversation turn role.

    Attributes:
        SYSTEM (str): Persona / instructions (always the first turn).
        USER (str): Composed inbound user text.
        ASSISTANT (str): Model output, optionally carrying tool calls.
        TOOL (str): Result of one tool call, correlated by ``tool_call_id``.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class FinishReason(str, Enum):
    """Terminal reasons reported by the chat-completion API that we act on."""

    STOP = "stop"
    TOOL_CALLS = "tool_calls"


class ToolCallInfo(BaseModel):
    """Single tool call descriptor returned by the LLM.

    Attributes:
        id (str): Unique identifier correlating call and result.
        name (str): Name of the tool function to invoke.
        arguments (str): JSON-encoded argument object, exactly as the model
            produced it (may be malformed).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: str = "{}"


class Turn(BaseModel):
    """One role-tagged entry of a conversation.

    Attributes:
        role (MessageRole): The role of the turn's author.
        content (str): The text content of the turn.
        tool_call_id (Optional[str]): For tool turns, the id of the call that
            produced this result.
        tool_calls (Optional[List[ToolCallInfo]]): For assistant turns, the
            tool calls the model requested.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str = ""
    tool_call_id: Optional[str] = None
    tool_calls: Optional[List[ToolCallInfo]] = None


class ToolResult(BaseModel):
    """Outcome of executing one tool call.

    Attributes:
        tool_call_id (str): Id of the originating call.
        name (str): Tool name that was requested.
        content (str): Payload fed back to the model (success or error text).
        is_error (bool): Whether execution failed.
        error_kind (Optional[str]): Error class name when ``is_error``.
    """

    tool_call_id: str
    name: str
    content: str
    is_error: bool = False
    error_kind: Optional[str] = None

    def to_turn(self) -> Turn:
        """Tool-role turn carrying this result."""
        return Turn(role=MessageRole.TOOL, content=self.content, tool_call_id=self.tool_call_id)


class LLMChoice(BaseModel):
    """First choice of a chat-completion response.

    Attributes:
        finish_reason (Optional[str]): Provider-reported finish reason.
        message (Turn): Assistant turn built from the response.
    """

    finish_reason: Optional[str] = None
    message: Turn

    @property
    def wants_tools(self) -> bool:
        """True when the model stopped to request one or more tool calls."""
        return self.finish_reason == FinishReason.TOOL_CALLS.value and bool(self.message.tool_calls)


class Attachment(BaseModel):
    """File attached to an inbound message."""

    model_config = ConfigDict(frozen=True)

    url: str
    content_type: str = ""
    filename: str = ""

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class VoiceConnectionRef(BaseModel):
    """Voice channel the reply may be played back into.

    ``handle`` is the platform's own voice-connection object; it is passed
    back to the platform untouched.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    guild_id: str
    channel_id: str
    handle: Any = None


class InboundMessage(BaseModel):
    """One unit of work for the orchestration loop.

    Attributes:
        author_id (str): Identity of the user; keys the conversation.
        author_name (str): Display name.
        guild_id (str): Guild / server identity.
        channel_id (str): Text channel the reply goes to.
        text (str): Raw message text.
        attachments (List[Attachment]): Files attached to the message.
        forget (bool): Reset the user's conversation instead of answering.
        playback (bool): Reply by voice playback instead of text.
        voice (Optional[VoiceConnectionRef]): Voice connection for playback.
        reply_ref (Any): Platform reference the reply should quote.
        ack_handle (Any): Opaque handle of the "please wait" placeholder.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    author_id: str
    author_name: str = ""
    guild_id: str = ""
    channel_id: str = ""
    text: str = ""
    attachments: List[Attachment] = Field(default_factory=list)
    forget: bool = False
    playback: bool = False
    voice: Optional[VoiceConnectionRef] = None
    reply_ref: Any = None
    ack_handle: Any = None


class Reminder(BaseModel):
    """A scheduled reminder message."""

    title: str
    description: str = ""
    time: datetime
    user_id: str
    channel_id: str
    uuid: str


class Song(BaseModel):
    """One entry of a music queue."""

    title: str
    id: str
    url: str


class SongQueue(BaseModel):
    """Song list for one guild/voice channel. ``songs[0]`` is the current song."""

    songs: List[Song] = Field(default_factory=list)
    is_playing: bool = False
