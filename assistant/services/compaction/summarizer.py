# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Summarization policy.

One extra LLM call compresses the non-system turns into a summary that is
folded into the system turn.  Any summary already carried by the system
turn is passed to the model so summaries accumulate across passes.  The
result is always exactly ``[system, last user turn]``.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from assistant.config import settings
from assistant.errors import CompactionError, TransportError
from assistant.models import MessageRole, Turn
from assistant.services.llm_client import LLMClient
from assistant.services.prompts.base import (
    COMPRESSION_PROMPT,
    CONVERSATION_HISTORY_HEADER,
    split_summary,
    with_summary,
)

logger = logging.getLogger(__name__)


def _turns_to_text(turns: Sequence[Turn], previous_summary: str = "") -> str:
    """Flatten turns into the text handed to the summarization model.

    Format:
        Conversation history:
        System: <previous summary>     (only when one exists)
        user: ...
        assistant: ...
        assistant tool calls: name(args); name2(args)
        tool: ...

    Args:
        turns (Sequence[Turn]): Turns to flatten. System turns are skipped.
        previous_summary (str): Summary carried over from an earlier pass.

    Returns:
        str: Newline-terminated role-prefixed lines.
    """
    parts: List[str] = [CONVERSATION_HISTORY_HEADER]
    if previous_summary:
        parts.append(f"System: {previous_summary}\n")
    for turn in turns:
        if turn.role == MessageRole.SYSTEM:
            continue
        if turn.content:
            parts.append(f"{turn.role.value}: {turn.content}\n")
        if turn.tool_calls:
            calls = "; ".join(f"{tc.name}({tc.arguments})" for tc in turn.tool_calls)
            parts.append(f"{turn.role.value} tool calls: {calls}\n")
    return "".join(parts)


def _last_user_turn(turns: Sequence[Turn]) -> Optional[Turn]:
    for turn in reversed(turns):
        if turn.role == MessageRole.USER:
            return turn
    return None


async def summarize_turns(
    turns: Sequence[Turn],
    llm_client: LLMClient,
    base_instructions: str,
    model: Optional[str] = None,
) -> List[Turn]:
    """Compress a conversation into a summary-bearing system turn plus the last user turn.

    Args:
        turns (Sequence[Turn]): Conversation starting with a system turn.
        llm_client (LLMClient): Client for the summarization call.
        base_instructions (str): System content without any summary.
        model (Optional[str]): Model override. Defaults to
            ``settings.get_compression_model()``.

    Returns:
        List[Turn]: ``[system, last user turn]``.

    Raises:
        CompactionError: If there is no user turn to keep, the LLM call
            fails, or the model returns an empty summary.
    """
    last_user = _last_user_turn(turns)
    if last_user is None:
        raise CompactionError("no user turn to keep after summarization")

    previous_summary = ""
    if turns and turns[0].role == MessageRole.SYSTEM:
        _, previous_summary = split_summary(turns[0].content)

    request = [
        Turn(role=MessageRole.SYSTEM, content=COMPRESSION_PROMPT),
        Turn(role=MessageRole.USER, content=_turns_to_text(turns, previous_summary)),
    ]
    try:
        choice = await llm_client.chat_completion(
            model or settings.get_compression_model(), request, tools=None
        )
    except TransportError as e:
        raise CompactionError(f"summarization call failed: {e}") from e

    summary = choice.message.content.strip()
    if not summary:
        raise CompactionError("summarization returned an empty summary")

    logger.info("Summarized %d turns into %d chars", len(turns), len(summary))
    return [
        Turn(role=MessageRole.SYSTEM, content=with_summary(base_instructions, summary)),
        last_user,
    ]
