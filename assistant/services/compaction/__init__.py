# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
History compaction.

Runs after a successful cycle when a conversation holds more than
``MAX_MESSAGES_TO_KEEP`` turns.  Two policies are supported:

  truncate   (truncation.py)
      Keep the system turn plus the most recent user-turn groups, then
      drop orphaned tool turns (repair.py).

  summarize  (summarizer.py)
      Fold the history into the system turn with one LLM call and keep
      only the last user turn.  A failed summarization leaves the
      conversation untouched.

Usage:

    turns = await compact_turns(turns, CompactionPolicy.SUMMARIZE,
                                llm_client, base_instructions, max_keep=20)
"""

import logging
from typing import List, Optional, Sequence

from assistant.config import CompactionPolicy
from assistant.errors import CompactionError
from assistant.models import Turn
from assistant.services.compaction.repair import RepairReport, repair_tool_pairing
from assistant.services.compaction.summarizer import summarize_turns
from assistant.services.compaction.truncation import truncate_turns
from assistant.services.llm_client import LLMClient

logger = logging.getLogger(__name__)


def needs_compaction(turns: Sequence[Turn], max_keep: int) -> bool:
    """True when the conversation is over the compaction threshold."""
    return len(turns) > max_keep


async def compact_turns(
    turns: Sequence[Turn],
    policy: CompactionPolicy,
    llm_client: LLMClient,
    base_instructions: str,
    max_keep: int,
    model: Optional[str] = None,
) -> List[Turn]:
    """Reduce an oversized conversation with the configured policy.

    Args:
        turns (Sequence[Turn]): Conversation starting with a system turn.
        policy (CompactionPolicy): Which policy to apply.
        llm_client (LLMClient): Client used by the summarize policy.
        base_instructions (str): System content without a summary.
        max_keep (int): Compaction threshold and truncation ceiling.
        model (Optional[str]): Summarization model override.

    Returns:
        List[Turn]: The compacted conversation, or ``turns`` unchanged when
            no compaction was needed or summarization failed.
    """
    if not needs_compaction(turns, max_keep):
        return list(turns)

    if policy == CompactionPolicy.TRUNCATE:
        return truncate_turns(turns, max_keep)

    try:
        return await summarize_turns(turns, llm_client, base_instructions, model=model)
    except CompactionError as e:
        logger.warning("Summarization failed, keeping history unchanged: %s", e)
        return list(turns)


__all__ = [
    "RepairReport",
    "compact_turns",
    "needs_compaction",
    "repair_tool_pairing",
    "summarize_turns",
    "truncate_turns",
]
