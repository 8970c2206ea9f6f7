# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Truncation policy.

Keeps the system turn plus the most recent user-turn groups.  A group is a
``user`` turn together with the assistant and tool turns that follow it,
so a kept user turn is never separated from its answer.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from assistant.models import MessageRole, Turn
from assistant.services.compaction.repair import repair_tool_pairing

logger = logging.getLogger(__name__)


def _group_start_index(rest: Sequence[Turn], max_keep: int) -> int:
    """Index in ``rest`` where the kept tail begins.

    Walks backward counting user turns and only moves the cut at user turns,
    stopping before either the user-turn count or the turn count would exceed
    ``max_keep``.
    """
    cut = len(rest)
    user_count = 0
    for i in range(len(rest) - 1, -1, -1):
        if rest[i].role != MessageRole.USER:
            continue
        user_count += 1
        if user_count > max_keep or len(rest) - i > max_keep:
            break
        cut = i
    return cut


def truncate_turns(turns: Sequence[Turn], max_keep: int) -> List[Turn]:
    """Truncate a conversation to its system turn plus recent user-turn groups.

    When even the newest group is longer than ``max_keep`` turns, the last
    ``max_keep`` turns are kept and orphaned tool turns at the front are
    dropped.

    Args:
        turns (Sequence[Turn]): Conversation starting with a system turn.
        max_keep (int): Ceiling on kept user turns and on kept non-system turns.

    Returns:
        List[Turn]: The truncated conversation (never longer than
            ``max_keep + 1``).
    """
    if not turns:
        return []
    system, rest = turns[0], list(turns[1:])
    if len(rest) <= max_keep:
        return list(turns)

    cut = _group_start_index(rest, max_keep)
    if cut < len(rest):
        kept = rest[cut:]
    else:
        kept = rest[-max_keep:] if max_keep > 0 else []

    report = repair_tool_pairing(kept)
    logger.info(
        "Truncated history: %d -> %d turns",
        len(turns),
        len(report.turns) + 1,
    )
    return [system] + report.turns
