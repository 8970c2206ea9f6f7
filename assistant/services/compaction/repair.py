# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Orphaned tool turn repair.

Dropping turns from the front of a conversation can leave ``tool`` turns
whose ``tool_call_id`` points at an assistant turn that is no longer in the
sequence.  Chat-completion APIs reject such context, so every compaction
result is passed through ``repair_tool_pairing`` before it is committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Set

from assistant.models import MessageRole, Turn

logger = logging.getLogger(__name__)


@dataclass
class RepairReport:
    """Result of a repair pass.

    Attributes:
        turns (List[Turn]): The repaired turn list with orphans removed.
        dropped_orphan_count (int): Number of orphaned tool turns dropped.
    """

    turns: List[Turn]
    dropped_orphan_count: int


def repair_tool_pairing(turns: Sequence[Turn]) -> RepairReport:
    """Remove tool turns that have no earlier assistant turn with the same call id.

    Args:
        turns (Sequence[Turn]): Conversation turns to scan.

    Returns:
        RepairReport: The cleaned turn list and how many turns were dropped.
    """
    seen_call_ids: Set[str] = set()
    repaired: List[Turn] = []
    dropped = 0

    for turn in turns:
        if turn.role == MessageRole.ASSISTANT and turn.tool_calls:
            seen_call_ids.update(tc.id for tc in turn.tool_calls)
        elif turn.role == MessageRole.TOOL and turn.tool_call_id not in seen_call_ids:
            logger.info("Dropped orphaned tool turn: tool_call_id=%s", turn.tool_call_id)
            dropped += 1
            continue
        repaired.append(turn)

    if dropped:
        logger.info("Repaired tool call/result pairing: dropped %d orphans", dropped)

    return RepairReport(turns=repaired, dropped_orphan_count=dropped)
