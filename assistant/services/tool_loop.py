# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool-call loop: the only place a cycle talks to the chat model.

Each iteration sends the working turns plus every tool schema.  A
``tool_calls`` answer gets its assistant turn and one tool turn per call
appended, in request order, and the loop goes round again.  Any other
finish reason ends the loop with the assistant's text.  Tool failures are
data; LLM failures propagate as ``TransportError`` and the caller throws
the working turns away.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from assistant.config import settings
from assistant.errors import ToolLoopExceeded
from assistant.models import LLMChoice, Turn
from assistant.schemas.tool_schema import ALL_TOOL_SCHEMAS
from assistant.services.llm_client import LLMClient
from assistant.services.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ToolLoopResult:
    """Outcome of a completed loop.

    Attributes:
        text (str): The final assistant answer.
        turns (List[Turn]): Input turns plus every turn the loop appended.
        iterations (int): LLM round-trips performed.
        tool_call_count (int): Tool calls executed.
    """

    text: str
    turns: List[Turn] = field(default_factory=list)
    iterations: int = 0
    tool_call_count: int = 0


class ToolCallLoop:
    """Drives LLM round-trips and tool execution for one cycle."""

    def __init__(
        self,
        llm_client: LLMClient,
        registry: ToolRegistry,
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        max_iterations: Optional[int] = None,
    ) -> None:
        self._llm_client = llm_client
        self._registry = registry
        self._model = model or settings.CHAT_MODEL
        self._tools = ALL_TOOL_SCHEMAS if tools is None else tools
        self._max_iterations = (
            settings.MAX_TOOL_CALL_ITERATIONS if max_iterations is None else max_iterations
        )

    async def run(self, turns: Sequence[Turn]) -> ToolLoopResult:
        """Run the loop over a private copy of ``turns``.

        Args:
            turns (Sequence[Turn]): Conversation ending with the new user turn.

        Returns:
            ToolLoopResult: Final text and the enlarged turn list.

        Raises:
            TransportError: The LLM call failed or returned no choice.
            ToolLoopExceeded: The model was still requesting tools after
                ``max_iterations`` round-trips.
        """
        working: List[Turn] = list(turns)
        tool_call_count = 0

        for iteration in range(1, self._max_iterations + 1):
            choice = await self._llm_client.chat_completion(self._model, working, self._tools)
            working.append(choice.message)

            if not choice.wants_tools:
                logger.info(
                    "Done after %d iteration(s), finish_reason=%s",
                    iteration,
                    choice.finish_reason,
                )
                return ToolLoopResult(
                    text=choice.message.content,
                    turns=working,
                    iterations=iteration,
                    tool_call_count=tool_call_count,
                )

            tool_call_count += await self._execute_tool_calls(choice, working)

        logger.warning("Reached maximum iterations (%d)", self._max_iterations)
        raise ToolLoopExceeded(self._max_iterations)

    async def _execute_tool_calls(self, choice: LLMChoice, working: List[Turn]) -> int:
        """Execute calls sequentially and append one tool turn per call."""
        calls = choice.message.tool_calls or []
        for call in calls:
            result = await self._registry.execute(call)
            if result.is_error:
                logger.info("%s returned error: %s", call.name, result.content)
            working.append(result.to_turn())
        return len(calls)
