# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool registry: maps a requested tool name to its family handler.

Families are matched by substring on the tool name, in registration
order; names matching no family go to the generic family.  Inside a
family the name must match exactly.  ``execute`` never raises: every
failure comes back as a ``ToolResult`` with ``is_error`` set and a payload
the model can read.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from assistant.errors import ArgumentParseError, ToolError, UnknownToolError
from assistant.models import ToolCallInfo, ToolResult

logger = logging.getLogger(__name__)


class ToolFamily(Protocol):
    """A group of tools sharing one handler and one lock."""

    tool_names: Set[str]

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        ...


def parse_arguments(name: str, raw: str) -> Dict[str, Any]:
    """Decode a tool call's JSON argument bundle.

    Raises:
        ArgumentParseError: If ``raw`` is not a JSON object.
    """
    if not raw or not raw.strip():
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ArgumentParseError(f"Failed to parse arguments for function '{name}': {e}") from e
    if not isinstance(args, dict):
        raise ArgumentParseError(
            f"Failed to parse arguments for function '{name}': expected a JSON object"
        )
    return args


class ToolRegistry:
    """Routes tool calls to family handlers."""

    def __init__(self) -> None:
        self._families: List[Tuple[str, ToolFamily]] = []
        self._generic: Optional[ToolFamily] = None

    def register_family(self, keyword: str, family: ToolFamily) -> None:
        """Route tool names containing ``keyword`` to ``family``.

        Families are checked in the order they are registered.
        """
        self._families.append((keyword, family))

    def set_generic(self, family: ToolFamily) -> None:
        """Handler for tool names that match no registered family."""
        self._generic = family

    def resolve(self, name: str) -> ToolFamily:
        """Return the family handler that owns ``name``.

        Raises:
            UnknownToolError: If no family owns the exact name.
        """
        family = self._generic
        for keyword, candidate in self._families:
            if keyword in name:
                family = candidate
                break
        if family is None or name not in family.tool_names:
            raise UnknownToolError(name)
        return family

    async def execute(self, call: ToolCallInfo) -> ToolResult:
        """Execute one tool call.

        Args:
            call (ToolCallInfo): The call requested by the model.

        Returns:
            ToolResult: The handler's payload, or an error payload.
        """
        try:
            family = self.resolve(call.name)
            arguments = parse_arguments(call.name, call.arguments)
            logger.info("Executing tool %s with args: %s", call.name, arguments)
            payload = await family.execute(call.name, arguments)
        except ToolError as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=e.payload,
                is_error=True,
                error_kind=type(e).__name__,
            )
        except Exception as e:
            logger.exception("Tool %s raised", call.name)
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=json.dumps(
                    {"error": f"Execution of function '{call.name}' failed: {e}"},
                    ensure_ascii=False,
                ),
                is_error=True,
                error_kind=type(e).__name__,
            )
        return ToolResult(tool_call_id=call.id, name=call.name, content=payload)
