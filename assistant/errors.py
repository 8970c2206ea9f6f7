# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Error taxonomy for the conversation engine.

Fatal to a cycle (state rolled back, user gets an apology):
  TransportError, ToolLoopExceeded

Fed back to the model as tool-result text:
  ToolError and its subclasses

Recovered locally:
  CompactionError (history left unchanged), StorageError (logged)
"""

import json


class AssistantError(Exception):
    """Base class for all engine errors."""


class TransportError(AssistantError):
    """The LLM call failed or returned no usable choice."""


class ToolLoopExceeded(TransportError):
    """The model kept requesting tools past the iteration ceiling."""

    def __init__(self, max_iterations: int) -> None:
        super().__init__(f"maximum tool call iterations ({max_iterations}) exceeded")
        self.max_iterations = max_iterations


class ToolError(AssistantError):
    """A tool call could not be completed.

    ``payload`` is the text handed back to the model in place of a result.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.payload = json.dumps({"error": message}, ensure_ascii=False)


class UnknownToolError(ToolError):
    """No handler is registered under the requested tool name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' not found")
        self.name = name


class ArgumentParseError(ToolError):
    """The model sent arguments that are not a JSON object."""


class ToolExecutionError(ToolError):
    """The handler ran and failed."""


class CompactionError(AssistantError):
    """History summarization failed."""


class StorageError(AssistantError):
    """Reading or writing a persisted JSON document failed."""
