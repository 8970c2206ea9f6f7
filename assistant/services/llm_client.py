# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
LLM client: single chat-completion entry point.

``chat_completion(model, turns, tools)`` is used by the tool-call loop and
by the one-shot vision and summarization calls.  Transport failures and
responses without a usable choice are raised as ``TransportError``; the
caller decides what that means for the cycle.
"""

import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from assistant.config import settings
from assistant.errors import TransportError
from assistant.models import FinishReason, LLMChoice, MessageRole, ToolCallInfo, Turn

logger = logging.getLogger(__name__)

TurnLike = Union[Turn, BaseMessage]


def _gen_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:16]}"


def create_llm(model: str) -> BaseChatModel:
    """Create a chat model bound to the OpenAI-compatible provider.

    Args:
        model (str): Provider model identifier.

    Returns:
        BaseChatModel: A ``ChatOpenAI`` pointed at ``OPENROUTER_BASE_URL``
            with the attribution headers the provider expects.
    """
    return ChatOpenAI(
        api_key=SecretStr(settings.OPENROUTER_API_KEY),
        base_url=settings.OPENROUTER_BASE_URL,
        model=model,
        default_headers={
            "HTTP-Referer": settings.OPENROUTER_REFERER,
            "X-Title": settings.OPENROUTER_APP_TITLE,
        },
    )


def extract_text(content: Any) -> str:
    """Extract plain text from LLM response content.

    Args:
        content (Any): Raw content from an LLM response (str, list, or
            other type).

    Returns:
        str: The concatenated text representation.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return " ".join(
            item if isinstance(item, str) else item.get("text", "")
            for item in content
            if isinstance(item, (str, dict))
        )
    return str(content)


def to_lc_message(turn: TurnLike) -> BaseMessage:
    """Convert a Turn -> LangChain message.

    LangChain messages pass through unchanged so one-shot callers can send
    multimodal content.

    Args:
        turn (TurnLike): The turn to convert.

    Returns:
        BaseMessage: The corresponding LangChain message instance.
    """
    if isinstance(turn, BaseMessage):
        return turn
    if turn.role == MessageRole.SYSTEM:
        return SystemMessage(content=turn.content)
    if turn.role == MessageRole.ASSISTANT:
        tool_calls: List[Dict[str, Any]] = []
        invalid_tool_calls: List[Dict[str, Any]] = []
        for tc in turn.tool_calls or []:
            try:
                args = json.loads(tc.arguments) if tc.arguments else {}
            except json.JSONDecodeError:
                args = None
            if isinstance(args, dict):
                tool_calls.append({"name": tc.name, "args": args, "id": tc.id})
            else:
                invalid_tool_calls.append(
                    {"name": tc.name, "args": tc.arguments, "id": tc.id, "error": None}
                )
        return AIMessage(
            content=turn.content,
            tool_calls=tool_calls,
            invalid_tool_calls=invalid_tool_calls,
        )
    if turn.role == MessageRole.TOOL:
        return ToolMessage(content=turn.content, tool_call_id=turn.tool_call_id or "unknown")
    return HumanMessage(content=turn.content)


def to_choice(response: AIMessage) -> LLMChoice:
    """Convert an LLM response into the first-choice view used by the engine.

    Malformed tool calls (``invalid_tool_calls``) are kept with their raw
    argument text so the registry can report the parse failure to the model.
    """
    calls: List[ToolCallInfo] = []
    for tc in response.tool_calls or []:
        calls.append(
            ToolCallInfo(
                id=tc.get("id") or _gen_call_id(),
                name=tc.get("name", ""),
                arguments=json.dumps(tc.get("args") or {}, ensure_ascii=False),
            )
        )
    for itc in getattr(response, "invalid_tool_calls", None) or []:
        calls.append(
            ToolCallInfo(
                id=itc.get("id") or _gen_call_id(),
                name=itc.get("name") or "",
                arguments=itc.get("args") or "",
            )
        )

    metadata = getattr(response, "response_metadata", None) or {}
    finish_reason = metadata.get("finish_reason")
    if finish_reason:
        finish_reason = str(finish_reason).lower()
    else:
        finish_reason = FinishReason.TOOL_CALLS.value if calls else FinishReason.STOP.value

    return LLMChoice(
        finish_reason=finish_reason,
        message=Turn(
            role=MessageRole.ASSISTANT,
            content=extract_text(response.content),
            tool_calls=calls or None,
        ),
    )


class LLMClient:
    """Chat-completion client over one LangChain chat model per model name."""

    def __init__(self, llm_factory: Callable[[str], BaseChatModel] = create_llm) -> None:
        """Initialize the client.

        Args:
            llm_factory (Callable[[str], BaseChatModel]): Builds the chat
                model for a model name. Models are created lazily and cached.
        """
        self._llm_factory = llm_factory
        self._models: Dict[str, BaseChatModel] = {}

    def get_llm(self, model: str) -> BaseChatModel:
        """Return the cached chat model for ``model``, creating it on first use."""
        llm = self._models.get(model)
        if llm is None:
            logger.info("You are using %s model", model)
            llm = self._llm_factory(model)
            self._models[model] = llm
        return llm

    async def chat_completion(
        self,
        model: str,
        turns: Sequence[TurnLike],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> LLMChoice:
        """Run one chat completion.

        Args:
            model (str): Model identifier.
            turns (Sequence[TurnLike]): Ordered context.
            tools (Optional[List[Dict[str, Any]]]): OpenAI function schemas.
                When empty, no tools are bound.

        Returns:
            LLMChoice: The first choice of the response.

        Raises:
            TransportError: If the call fails or yields no usable choice.
        """
        lc_messages = [to_lc_message(t) for t in turns]
        llm = self.get_llm(model)
        try:
            if tools:
                response = await llm.bind_tools(tools).ainvoke(lc_messages)
            else:
                response = await llm.ainvoke(lc_messages)
        except Exception as e:
            raise TransportError(f"chat completion failed: {e}") from e

        if not isinstance(response, AIMessage):
            raise TransportError("received an empty response from API")
        return to_choice(response)
