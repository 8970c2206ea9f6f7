# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for ToolRegistry dispatch and the voice/generic tool families."""

import json
from datetime import datetime
from typing import Any, Dict
from unittest.mock import AsyncMock

import httpx
import pytest
from assistant.errors import ArgumentParseError, ToolExecutionError, UnknownToolError
from assistant.models import ToolCallInfo
from assistant.schemas.tool_schema import ALL_TOOL_SCHEMAS, TOOL_SCHEMA_MAP
from assistant.services.tools import (
    GenericTools,
    MusicQueueRegistry,
    MusicTools,
    ReminderTools,
    VoiceTools,
    build_registry,
    parse_arguments,
)
from assistant.services.tools.registry import ToolRegistry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _RecordingFamily:
    """Family handler that records calls and echoes the tool name."""

    def __init__(self, names, error: Exception = None):
        self.tool_names = set(names)
        self.calls = []
        self._error = error

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        self.calls.append((name, arguments))
        if self._error is not None:
            raise self._error
        return f"ran {name}"


def _call(name: str, arguments: str = "{}", call_id: str = "call_1") -> ToolCallInfo:
    return ToolCallInfo(id=call_id, name=name, arguments=arguments)


def _registry(**families) -> ToolRegistry:
    registry = ToolRegistry()
    for keyword in ("reminder", "song", "voice"):
        if keyword in families:
            registry.register_family(keyword, families[keyword])
    if "generic" in families:
        registry.set_generic(families["generic"])
    return registry


# ---------------------------------------------------------------------------
# parse_arguments
# ---------------------------------------------------------------------------


class TestParseArguments:
    """Tests for JSON argument decoding."""

    def test_empty_is_empty_dict(self):
        """Verify blank arguments decode to an empty dict."""
        assert parse_arguments("t", "") == {}
        assert parse_arguments("t", "  ") == {}

    def test_object(self):
        """Verify a JSON object decodes."""
        assert parse_arguments("t", '{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", '"text"'])
    def test_rejects_non_objects(self, raw):
        """Verify malformed or non-object arguments raise ArgumentParseError."""
        with pytest.raises(ArgumentParseError) as exc_info:
            parse_arguments("add_song", raw)
        assert "add_song" in str(exc_info.value)


# ---------------------------------------------------------------------------
# ToolRegistry
# ---------------------------------------------------------------------------


class TestToolRegistry:
    """Tests for family resolution and error conversion."""

    @pytest.mark.asyncio
    async def test_unknown_tool_payload(self):
        """Verify an unknown tool yields an error payload containing 'not found'."""
        registry = _registry(generic=_RecordingFamily({"get_current_time"}))
        result = await registry.execute(_call("teleport"))
        assert result.is_error is True
        assert result.error_kind == "UnknownToolError"
        assert "not found" in result.content
        assert json.loads(result.content) == {"error": "Tool 'teleport' not found"}

    @pytest.mark.asyncio
    async def test_family_order(self):
        """Verify reminder beats song, and song beats voice."""
        reminder = _RecordingFamily({"song_reminder"})
        song = _RecordingFamily({"voice_song"})
        voice = _RecordingFamily({"voice_check"})
        registry = _registry(reminder=reminder, song=song, voice=voice)

        await registry.execute(_call("song_reminder"))
        await registry.execute(_call("voice_song"))
        await registry.execute(_call("voice_check"))
        assert reminder.calls == [("song_reminder", {})]
        assert song.calls == [("voice_song", {})]
        assert voice.calls == [("voice_check", {})]

    @pytest.mark.asyncio
    async def test_family_requires_exact_name(self):
        """Verify a substring match alone does not select a handler."""
        song = _RecordingFamily({"add_song"})
        registry = _registry(song=song, generic=_RecordingFamily({"get_news"}))
        result = await registry.execute(_call("sing_a_song"))
        assert result.is_error is True
        assert "not found" in result.content
        assert song.calls == []

    @pytest.mark.asyncio
    async def test_no_generic_family(self):
        """Verify names outside every family are unknown without a generic handler."""
        result = await _registry().execute(_call("get_news"))
        assert "not found" in result.content

    @pytest.mark.asyncio
    async def test_malformed_arguments_are_data(self):
        """Verify argument parse failures come back as payloads, not exceptions."""
        generic = _RecordingFamily({"search_video"})
        result = await _registry(generic=generic).execute(_call("search_video", "{oops"))
        assert result.is_error is True
        assert result.error_kind == "ArgumentParseError"
        assert "Failed to parse arguments" in json.loads(result.content)["error"]
        assert generic.calls == []

    @pytest.mark.asyncio
    async def test_tool_error_payload(self):
        """Verify ToolError payloads are passed through."""
        generic = _RecordingFamily({"get_news"}, error=ToolExecutionError("API down"))
        result = await _registry(generic=generic).execute(_call("get_news"))
        assert result.content == json.dumps({"error": "API down"})
        assert result.error_kind == "ToolExecutionError"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_data(self):
        """Verify arbitrary handler exceptions never escape execute()."""
        generic = _RecordingFamily({"get_news"}, error=RuntimeError("kaboom"))
        result = await _registry(generic=generic).execute(_call("get_news", call_id="c7"))
        assert result.is_error is True
        assert result.tool_call_id == "c7"
        assert "kaboom" in result.content

    @pytest.mark.asyncio
    async def test_success(self):
        """Verify a successful call carries the payload and call id."""
        generic = _RecordingFamily({"get_news"})
        result = await _registry(generic=generic).execute(_call("get_news", call_id="c9"))
        assert result.is_error is False
        assert result.content == "ran get_news"
        turn = result.to_turn()
        assert turn.tool_call_id == "c9"
        assert turn.role.value == "tool"


class TestBuildRegistry:
    """Tests for the production registry wiring."""

    def test_every_schema_resolves(self, mock_bot):
        """Verify every advertised tool resolves to a family handler."""
        registry = build_registry(
            ReminderTools(None),
            MusicTools(MusicQueueRegistry(None)),
            VoiceTools(mock_bot),
            GenericTools(),
        )
        for schema in ALL_TOOL_SCHEMAS:
            assert registry.resolve(schema["function"]["name"]) is not None
        with pytest.raises(UnknownToolError):
            registry.resolve("teleport")

    def test_schema_map(self):
        """Verify the schema map covers every schema exactly once."""
        assert len(TOOL_SCHEMA_MAP) == len(ALL_TOOL_SCHEMAS)
        assert "create_reminder" in TOOL_SCHEMA_MAP


# ---------------------------------------------------------------------------
# Voice family
# ---------------------------------------------------------------------------


class TestVoiceTools:
    """Tests for find_voice_channel."""

    @pytest.mark.asyncio
    async def test_found(self, mock_bot):
        """Verify the channel id from the platform is returned."""
        tools = VoiceTools(mock_bot)
        assert await tools.execute("find_voice_channel", {"gid": "g1", "userid": "u1"}) == "vc-1"
        mock_bot.find_voice_channel.assert_awaited_once_with("g1", "u1")

    @pytest.mark.asyncio
    async def test_not_in_voice(self):
        """Verify a user outside voice is a tool error."""
        bot = AsyncMock()
        bot.find_voice_channel.return_value = None
        with pytest.raises(ToolExecutionError):
            await VoiceTools(bot).execute("find_voice_channel", {"gid": "g1", "userid": "u1"})

    @pytest.mark.asyncio
    async def test_missing_arguments(self, mock_bot):
        """Verify missing ids are rejected before calling the platform."""
        with pytest.raises(ToolExecutionError):
            await VoiceTools(mock_bot).execute("find_voice_channel", {"gid": "g1"})
        mock_bot.find_voice_channel.assert_not_awaited()


# ---------------------------------------------------------------------------
# Generic family
# ---------------------------------------------------------------------------


class TestGenericTools:
    """Tests for clock, news, and video tools."""

    @pytest.mark.asyncio
    async def test_time_and_date(self):
        """Verify the clock tools return JSON objects."""
        tools = GenericTools(clock=lambda: datetime(2025, 3, 4, 5, 6, 7))
        assert json.loads(await tools.execute("get_current_time", {})) == {"current_time": "05:06:07"}
        assert json.loads(await tools.execute("get_current_date", {})) == {"current_date": "2025-03-04"}

    @pytest.mark.asyncio
    async def test_get_news(self):
        """Verify latest-news is requested and prefixed."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text='{"news": []}')

        tools = GenericTools(transport=httpx.MockTransport(handler))
        result = await tools.execute("get_news", {})
        assert result == 'News: {"news": []}'
        assert seen[0].url.path.endswith("/latest-news")
        assert seen[0].url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_search_news_maps_params(self):
        """Verify camelCase arguments map onto the API's query parameters."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="{}")

        tools = GenericTools(transport=httpx.MockTransport(handler))
        await tools.execute("search_news", {"keywords": "rust", "pageSize": 5, "domainsNot": ""})
        params = seen[0].url.params
        assert seen[0].url.path.endswith("/search")
        assert params["keywords"] == "rust"
        assert params["page_size"] == "5"
        assert "domains_not" not in params

    @pytest.mark.asyncio
    async def test_search_video(self):
        """Verify YouTube search parameters and the Video prefix."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text='{"items": []}')

        tools = GenericTools(transport=httpx.MockTransport(handler))
        result = await tools.execute("search_video", {"keyword": "lofi"})
        assert result.startswith("Video: ")
        params = seen[0].url.params
        assert params["q"] == "lofi"
        assert params["maxResults"] == "5"
        assert params["type"] == "video"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Verify non-200 responses are tool errors."""
        tools = GenericTools(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        with pytest.raises(ToolExecutionError, match="status code: 500"):
            await tools.execute("get_news", {})

    @pytest.mark.asyncio
    async def test_search_video_requires_keyword(self):
        """Verify an empty keyword is rejected."""
        with pytest.raises(ToolExecutionError):
            await GenericTools().execute("search_video", {})
