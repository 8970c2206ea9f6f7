# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for reply splitting, the dispatch pool, and playback ordering."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from assistant.models import Song, VoiceConnectionRef
from assistant.services.dispatcher import (
    DispatchPool,
    ReplyDispatcher,
    format_sections,
    split_reply,
)
from assistant.services.playback import PlaybackQueues
from assistant.services.tools.music import MusicQueueRegistry

VOICE = VoiceConnectionRef(guild_id="g1", channel_id="vc1", handle="voice-handle")


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


class TestSplitReply:
    """Tests for split_reply and format_sections."""

    def test_sections(self):
        """Verify 4000 characters become three numbered sections."""
        sections = format_sections(split_reply("x" * 4000, 1900))
        assert len(sections) == 3
        assert sections[0].startswith("[Section 1/3]\n")
        assert sections[2] == "[Section 3/3]\n" + "x" * 200

    def test_multibyte_round_trip(self):
        """Verify concatenating the chunks gives back the original text."""
        text = "日本語のテキスト🙂" * 300
        chunks = split_reply(text, 1900)
        assert all(len(c) <= 1900 for c in chunks)
        assert "".join(chunks) == text

        sections = format_sections(chunks)
        stripped = [s.split("\n", 1)[1] for s in sections]
        assert "".join(stripped) == text

    def test_invalid_limit(self):
        """Verify a non-positive limit is rejected."""
        with pytest.raises(ValueError):
            split_reply("abc", 0)


# ---------------------------------------------------------------------------
# ReplyDispatcher
# ---------------------------------------------------------------------------


class TestReplyDispatcher:
    """Tests for choosing how a reply is sent."""

    @pytest.mark.asyncio
    async def test_single_reply(self, dispatcher, mock_bot, make_message):
        """Verify a short reply goes out in one call with the ack handle."""
        task = dispatcher.dispatch(make_message(), "Hi!")
        await task
        mock_bot.respond_to_message.assert_awaited_once_with("c1", "Hi!", "ref-1", "ack-1")
        mock_bot.respond_to_long_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_long_reply(self, dispatcher, mock_bot, make_message):
        """Verify long replies are split into sections."""
        await dispatcher.dispatch(make_message(), "y" * 4000)
        args = mock_bot.respond_to_long_message.await_args.args
        assert args[0] == "c1"
        assert len(args[1]) == 3
        assert args[2:] == ("ref-1", "ack-1")

    @pytest.mark.asyncio
    async def test_exact_limit_is_single(self, dispatcher, mock_bot, make_message):
        """Verify a reply of exactly the limit is not split."""
        await dispatcher.dispatch(make_message(), "z" * 1900)
        mock_bot.respond_to_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_playback(self, mock_bot, make_message):
        """Verify playback requests are spoken into the voice channel."""
        dispatcher = ReplyDispatcher(mock_bot, DispatchPool(4), music=MusicQueueRegistry(None))
        await dispatcher.dispatch(make_message(playback=True, voice=VOICE), "Hello")
        mock_bot.playback_response.assert_awaited_once_with("voice-handle", "Hello")
        mock_bot.respond_to_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_playback_skipped_while_music_plays(self, mock_bot, make_message):
        """Verify no playback happens while music is active, but the placeholder is resolved."""
        music = MusicQueueRegistry(None)
        queue = music.get_or_create("g1", "vc1")
        queue.songs.append(Song(title="t", id="s1", url="u"))
        queue.is_playing = True
        dispatcher = ReplyDispatcher(mock_bot, DispatchPool(4), music=music)

        await dispatcher.dispatch(make_message(playback=True, voice=VOICE), "Hello")
        mock_bot.playback_response.assert_not_awaited()
        mock_bot.respond_to_message.assert_awaited_once_with("c1", "", "ref-1", "ack-1")

    @pytest.mark.asyncio
    async def test_playback_without_voice_falls_back_to_text(self, dispatcher, mock_bot, make_message):
        """Verify a playback request with no voice connection is sent as text."""
        await dispatcher.dispatch(make_message(playback=True), "Hello")
        mock_bot.respond_to_message.assert_awaited_once()
        mock_bot.playback_response.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_playback_order(self, make_message):
        """Verify playbacks in one channel run one at a time in dispatch order."""
        spoken = []
        active = 0
        max_active = 0

        async def playback_response(handle, text):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01 if text == "first" else 0)
            spoken.append(text)
            active -= 1

        bot = AsyncMock()
        bot.playback_response.side_effect = playback_response
        playback = PlaybackQueues()
        dispatcher = ReplyDispatcher(bot, DispatchPool(4), playback=playback)

        tasks = [
            dispatcher.dispatch(make_message(playback=True, voice=VOICE), text)
            for text in ("first", "second", "third")
        ]
        await asyncio.gather(*tasks)

        assert spoken == ["first", "second", "third"]
        assert max_active == 1
        assert playback.pending("g1", "vc1") == 0


# ---------------------------------------------------------------------------
# DispatchPool
# ---------------------------------------------------------------------------


class TestDispatchPool:
    """Tests for fire-and-forget execution."""

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        """Verify a failing send does not raise out of the task."""
        pool = DispatchPool(2)
        task = pool.submit(AsyncMock(side_effect=RuntimeError("offline")), label="boom")
        await task
        assert task.exception() is None
        assert len(pool) == 0

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        """Verify no more than max_concurrency sends run at once."""
        active = 0
        peak = 0

        async def send():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        pool = DispatchPool(2)
        await asyncio.gather(*[pool.submit(send) for _ in range(6)])
        assert peak == 2

    @pytest.mark.asyncio
    async def test_drain_cancels_stragglers(self):
        """Verify drain waits for quick tasks and cancels slow ones."""
        finished = []

        async def quick():
            finished.append("quick")

        async def slow():
            await asyncio.sleep(10)
            finished.append("slow")

        pool = DispatchPool(4)
        pool.submit(quick)
        slow_task = pool.submit(slow)
        await pool.drain(grace=0.05)

        assert finished == ["quick"]
        assert slow_task.cancelled()

    @pytest.mark.asyncio
    async def test_drain_empty(self):
        """Verify draining an idle pool returns immediately."""
        await DispatchPool(1).drain(grace=0)
