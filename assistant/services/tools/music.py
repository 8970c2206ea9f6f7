# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Music queue tools.

One ``SongQueue`` per (guild, voice channel), all held in
``MusicQueueRegistry`` and persisted as ``{gid: {cid: queue}}``.  The
first song of a queue is the one playing (or next to play).  Audio itself
goes through the injected ``AudioPlayer``.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Set, Tuple

from pydantic import TypeAdapter, ValidationError

from assistant.config import MUSIC_TOOLS
from assistant.errors import StorageError, ToolExecutionError, UnknownToolError
from assistant.models import Song, SongQueue
from assistant.platform import AudioPlayer
from assistant.services.storage import atomic_write_json, read_json

logger = logging.getLogger(__name__)

_QUEUES_ADAPTER = TypeAdapter(Dict[str, Dict[str, SongQueue]])


class MusicQueueRegistry:
    """guild -> channel -> SongQueue map with JSON persistence."""

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = Path(path) if path else None
        self._queues: Dict[str, Dict[str, SongQueue]] = {}

    def get(self, guild_id: str, channel_id: str) -> Optional[SongQueue]:
        return self._queues.get(guild_id, {}).get(channel_id)

    def get_or_create(self, guild_id: str, channel_id: str) -> SongQueue:
        queue = self.get(guild_id, channel_id)
        if queue is None:
            queue = SongQueue()
            self._queues.setdefault(guild_id, {})[channel_id] = queue
        return queue

    def is_playing(self, guild_id: str, channel_id: str) -> bool:
        """Whether audio is currently active for the guild/channel."""
        queue = self.get(guild_id, channel_id)
        return bool(queue and queue.is_playing)

    def persist(self) -> None:
        if self._path is None:
            return
        atomic_write_json(self._path, _QUEUES_ADAPTER.dump_python(self._queues, mode="json"))

    def load(self) -> None:
        """Load queues from disk. Nothing is playing after a restart.

        Raises:
            StorageError: If the file is unreadable or malformed.
        """
        if self._path is None:
            return
        raw = read_json(self._path, default={})
        try:
            loaded = _QUEUES_ADAPTER.validate_python(raw or {})
        except ValidationError as e:
            raise StorageError(f"Malformed song queues in {self._path}: {e}") from e
        for channels in loaded.values():
            for queue in channels.values():
                queue.is_playing = False
        self._queues = loaded
        logger.info("Loaded song queues for %d guild(s) from %s", len(loaded), self._path)


def _song_line(song: Song) -> str:
    return f"Song: {song.title}, ID: {song.id}, URL: {song.url}\n"


class MusicTools:
    """Music family handler. Calls for one (guild, channel) run one at a time."""

    tool_names: Set[str] = MUSIC_TOOLS

    def __init__(self, registry: MusicQueueRegistry, player: Optional[AudioPlayer] = None) -> None:
        self.registry = registry
        self._player = player
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def _lock_for(self, gid: str, cid: str) -> asyncio.Lock:
        return self._locks.setdefault((gid, cid), asyncio.Lock())

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        """Dispatch music tool calls by name."""
        gid = str(arguments.get("gid", ""))
        cid = str(arguments.get("cid", ""))
        async with self._lock_for(gid, cid):
            if name == "get_current_songList":
                return self._list(gid, cid)
            if name == "add_song":
                return self._add(gid, cid, arguments)
            if name == "remove_song":
                return self._remove(gid, cid, str(arguments.get("uuid", "")))
            if name == "play_song":
                return await self._play(gid, cid)
            if name == "pause_song":
                return await self._pause(gid, cid)
            if name == "stop_song":
                return await self._stop(gid, cid)
            if name == "skip_song":
                return await self._skip(gid, cid)
        raise UnknownToolError(name)

    async def song_finished(self, gid: str, cid: str) -> None:
        """Advance the queue after the playing song ended on its own.

        Called by the audio adapter. The finished head is dropped and the
        next song, if any, starts playing.
        """
        async with self._lock_for(gid, cid):
            queue = self.registry.get(gid, cid)
            if queue is None or not queue.songs:
                logger.warning("Song finished in %s/%s but no queue is known", gid, cid)
                return
            finished = queue.songs.pop(0)
            queue.is_playing = False
            self.registry.persist()
            logger.info("Finished %r in %s/%s, %d song(s) left", finished.title, gid, cid, len(queue.songs))
            if not queue.songs or self._player is None:
                return
            await self._player.play(gid, cid, queue.songs[0])
            queue.is_playing = True

    def _require_queue(self, gid: str, cid: str, action: str) -> SongQueue:
        queue = self.registry.get(gid, cid)
        if queue is None:
            raise ToolExecutionError(f"Cannot {action} song, song list not found")
        return queue

    def _require_player(self) -> AudioPlayer:
        if self._player is None:
            raise ToolExecutionError("No audio player is available")
        return self._player

    def _list(self, gid: str, cid: str) -> str:
        queue = self.registry.get_or_create(gid, cid)
        if not queue.songs:
            return "songs: []"
        return f"songs: [{''.join(_song_line(s) for s in queue.songs)}]"

    def _add(self, gid: str, cid: str, arguments: Dict[str, Any]) -> str:
        title = str(arguments.get("title", ""))
        url = str(arguments.get("url", ""))
        if not url:
            raise ToolExecutionError("Failed to add song: url is required")
        song = Song(title=title, id=str(uuid.uuid4()), url=url)
        self.registry.get_or_create(gid, cid).songs.append(song)
        self.registry.persist()
        return f"Song added successfully, song title: {title}, url: {url}, uuid: {song.id}"

    def _remove(self, gid: str, cid: str, song_id: str) -> str:
        queue = self._require_queue(gid, cid, "remove")
        if queue.is_playing and queue.songs and queue.songs[0].id == song_id:
            raise ToolExecutionError("Cannot remove song while playing")
        for i, song in enumerate(queue.songs):
            if song.id == song_id:
                del queue.songs[i]
                break
        else:
            raise ToolExecutionError(f"Failed to remove song: song {song_id} not in the queue")
        self.registry.persist()
        return f"Song removed successfully, song title: {song.title}, uuid: {song_id}"

    async def _play(self, gid: str, cid: str) -> str:
        queue = self._require_queue(gid, cid, "play")
        if queue.is_playing:
            raise ToolExecutionError("Cannot play song while already playing")
        if not queue.songs:
            raise ToolExecutionError("Cannot play song, the song list is empty")
        await self._require_player().play(gid, cid, queue.songs[0])
        queue.is_playing = True
        current = queue.songs[0]
        return f"Playing song successfully, song title: {current.title}, song Id: {current.id}"

    async def _pause(self, gid: str, cid: str) -> str:
        queue = self._require_queue(gid, cid, "pause")
        if not queue.is_playing:
            raise ToolExecutionError("Cannot pause song while not playing")
        await self._require_player().pause(gid, cid)
        queue.is_playing = False
        return "Song paused successfully"

    async def _stop(self, gid: str, cid: str) -> str:
        queue = self._require_queue(gid, cid, "stop")
        if not queue.is_playing:
            raise ToolExecutionError("Cannot stop song while not playing")
        await self._require_player().stop(gid, cid)
        queue.is_playing = False
        return "Song stopped successfully"

    async def _skip(self, gid: str, cid: str) -> str:
        queue = self._require_queue(gid, cid, "skip")
        if len(queue.songs) <= 1:
            raise ToolExecutionError("No songs to skip")
        player = self._require_player()
        await player.stop(gid, cid)
        queue.songs.pop(0)
        queue.is_playing = False
        self.registry.persist()
        await player.play(gid, cid, queue.songs[0])
        queue.is_playing = True
        current = queue.songs[0]
        return f"Song skipped successfully, song title: {current.title}, song Id: {current.id}"
