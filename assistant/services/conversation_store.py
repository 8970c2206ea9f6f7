# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Conversation store: per-user ordered turn sequences.

Every stored conversation starts with exactly one system turn.  Callers
never mutate a stored sequence: they read a copy with ``get()``, build the
full replacement off to the side and hand it back with ``replace()``.
The on-disk document maps user id -> list of
``{role, content, tool_call_id?, tool_calls?}`` records and is rewritten
in full by ``persist()``.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from assistant.errors import StorageError
from assistant.models import MessageRole, Turn
from assistant.services.prompts.base import build_system_prompt
from assistant.services.storage import atomic_write_json, read_json

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(Dict[str, List[Turn]])


class ConversationStore:
    """In-memory conversation map with whole-document JSON persistence."""

    def __init__(self, path: Optional[str] = None, instructions: Optional[str] = None) -> None:
        """Initialize the store.

        Args:
            path (Optional[str]): JSON file backing the store. ``None`` keeps
                the store memory-only.
            instructions (Optional[str]): Persona text for bootstrap system
                turns. Defaults to ``settings.INSTRUCTIONS``.
        """
        self._path = Path(path) if path else None
        self._instructions = instructions
        self._conversations: Dict[str, Tuple[Turn, ...]] = {}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def base_instructions(self, user_id: str) -> str:
        """System content for a fresh conversation with ``user_id``."""
        return build_system_prompt(user_id, self._instructions)

    def bootstrap(self, user_id: str) -> List[Turn]:
        """Fresh sequence: a single system turn seeded with the instructions."""
        return [Turn(role=MessageRole.SYSTEM, content=self.base_instructions(user_id))]

    def get(self, user_id: str) -> List[Turn]:
        """Return a copy of the user's turns, or a bootstrap sequence if unknown.

        The bootstrap is not stored; it only becomes part of the store once
        a caller commits it with ``replace()``.
        """
        stored = self._conversations.get(user_id)
        if stored is None:
            logger.info("Initializing conversation for user: %s", user_id)
            return self.bootstrap(user_id)
        return list(stored)

    def replace(self, user_id: str, turns: Sequence[Turn]) -> None:
        """Swap in a fully computed sequence for ``user_id``.

        Raises:
            ValueError: If ``turns`` does not start with a system turn.
        """
        if not turns or turns[0].role != MessageRole.SYSTEM:
            raise ValueError(f"conversation for {user_id} must start with a system turn")
        self._conversations[user_id] = tuple(turns)

    def reset(self, user_id: str) -> List[Turn]:
        """Replace the user's conversation with a fresh bootstrap sequence."""
        turns = self.bootstrap(user_id)
        self.replace(user_id, turns)
        return turns

    def snapshot(self) -> Dict[str, List[Turn]]:
        """Copy of every stored conversation."""
        return {uid: list(turns) for uid, turns in self._conversations.items()}

    def persist(self) -> None:
        """Rewrite the backing JSON document with every conversation.

        Raises:
            StorageError: If the document cannot be written.
        """
        if self._path is None:
            return
        data = _HISTORY_ADAPTER.dump_python(self.snapshot(), mode="json", exclude_none=True)
        atomic_write_json(self._path, data)
        logger.debug("Saved chat history for %d user(s) to %s", len(data), self._path)

    def load(self) -> None:
        """Populate the store from the backing JSON document.

        Conversations that do not start with a system turn get a fresh
        system turn prepended.

        Raises:
            StorageError: If the document is unreadable or malformed.
        """
        if self._path is None:
            return
        raw = read_json(self._path, default={})
        try:
            loaded = _HISTORY_ADAPTER.validate_python(raw or {})
        except ValidationError as e:
            raise StorageError(f"Malformed chat history in {self._path}: {e}") from e

        self._conversations.clear()
        for user_id, turns in loaded.items():
            if not turns or turns[0].role != MessageRole.SYSTEM:
                logger.warning("Chat history for %s lacks a system turn; re-seeding", user_id)
                turns = self.bootstrap(user_id) + [t for t in turns if t.role != MessageRole.SYSTEM]
            self._conversations[user_id] = tuple(turns)
        logger.info("Loaded chat history for %d user(s) from %s", len(self._conversations), self._path)
