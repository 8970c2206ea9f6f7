# Copyright (c) 2026 Heureum AI. All rights reserved.

"""JSON document persistence shared by the conversation store and tool registries."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Union

from assistant.errors import StorageError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_json(path: PathLike, default: Any = None) -> Any:
    """Load a JSON document, returning ``default`` when the file is missing or empty.

    Raises:
        StorageError: If the file exists but cannot be read or decoded.
    """
    p = Path(path)
    if not p.exists():
        logger.info("File '%s' does not exist, starting empty", p)
        return default
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Failed to read {p}: {e}") from e
    if not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageError(f"Corrupt JSON in {p}: {e}") from e


def atomic_write_json(path: PathLike, data: Any) -> None:
    """Write a JSON document via a temp file + rename so readers never see a partial file.

    Raises:
        StorageError: If serialization or the write fails.
    """
    p = Path(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    try:
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, p)
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Atomic write failed for {p}: {e}") from e
