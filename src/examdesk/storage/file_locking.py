"""
Module: storage.file_locking

Purpose:
    Cross-platform locked, atomic whole-file writes for collection files.
    A sidecar "<file>.lock" is held with portalocker while the new content
    is written to a temporary file in the same directory and renamed over
    the target, so a crash mid-write never leaves a truncated collection.

Key Functions:
    - collection_lock: Context manager holding the sidecar lock
    - atomic_write_text: Temp-file + os.replace write (no locking)
    - locked_write_json: Locked atomic JSON write
    - locked_read_modify_write_json: Read, apply modifier, write back under lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.document_store: Collection writes
    - storage.integrity: Default regeneration
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import portalocker

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def collection_lock(path: Path, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Generator[None, None, None]:
    """
    Hold the exclusive sidecar lock for a collection file.

    Args:
        path: Collection file path (the lock is "<path>.lock").
        timeout: Seconds to wait before raising portalocker.exceptions.LockException.

    Example:
        >>> with collection_lock(users_path):
        ...     rewrite(users_path)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with portalocker.Lock(str(lock_path_for(path)), mode="a", timeout=timeout):
        yield


def atomic_write_text(path: Path, text: str) -> None:
    """
    Replace a file's content atomically.

    The text is flushed and fsynced to a temporary sibling, then renamed
    over `path`. On failure the temporary file is removed and the original
    file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def dump_json(payload: Any) -> str:
    """Serialize with stable 2-space indentation."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def locked_write_json(path: Path, payload: Any, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """Write JSON atomically while holding the collection lock."""
    text = dump_json(payload)
    with collection_lock(path, timeout):
        atomic_write_text(path, text)
    logger.debug(f"Wrote {path.name} ({len(text)} chars)")


def _read_json_or_none(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        content = path.read_text(encoding="utf-8-sig")
        if not content.strip():
            return None
        return json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Overwriting unparseable {path.name}: {e}")
        return None


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Optional[Any]], Any],
    timeout: float = DEFAULT_LOCK_TIMEOUT,
) -> Any:
    """
    Read JSON, apply modifier, write back - all with the collection lock held.

    Args:
        path: Path to JSON file.
        modifier: Receives the existing document (None if absent, empty or
            unparseable) and returns the document to write.
        timeout: Lock wait in seconds.

    Returns:
        The document that was written.
    """
    with collection_lock(path, timeout):
        existing = _read_json_or_none(path)
        modified = modifier(existing)
        atomic_write_text(path, dump_json(modified))
        return modified
