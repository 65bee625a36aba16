"""
Module: storage.document_store

Purpose:
    Read and write a named collection as a whole. Reads accept both the
    current envelope and the legacy bare-array form; writes always produce
    the envelope, keeping the stored version and refreshing lastUpdated.

    Two read entry points:
    - `load()` returns a ReadResult that tells "no records" apart from
      "could not read".
    - `read()` returns just the records, and an empty list for any failure
      (logged). Collaborators that only need data use this one.

Key Classes:
    - DocumentStore: Collection-level read/write

Used By:
    - managers.* (all record managers)
    - service.ExamDeskService
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import portalocker

from examdesk.config import StoreConfig, canonical_kind
from examdesk.core.models.envelope import Envelope, ReadForm, ReadResult
from examdesk.core.utils import iso_timestamp, parse_iso_timestamp

from .file_locking import locked_read_modify_write_json
from .integrity import IntegrityManager, StoreIOError, ensure_directories

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Whole-collection JSON persistence.

    Every write rewrites the entire file (never appends), so the envelope's
    data and lastUpdated always change together. No transaction spans more
    than one collection.

    Attributes:
        config: Store configuration
        integrity: Optional manager run once per kind on first touch
    """

    def __init__(self, config: StoreConfig, integrity: Optional[IntegrityManager] = None) -> None:
        self.config = config
        self.integrity = integrity
        self._touched: Set[str] = set()

    def path_for(self, kind: str) -> Path:
        return self.config.collection_path(kind)

    def _first_touch(self, kind: str) -> None:
        if self.integrity is None or kind in self._touched:
            return
        self._touched.add(kind)
        if not self.integrity.initialize(kind):
            logger.error(f"Integrity check failed for {kind}; continuing with on-disk state")

    # ─────────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────────

    def load(self, kind: str) -> ReadResult:
        """
        Read a collection and report which form it was stored in.

        Never raises for I/O or parse problems; those come back as
        ReadForm.UNREADABLE with an error message.
        """
        resolved = canonical_kind(kind)
        if resolved is None:
            return ReadResult(kind=kind, form=ReadForm.UNEXPECTED, error=f"Unknown collection kind: {kind}")

        self._first_touch(resolved)
        path = self.path_for(resolved)
        if not path.exists():
            return ReadResult(kind=resolved, form=ReadForm.MISSING)

        try:
            payload = json.loads(path.read_text(encoding="utf-8-sig"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {path.name}: {e}")
            return ReadResult(kind=resolved, form=ReadForm.UNREADABLE, error=str(e))

        if Envelope.is_envelope(payload):
            envelope = Envelope.from_dict(payload)
            return ReadResult(
                kind=resolved,
                form=ReadForm.ENVELOPE,
                records=envelope.data,
                version=envelope.version,
                last_updated=envelope.last_updated or None,
            )
        if isinstance(payload, list):
            logger.debug(f"{path.name} is in legacy array form; will upgrade on next write")
            return ReadResult(kind=resolved, form=ReadForm.LEGACY, records=payload)

        logger.warning(f"{path.name} has unexpected shape {type(payload).__name__}; treating as empty")
        return ReadResult(
            kind=resolved,
            form=ReadForm.UNEXPECTED,
            error=f"Unexpected top-level {type(payload).__name__}",
        )

    def read(self, kind: str) -> List[Dict[str, Any]]:
        """Records of a collection; empty list when missing or unreadable."""
        return list(self.load(kind).records)

    # ─────────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────────

    def _next_envelope(self, previous: Optional[Any], records: List[Dict[str, Any]]) -> Dict[str, Any]:
        if Envelope.is_envelope(previous):
            version = previous["version"]
            last = parse_iso_timestamp(previous.get("lastUpdated"))
        else:
            version = self.config.default_version
            last = None

        now = parse_iso_timestamp(iso_timestamp())
        if last is not None and now <= last:
            now = last + timedelta(milliseconds=1)

        return Envelope(version=version, last_updated=iso_timestamp(now), data=records).to_dict()

    def write(self, kind: str, records: Sequence[Dict[str, Any]]) -> bool:
        """
        Replace a collection's records.

        Keeps the version of an existing envelope; legacy or absent files get
        a fresh envelope at the configured default version.

        Returns:
            True on success; False (logged) on any I/O or serialization error
        """
        resolved = canonical_kind(kind)
        if resolved is None:
            logger.error(f"Refusing to write unknown collection kind: {kind}")
            return False

        self._first_touch(resolved)
        path = self.path_for(resolved)
        data = list(records)
        try:
            ensure_directories(self.config)
            locked_read_modify_write_json(
                path,
                lambda previous: self._next_envelope(previous, data),
                self.config.lock_timeout,
            )
        except (StoreIOError, OSError, TypeError, ValueError, portalocker.exceptions.LockException) as e:
            logger.error(f"Failed to write {path.name}: {e}")
            return False

        logger.debug(f"Wrote {len(data)} record(s) to {path.name}")
        return True
