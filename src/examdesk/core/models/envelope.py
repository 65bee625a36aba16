"""
Module: envelope

Purpose:
    The versioned wrapper written around every collection file, and the
    tagged result of reading a collection from disk.

    Current form::

        {"version": "1.0.0", "lastUpdated": "<ISO-8601>", "data": [...]}

    Legacy form: a bare JSON array of records. It is accepted on read and
    replaced by the current form on the next write.

Key Classes:
    - Envelope: Current on-disk form
    - ReadForm: Which shape a read found on disk
    - ReadResult: Records plus the shape/error they came from
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Envelope:
    """
    Versioned collection wrapper.

    Invariants:
        - version is non-empty
        - data is a list (never a bare object)
    """

    version: str
    last_updated: str
    data: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Envelope version must be non-empty")
        if not isinstance(self.data, list):
            raise ValueError(f"Envelope data must be a list, got {type(self.data).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Envelope":
        return cls(
            version=payload["version"],
            last_updated=payload.get("lastUpdated") or "",
            data=payload["data"],
        )

    @staticmethod
    def is_envelope(payload: Any) -> bool:
        """True if payload has the current envelope shape."""
        return (
            isinstance(payload, dict)
            and bool(payload.get("version"))
            and isinstance(payload.get("data"), list)
        )


class ReadForm(str, Enum):
    """Shape found on disk by a collection read."""

    ENVELOPE = "envelope"
    LEGACY = "legacy"
    MISSING = "missing"
    UNREADABLE = "unreadable"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ReadResult:
    """
    Outcome of reading one collection.

    `records` is always a list. `ok` separates "no records" (missing file,
    empty data) from "could not read" (unreadable or unexpected shape).
    """

    kind: str
    form: ReadForm
    records: List[Dict[str, Any]] = field(default_factory=list)
    version: Optional[str] = None
    last_updated: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.form not in (ReadForm.UNREADABLE, ReadForm.UNEXPECTED)

    @property
    def is_legacy(self) -> bool:
        return self.form is ReadForm.LEGACY
