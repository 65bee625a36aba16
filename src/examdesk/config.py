"""
Module: examdesk.config

Purpose:
    Immutable store configuration. Resolves the on-disk layout of the
    data root (collection files, image directories) and carries the
    seed-admin credentials and envelope version used when regenerating
    defaults.

Key Classes:
    - StoreConfig: Main configuration for the record store

Key Functions:
    - canonical_kind(): Normalize a collection kind ("accounts" -> "users")

Used By:
    - storage.document_store, storage.integrity, storage.images
    - service.ExamDeskService
    - cli
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

# Collection kinds in bootstrap order
KINDS: Tuple[str, ...] = ("users", "projects", "questions", "candidates")

KIND_ALIASES: Dict[str, str] = {
    "accounts": "users",
    "account": "users",
    "user": "users",
    "project": "projects",
    "question": "questions",
    "candidate": "candidates",
}

DATA_DIR_ENV = "EXAMDESK_DATA_DIR"


def canonical_kind(kind: str) -> Optional[str]:
    """
    Resolve a collection kind to its canonical (file) name.

    Returns:
        Canonical kind, or None if the kind is unknown.

    Example:
        >>> canonical_kind("accounts")
        'users'
    """
    if kind in KINDS:
        return kind
    return KIND_ALIASES.get(kind)


@dataclass(frozen=True)
class StoreConfig:
    """
    Configuration for the record store (immutable).

    Attributes:
        data_root: Root data directory (holds db/ and images/)
        default_version: Envelope version written for fresh/legacy files
        seed_admin_username: Username of the admin seeded on bootstrap
        seed_admin_password: Password of the seeded admin (stored verbatim)
        lock_timeout: Seconds to wait for a collection write lock
        strict_validation: Also validate envelopes with jsonschema

    Example:
        >>> config = StoreConfig(Path("data"))
        >>> config.collection_path("accounts").name
        'users.json'
    """

    data_root: Path
    default_version: str = "1.0.0"
    seed_admin_username: str = "admin"
    seed_admin_password: str = "123123"
    lock_timeout: float = 5.0
    strict_validation: bool = False

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.default_version:
            raise ValueError("default_version must be non-empty")
        if self.lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive: {self.lock_timeout}")
        # Frozen dataclass: coerce str roots via object.__setattr__
        object.__setattr__(self, "data_root", Path(self.data_root))

    @classmethod
    def from_env(cls, **overrides) -> "StoreConfig":
        """Build a config rooted at $EXAMDESK_DATA_DIR, else ./data."""
        root = os.environ.get(DATA_DIR_ENV)
        data_root = Path(root) if root else Path.cwd() / "data"
        return cls(data_root=data_root, **overrides)

    # ─────────────────────────────────────────────────────────────────────────
    # Derived Paths
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def db_dir(self) -> Path:
        return self.data_root / "db"

    @property
    def images_dir(self) -> Path:
        return self.data_root / "images"

    @property
    def question_images_dir(self) -> Path:
        return self.images_dir / "questions"

    @property
    def directories(self) -> Tuple[Path, ...]:
        """All directories created by bootstrap, parents first."""
        return (self.data_root, self.db_dir, self.images_dir, self.question_images_dir)

    def collection_path(self, kind: str) -> Path:
        """
        Get the JSON file path for a collection kind.

        Raises:
            KeyError: If the kind is unknown
        """
        resolved = canonical_kind(kind)
        if resolved is None:
            raise KeyError(f"Unknown collection kind: {kind!r}")
        return self.db_dir / f"{resolved}.json"

    @property
    def collection_paths(self) -> Dict[str, Path]:
        return {kind: self.collection_path(kind) for kind in KINDS}
