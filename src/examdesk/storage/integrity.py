"""
Module: storage.integrity

Purpose:
    Keep the four collection files present and structurally valid.

    Per-collection state machine (run by `initialize`):

        MISSING  -> write default structure
        present  -> parse (ParseError -> CORRUPT)
                 -> envelope + record checks (StructureError -> CORRUPT)
        CORRUPT  -> copy aside to "<file>.backup.<timestamp>", then as MISSING
        VALID    -> nothing written

    Whole-store operations build on it: bootstrap of the directory tree,
    `initialize_all`, read-only `validate_all`, `repair_all` (force-regenerate
    only what failed validation) and the `file_report` diagnostic.

Key Classes:
    - IntegrityManager: Orchestrates validation, backup and regeneration
    - InitResult / ValidationReport / RepairResult: Whole-store outcomes
    - StoreIOError: Directory bootstrap failure

Dependencies:
    - core.schemas: Validator and default generators
    - storage.file_locking: Locked atomic writes (portalocker)

Used By:
    - storage.document_store: first-touch verification, directory bootstrap
    - service.ExamDeskService, cli
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import portalocker

from examdesk.config import KINDS, StoreConfig, canonical_kind
from examdesk.core.schemas import (
    ValidationError,
    generate_default,
    validate_document,
    validate_structure,
)
from examdesk.core.utils import backup_timestamp

from .file_locking import locked_write_json

logger = logging.getLogger(__name__)


class StoreIOError(OSError):
    """A directory or file operation of the store failed."""


def ensure_directories(config: StoreConfig) -> None:
    """
    Create the data root, db/, images/ and images/questions/ (idempotent).

    Raises:
        StoreIOError: If a directory cannot be created
    """
    for directory in config.directories:
        if directory.is_dir():
            continue
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {directory}: {e}")
            raise StoreIOError(f"Cannot create directory: {directory}") from e
        logger.info(f"Created directory: {directory}")


class CollectionState(str, Enum):
    MISSING = "missing"
    CORRUPT = "corrupt"
    VALID = "valid"


@dataclass(frozen=True)
class InitResult:
    success: bool
    initialized: Tuple[str, ...] = ()
    failed: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "initialized": list(self.initialized), "failed": list(self.failed)}


@dataclass(frozen=True)
class ValidationReport:
    success: bool
    valid: Tuple[str, ...] = ()
    invalid: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "valid": list(self.valid),
            "invalid": [{"type": kind, "error": reason} for kind, reason in self.invalid.items()],
        }


@dataclass(frozen=True)
class RepairResult:
    success: bool
    repaired: Tuple[str, ...] = ()
    failed: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "repaired": list(self.repaired), "failed": list(self.failed)}


class IntegrityManager:
    """
    Validation, quarantine and regeneration of collection files.

    Attributes:
        config: Store configuration (paths, seed admin, strictness)
    """

    def __init__(self, config: StoreConfig) -> None:
        self.config = config

    def ensure_directories_exist(self) -> None:
        ensure_directories(self.config)

    # ─────────────────────────────────────────────────────────────────────────
    # Single Collection
    # ─────────────────────────────────────────────────────────────────────────

    def check(self, kind: str) -> Tuple[CollectionState, Optional[str]]:
        """
        Run the parse and structure checks on one collection (read-only).

        Returns:
            (state, reason) - reason is None when the file is valid
        """
        path = self.config.collection_path(kind)
        if not path.exists():
            return CollectionState.MISSING, "File does not exist"

        try:
            content = path.read_bytes()
        except OSError as e:
            return CollectionState.CORRUPT, f"Cannot read file: {e}"

        try:
            doc = validate_document(content)
            validate_structure(doc, canonical_kind(kind) or kind, strict=self.config.strict_validation)
        except ValidationError as e:
            return CollectionState.CORRUPT, e.reason

        return CollectionState.VALID, None

    def initialize(self, kind: str, force: bool = False) -> bool:
        """
        Bring one collection to a valid state.

        Args:
            kind: Collection kind ("users"/"accounts", "projects", ...)
            force: Regenerate even if the file is valid (backing it up first)

        Returns:
            True if the collection is valid afterwards
        """
        resolved = canonical_kind(kind)
        if resolved is None:
            logger.error(f"Unknown collection kind: {kind}")
            return False

        path = self.config.collection_path(resolved)
        try:
            if path.exists():
                if not force:
                    state, reason = self.check(resolved)
                    if state is CollectionState.VALID:
                        logger.debug(f"{path.name} exists and is valid")
                        return True
                    logger.warning(f"{path.name} is invalid: {reason}")
                if self.backup_corrupted(path) is None:
                    logger.error(f"Not regenerating {path.name}: backup failed")
                    return False

            default = generate_default(
                resolved,
                self.config.default_version,
                admin_username=self.config.seed_admin_username,
                admin_password=self.config.seed_admin_password,
            )
            locked_write_json(path, default, self.config.lock_timeout)
        except (OSError, portalocker.exceptions.LockException) as e:
            logger.error(f"Failed to initialize {path.name}: {e}")
            return False

        logger.info(f"{'Recreated' if force else 'Created'} data file: {path.name}")
        return True

    def backup_corrupted(self, path: Path) -> Optional[Path]:
        """
        Copy a file aside before it is regenerated.

        The backup is "<path>.backup.<ISO timestamp, ':' and '.' -> '-'>";
        an existing backup of the same instant is never overwritten.

        Returns:
            Backup path, or None if the copy failed
        """
        base = Path(f"{path}.backup.{backup_timestamp()}")
        backup = base
        counter = 1
        while backup.exists():
            backup = Path(f"{base}-{counter}")
            counter += 1

        try:
            shutil.copy2(path, backup)
        except OSError as e:
            logger.error(f"Failed to back up {path}: {e}")
            return None

        logger.warning(f"Backed up {path.name} to {backup.name}")
        return backup

    # ─────────────────────────────────────────────────────────────────────────
    # Whole Store
    # ─────────────────────────────────────────────────────────────────────────

    def initialize_all(self, force: bool = False, kinds: Optional[Iterable[str]] = None) -> InitResult:
        """
        Bootstrap directories, then initialize each collection.

        Args:
            force: Regenerate every collection (backing up existing files)
            kinds: Restrict to these kinds (default: all four)
        """
        selected = tuple(kinds) if kinds is not None else KINDS
        logger.info(f"Initializing data files{' (forced)' if force else ''}: {', '.join(selected)}")

        try:
            self.ensure_directories_exist()
        except StoreIOError as e:
            logger.error(f"Directory bootstrap failed: {e}")
            return InitResult(success=False, failed=selected)

        initialized = []
        failed = []
        for kind in selected:
            if self.initialize(kind, force):
                initialized.append(kind)
            else:
                failed.append(kind)

        if failed:
            logger.error(f"Failed to initialize data files: {failed}")
        return InitResult(success=not failed, initialized=tuple(initialized), failed=tuple(failed))

    def validate_all(self) -> ValidationReport:
        """Check all collections without repairing anything."""
        valid = []
        invalid: Dict[str, str] = {}
        for kind in KINDS:
            state, reason = self.check(kind)
            if state is CollectionState.VALID:
                valid.append(kind)
            else:
                invalid[kind] = reason or state.value

        if invalid:
            logger.warning(f"Data file validation failed: {invalid}")
        else:
            logger.debug("All data files valid")
        return ValidationReport(success=not invalid, valid=tuple(valid), invalid=invalid)

    def repair_all(self) -> RepairResult:
        """
        Force-regenerate every collection that fails validation.

        A fully valid store is reported as zero repairs without touching disk.
        """
        report = self.validate_all()
        if report.success:
            logger.info("All data files intact, nothing to repair")
            return RepairResult(success=True)

        repaired = []
        failed = []
        for kind, reason in report.invalid.items():
            logger.info(f"Repairing {kind}.json ({reason})")
            if self.initialize_all(force=True, kinds=[kind]).success:
                repaired.append(kind)
            else:
                failed.append(kind)

        return RepairResult(success=not failed, repaired=tuple(repaired), failed=tuple(failed))

    def file_report(self) -> Dict[str, Any]:
        """Existence, size, mtime and absolute path per collection (read-only)."""
        files: Dict[str, Dict[str, Any]] = {}
        for kind, path in self.config.collection_paths.items():
            exists = path.exists()
            size = 0
            last_modified = None
            if exists:
                try:
                    stat = path.stat()
                    size = stat.st_size
                    last_modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat()
                except OSError as e:
                    logger.error(f"Failed to stat {path}: {e}")
            files[kind] = {
                "path": str(path.resolve()),
                "exists": exists,
                "size": size,
                "last_modified": last_modified,
            }

        return {
            "directories": {
                "data_dir": str(self.config.data_root.resolve()),
                "db_dir": str(self.config.db_dir.resolve()),
                "images_dir": str(self.config.images_dir.resolve()),
                "question_images_dir": str(self.config.question_images_dir.resolve()),
            },
            "files": files,
        }
