"""
Module: storage

Purpose:
    On-disk persistence for the four collections and question images:
    whole-file JSON reads/writes, integrity verification with quarantine
    and regeneration, and image file management.

Key Classes:
    - DocumentStore: Collection read/write
    - IntegrityManager: Validate / back up / regenerate collections
    - ImageStore: Question image files

Used By:
    - examdesk.managers
    - examdesk.service
"""

from .document_store import DocumentStore
from .integrity import (
    IntegrityManager,
    InitResult,
    ValidationReport,
    RepairResult,
    CollectionState,
    StoreIOError,
    ensure_directories,
)
from .images import ImageStore, ImageError

__all__ = [
    "DocumentStore",
    "IntegrityManager",
    "InitResult",
    "ValidationReport",
    "RepairResult",
    "CollectionState",
    "StoreIOError",
    "ensure_directories",
    "ImageStore",
    "ImageError",
]
