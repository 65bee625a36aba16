"""
Default Collection Structures

Generators for a valid instance of each collection, used when a file is
missing or has been quarantined. Every generator returns the current
envelope form; only the users collection is non-empty (the seed admin).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from ..utils.ids import iso_timestamp

SEED_ADMIN_ID = "usr_admin_01"

DEFAULT_QUESTION_COUNT = 10

ADMIN_PERMISSIONS = (
    "user:manage",
    "project:manage",
    "question:manage",
    "candidate:manage",
    "exam:manage",
    "system:config",
)


def _envelope(data: list, version: str) -> Dict[str, Any]:
    return {
        "version": version,
        "lastUpdated": iso_timestamp(),
        "data": data,
    }


def seed_admin_record(username: str = "admin", password: str = "123123") -> Dict[str, Any]:
    """The admin account present after first bootstrap."""
    now = iso_timestamp()
    return {
        "id": SEED_ADMIN_ID,
        "username": username,
        # Stored verbatim; credentials are not hashed.
        "password": password,
        "role": "admin",
        "profile": {
            "name": "System Administrator",
            "email": "admin@example.com",
            "phone": "",
            "avatar": "",
        },
        "settings": {
            "defaultQuestionCount": DEFAULT_QUESTION_COUNT,
            "theme": "light",
            "language": "zh-CN",
            "autoSave": True,
            "notifications": {
                "email": True,
                "system": True,
            },
        },
        "permissions": list(ADMIN_PERMISSIONS),
        "status": "active",
        "createdAt": now,
        "updatedAt": now,
        "lastLoginAt": None,
        "loginCount": 0,
        "metadata": {
            "createdBy": "system",
            "notes": "Default administrator account",
        },
    }


def generate_users(version: str = "1.0.0", username: str = "admin", password: str = "123123") -> Dict[str, Any]:
    return _envelope([seed_admin_record(username, password)], version)


def generate_projects(version: str = "1.0.0") -> Dict[str, Any]:
    return _envelope([], version)


def generate_questions(version: str = "1.0.0") -> Dict[str, Any]:
    return _envelope([], version)


def generate_candidates(version: str = "1.0.0") -> Dict[str, Any]:
    return _envelope([], version)


_GENERATORS: Dict[str, Callable[..., Dict[str, Any]]] = {
    "users": generate_users,
    "projects": generate_projects,
    "questions": generate_questions,
    "candidates": generate_candidates,
}


def generate_default(
    kind: str,
    version: str = "1.0.0",
    *,
    admin_username: str = "admin",
    admin_password: str = "123123",
) -> Optional[Dict[str, Any]]:
    """
    Generate the default envelope for a collection kind.

    Returns:
        Envelope dict, or None for an unknown kind.

    Example:
        >>> generate_default("projects")["data"]
        []
    """
    generator = _GENERATORS.get(kind)
    if generator is None:
        return None
    if kind == "users":
        return generator(version, admin_username, admin_password)
    return generator(version)
