"""
Module: records

Purpose:
    Typed views over the four stored collections. Records are persisted as
    plain JSON objects; these dataclasses are what the record managers hand
    to collaborators. Unknown keys are carried in `extra` so that a
    read-modify-write cycle never drops fields written by newer versions.

Key Classes:
    - Account: Login account (admin or candidate role)
    - Project: Exam project owning questions by back-reference
    - Question: Question bank entry (text / image / mixed)
    - Candidate: Registered candidate keyed by idCard

Used By:
    - managers.* (construction and serialization)
    - service.ExamDeskService
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

ROLES: Tuple[str, ...] = ("admin", "candidate")
QUESTION_TYPES: Tuple[str, ...] = ("text", "image", "mixed")


def _split_extra(data: Dict[str, Any], known: Tuple[str, ...]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key not in known}


def _put_optional(out: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        out[key] = value


@dataclass(frozen=True)
class Account:
    """
    Login account (immutable view).

    Attributes:
        id: Stable unique id ("usr_admin_01", "usr_candidate_...")
        username: Login name (candidate accounts use the candidate's name)
        password: Opaque string, stored verbatim (no hashing)
        role: "admin" or "candidate"
        settings: Free-form settings map (e.g. defaultQuestionCount)
        permissions: Capability strings
        id_card: Present only on candidate-role accounts

    Invariants:
        - role in ROLES
    """

    id: str
    username: str
    password: str
    role: str
    profile: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    permissions: Tuple[str, ...] = ()
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    id_card: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = (
        "id", "username", "password", "role", "profile", "settings",
        "permissions", "status", "createdAt", "updatedAt", "idCard",
    )

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Invalid account role: {self.role!r}")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "role": self.role,
        }
        _put_optional(out, "profile", self.profile)
        _put_optional(out, "settings", self.settings)
        if self.permissions:
            out["permissions"] = list(self.permissions)
        _put_optional(out, "status", self.status)
        _put_optional(out, "createdAt", self.created_at)
        _put_optional(out, "updatedAt", self.updated_at)
        _put_optional(out, "idCard", self.id_card)
        out.update(self.extra)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            id=data["id"],
            username=data["username"],
            password=data.get("password", ""),
            role=data["role"],
            profile=data.get("profile"),
            settings=data.get("settings"),
            permissions=tuple(data.get("permissions") or ()),
            status=data.get("status"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            id_card=data.get("idCard"),
            extra=_split_extra(data, cls._KNOWN),
        )


@dataclass(frozen=True)
class Project:
    """Exam project. Owns Question records through their projectId."""

    id: str
    name: str
    description: str = ""
    status: str = "active"
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("id", "name", "description", "status", "createdAt")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
        }
        _put_optional(out, "createdAt", self.created_at)
        out.update(self.extra)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            status=data.get("status") or "active",
            created_at=data.get("createdAt"),
            extra=_split_extra(data, cls._KNOWN),
        )


@dataclass(frozen=True)
class Question:
    """
    Question bank entry.

    Attributes:
        project_id: Back-reference to the owning Project
        type: "text", "image" or "mixed"
        image_url: Path relative to the data root ("images/qimg_...png");
            the file is owned by this record
        is_mandatory: Always drawn unless crowded out by other mandatory questions
    """

    id: str
    project_id: str
    type: str = "text"
    content: str = ""
    image_url: Optional[str] = None
    is_mandatory: bool = False
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("id", "projectId", "type", "content", "imageUrl", "isMandatory", "createdAt")

    def __post_init__(self) -> None:
        if self.type not in QUESTION_TYPES:
            raise ValueError(f"Invalid question type: {self.type!r}")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "type": self.type,
            "content": self.content,
            "imageUrl": self.image_url,
            "isMandatory": self.is_mandatory,
        }
        _put_optional(out, "createdAt", self.created_at)
        out.update(self.extra)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            type=data.get("type") or "text",
            content=data.get("content") or "",
            image_url=data.get("imageUrl") or None,
            is_mandatory=bool(data.get("isMandatory", False)),
            created_at=data.get("createdAt"),
            extra=_split_extra(data, cls._KNOWN),
        )


@dataclass(frozen=True)
class Candidate:
    """
    Registered candidate, keyed by idCard.

    projectName is a denormalized label, not a foreign key.
    """

    name: str
    id_card: str
    project_name: Optional[str] = None
    id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("id", "name", "idCard", "projectName")

    @property
    def default_password(self) -> str:
        """Password of the derived account: last 6 characters of idCard."""
        return self.id_card[-6:]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        _put_optional(out, "id", self.id)
        out["name"] = self.name
        out["idCard"] = self.id_card
        out["projectName"] = self.project_name
        out.update(self.extra)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        return cls(
            name=data.get("name") or "",
            id_card=str(data.get("idCard") or ""),
            project_name=data.get("projectName"),
            id=data.get("id"),
            extra=_split_extra(data, cls._KNOWN),
        )
