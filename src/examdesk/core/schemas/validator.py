"""
Collection Validation Utilities

Stateless checks run by the integrity manager on every collection file:

1. `validate_document()` - bytes are non-empty, well-formed JSON
2. `validate_envelope()` - the parsed document has the versioned envelope shape
3. `validate_collection()` - every record has its kind's required fields and
   domain values (role / question type enums, idCard format)

Failures raise a `ValidationError` subclass carrying a reason, the dotted
path of the offending value and a list of individual error strings. The
integrity manager catches them and quarantines the file; nothing here
touches the disk.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, Sequence, Union

import jsonschema

from ..models.records import QUESTION_TYPES, ROLES

ID_CARD_PATTERN = re.compile(r"^\d{17}[\dX]$")

_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when a collection file fails validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []

    @property
    def reason(self) -> str:
        return str(self)


class ParseError(ValidationError):
    """Content is empty or not well-formed JSON."""


class StructureError(ValidationError):
    """Envelope or per-record shape violation."""


class InvalidEnumError(StructureError):
    """A value is outside its enumerated set (role, question type)."""


class InvalidFormatError(StructureError):
    """A value does not match its required format (idCard)."""


def validate_document(content: Union[bytes, str]) -> Any:
    """
    Check that raw file content is parseable JSON.

    Args:
        content: Raw file bytes (UTF-8, optional BOM) or text

    Returns:
        The parsed JSON document

    Raises:
        ParseError: If content is empty, not UTF-8, or malformed JSON
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"File is not valid UTF-8: {e}", errors=[str(e)])
    else:
        text = content

    if not text.strip():
        raise ParseError("File is empty")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON parse error: {e}", errors=[str(e)])


def validate_envelope(doc: Any, *, strict: bool = False) -> None:
    """
    Check the versioned envelope shape.

    Args:
        doc: Parsed JSON document
        strict: Additionally validate against envelope.schema.json

    Raises:
        StructureError: If doc is not an object, has no version, or data is not a list
    """
    if not isinstance(doc, dict):
        raise StructureError(
            f"Document is not an object (got {type(doc).__name__})",
            path="",
        )

    if not doc.get("version"):
        raise StructureError("Missing version", path="version")

    if not isinstance(doc.get("data"), list):
        raise StructureError("data must be a list", path="data")

    if strict:
        schema = _load_schema("envelope")
        try:
            jsonschema.validate(doc, schema)
        except jsonschema.ValidationError as e:
            raise StructureError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message],
            )


def _require(record: Any, fields: Sequence[str], path: str, label: str) -> None:
    if not isinstance(record, dict):
        raise StructureError(f"{label} record is not an object", path=path)
    missing = [f for f in fields if not record.get(f)]
    if missing:
        raise StructureError(
            f"{label} record missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )


def _validate_users(records: list) -> None:
    for i, user in enumerate(records):
        path = f"data[{i}]"
        _require(user, ("id", "username", "role"), path, "User")
        if user["role"] not in ROLES:
            raise InvalidEnumError(
                f"Invalid user role: {user['role']!r}",
                path=f"{path}.role",
            )


def _validate_projects(records: list) -> None:
    for i, project in enumerate(records):
        _require(project, ("id", "name"), f"data[{i}]", "Project")


def _validate_questions(records: list) -> None:
    for i, question in enumerate(records):
        path = f"data[{i}]"
        _require(question, ("id", "projectId", "content"), path, "Question")
        if question.get("type") not in QUESTION_TYPES:
            raise InvalidEnumError(
                f"Invalid question type: {question.get('type')!r}",
                path=f"{path}.type",
            )


def _validate_candidates(records: list) -> None:
    for i, candidate in enumerate(records):
        path = f"data[{i}]"
        _require(candidate, ("id", "name", "idCard"), path, "Candidate")
        id_card = candidate["idCard"]
        if not isinstance(id_card, str) or not ID_CARD_PATTERN.match(id_card):
            raise InvalidFormatError(
                f"Invalid idCard format: {id_card!r}",
                path=f"{path}.idCard",
            )


_COLLECTION_VALIDATORS: Dict[str, Callable[[list], None]] = {
    "users": _validate_users,
    "accounts": _validate_users,
    "projects": _validate_projects,
    "questions": _validate_questions,
    "candidates": _validate_candidates,
}


def validate_collection(records: list, kind: str) -> None:
    """
    Check every record of a collection.

    Unknown kinds pass unchecked so that collections added later do not
    fail validation on older code.

    Raises:
        StructureError: Missing required field or non-object record
        InvalidEnumError: role / type outside its enumerated set
        InvalidFormatError: idCard not 17 digits + digit-or-X
    """
    validator = _COLLECTION_VALIDATORS.get(kind)
    if validator is not None:
        validator(records)


def validate_structure(doc: Any, kind: str, *, strict: bool = False) -> None:
    """Envelope check followed by the per-kind record check."""
    validate_envelope(doc, strict=strict)
    validate_collection(doc["data"], kind)


def is_valid_id_card(value: Any) -> bool:
    return isinstance(value, str) and bool(ID_CARD_PATTERN.match(value))
