"""
Schemas Package

Collection validation and default structure generators.
"""

from .validator import (
    validate_document,
    validate_envelope,
    validate_collection,
    validate_structure,
    is_valid_id_card,
    ValidationError,
    ParseError,
    StructureError,
    InvalidEnumError,
    InvalidFormatError,
)
from .defaults import generate_default, seed_admin_record, SEED_ADMIN_ID, DEFAULT_QUESTION_COUNT

__all__ = [
    "validate_document",
    "validate_envelope",
    "validate_collection",
    "validate_structure",
    "is_valid_id_card",
    "ValidationError",
    "ParseError",
    "StructureError",
    "InvalidEnumError",
    "InvalidFormatError",
    "generate_default",
    "seed_admin_record",
    "SEED_ADMIN_ID",
    "DEFAULT_QUESTION_COUNT",
]
