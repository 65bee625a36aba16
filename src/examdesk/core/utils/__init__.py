"""
Utils Package

Identifier and timestamp helpers.
"""

from .ids import (
    generate_id,
    format_datetime,
    iso_timestamp,
    parse_iso_timestamp,
    backup_timestamp,
)

__all__ = [
    "generate_id",
    "format_datetime",
    "iso_timestamp",
    "parse_iso_timestamp",
    "backup_timestamp",
]
