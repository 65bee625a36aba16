"""
Module: core.utils.ids

Purpose:
    Identifier and timestamp helpers shared by the record managers and
    the document store.

Key Functions:
    - generate_id(prefix): "<prefix><ms-timestamp><3-digit-random>"
    - format_datetime(): Local "YYYY/MM/DD HH:MM:SS" creation stamp
    - iso_timestamp(): UTC ISO-8601 with millisecond precision and "Z"
    - parse_iso_timestamp(): Inverse of iso_timestamp (tolerant)
    - backup_timestamp(): ISO timestamp safe for use in file names
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: str) -> str:
    """
    Generate a record id.

    Example:
        >>> generate_id("proj_")  # doctest: +SKIP
        'proj_1718205454123042'
    """
    timestamp = int(time.time() * 1000)
    return f"{prefix}{timestamp}{random.randint(0, 999):03d}"


def format_datetime(moment: Optional[datetime] = None) -> str:
    """Format a local date-time as "2025/06/12 23:17:34"."""
    moment = moment or datetime.now()
    return moment.strftime("%Y/%m/%d %H:%M:%S")


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a UTC instant as "2025-06-12T15:17:34.123Z"."""
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_timestamp(value: object) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; returns None for anything unparseable."""
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def backup_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO timestamp with ':' and '.' replaced by '-'."""
    return iso_timestamp(moment).replace(":", "-").replace(".", "-")
