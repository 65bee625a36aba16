"""
Module: managers.importer

Purpose:
    Read candidate lists from Excel workbooks (.xlsx) for batch
    registration. The header row is located by scanning the first rows of
    the first worksheet for recognizable column names (English or Chinese).

Key Functions:
    - import_candidates_xlsx(): Parse a workbook into candidate dicts

Dependencies:
    - openpyxl: Workbook reading
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from examdesk.core.schemas import is_valid_id_card

logger = logging.getLogger(__name__)

MAX_HEADER_SCAN = 10

# Largest integer a spreadsheet number holds without rounding
MAX_EXACT_INT = 2 ** 53

HEADER_ALIASES: Dict[str, str] = {
    "name": "name",
    "candidate": "name",
    "candidate_name": "name",
    "姓名": "name",
    "考生姓名": "name",
    "idcard": "idCard",
    "id_card": "idCard",
    "id_number": "idCard",
    "身份证": "idCard",
    "身份证号": "idCard",
    "身份证号码": "idCard",
    "projectname": "projectName",
    "project_name": "projectName",
    "project": "projectName",
    "项目": "projectName",
    "项目名称": "projectName",
    "考试项目": "projectName",
}

REQUIRED_COLUMNS = {"name", "idCard"}


class CandidateImportError(ValueError):
    """Workbook cannot be read or has no recognizable header row."""


@dataclass
class ImportResult:
    candidates: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"candidates": self.candidates, "warnings": self.warnings}


def _normalize_header(value: Any) -> str:
    if value is None:
        return ""
    key = str(value).strip().lower().replace(" ", "_").replace(".", "_")
    return HEADER_ALIASES.get(key, key)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _id_card_text(value: Any) -> Optional[str]:
    """
    idCard cell as text, or None if the cell is numeric and may have lost digits.

    An 18-digit number does not fit a double, so float cells and ints above
    2**53 are refused instead of being guessed back into a string.
    """
    if isinstance(value, float):
        return None
    if isinstance(value, int):
        return str(value) if abs(value) <= MAX_EXACT_INT else None
    return _cell_text(value).upper()


def _row_cell(row: Tuple[Any, ...], columns: Dict[str, int], key: str) -> Any:
    index = columns.get(key)
    if index is None or index >= len(row):
        return None
    return row[index]


def _row_value(row: Tuple[Any, ...], columns: Dict[str, int], key: str) -> str:
    return _cell_text(_row_cell(row, columns, key))


def _find_header(rows: List[Tuple[Any, ...]]) -> Optional[Tuple[int, Dict[str, int]]]:
    for row_index, row in enumerate(rows[:MAX_HEADER_SCAN]):
        columns = {}
        for col_index, value in enumerate(row):
            key = _normalize_header(value)
            if key in ("name", "idCard", "projectName") and key not in columns:
                columns[key] = col_index
        if REQUIRED_COLUMNS <= columns.keys():
            return row_index, columns
    return None


def _iter_rows(path: Path) -> Iterator[Tuple[Any, ...]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
        raise CandidateImportError(f"Cannot open workbook {path}: {e}") from e
    try:
        yield from workbook.worksheets[0].iter_rows(values_only=True)
    finally:
        workbook.close()


def import_candidates_xlsx(path: Path, project_name: Optional[str] = None) -> ImportResult:
    """
    Parse candidates from the first worksheet of an .xlsx workbook.

    Args:
        path: Workbook path
        project_name: Used when the sheet has no project column or the cell is blank

    Returns:
        ImportResult with {"name", "idCard", "projectName"} dicts and
        per-row warnings for skipped rows

    Raises:
        CandidateImportError: Unreadable workbook or no header row with name and idCard
    """
    rows = list(_iter_rows(Path(path)))
    header = _find_header(rows)
    if header is None:
        raise CandidateImportError(f"No header row with name and idCard columns in {path}")

    header_index, columns = header
    result = ImportResult()
    for offset, row in enumerate(rows[header_index + 1:], start=header_index + 2):
        name = _row_value(row, columns, "name")
        id_card = _id_card_text(_row_cell(row, columns, "idCard"))
        if not name and not id_card:
            continue
        if not name:
            result.warnings.append(f"Row {offset}: missing name")
            continue
        if id_card is None:
            result.warnings.append(f"Row {offset}: idCard cell is numeric; format the column as text")
            continue
        if not is_valid_id_card(id_card):
            result.warnings.append(f"Row {offset}: invalid idCard {id_card!r}")
            continue

        result.candidates.append({
            "name": name,
            "idCard": id_card,
            "projectName": _row_value(row, columns, "projectName") or project_name,
        })

    logger.info(
        f"Imported {len(result.candidates)} candidate(s) from {Path(path).name}"
        f" ({len(result.warnings)} skipped)"
    )
    return result
