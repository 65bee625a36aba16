"""
Unit Tests for the Excel Candidate Importer
"""

from pathlib import Path

import pytest
from openpyxl import Workbook

from examdesk.managers import CandidateImportError, import_candidates_xlsx
from examdesk.managers.importer import MAX_EXACT_INT, _id_card_text


def make_workbook(path: Path, rows) -> Path:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


class TestIdCardText:

    def test_id_card_text_when_exact_int_then_digits_kept(self):
        assert _id_card_text(12345) == "12345"
        assert _id_card_text(MAX_EXACT_INT) == str(MAX_EXACT_INT)

    def test_id_card_text_when_int_beyond_exact_range_then_none(self):
        assert _id_card_text(110101199003071234) is None

    def test_id_card_text_when_float_then_none(self):
        assert _id_card_text(1.10101199003071e17) is None

    def test_id_card_text_when_text_then_stripped_and_upper_cased(self):
        assert _id_card_text(" 11010119900307123x ") == "11010119900307123X"

    def test_id_card_text_when_empty_then_empty_string(self):
        assert _id_card_text(None) == ""


class TestImportCandidates:

    def test_import_when_english_headers_then_rows_parsed(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [
            ["Name", "ID Card", "Project"],
            ["Li Lei", "11010119900307123x", "Welding"],
            ["Han Meimei", "110101199003071234", None],
        ])

        result = import_candidates_xlsx(path, project_name="Default")

        assert result.candidates == [
            {"name": "Li Lei", "idCard": "11010119900307123X", "projectName": "Welding"},
            {"name": "Han Meimei", "idCard": "110101199003071234", "projectName": "Default"},
        ]
        assert result.warnings == []

    def test_import_when_chinese_headers_after_title_row_then_found(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [
            ["2025 考生名单"],
            [],
            ["序号", "姓名", "身份证号"],
            [1, "张三", "110101199003071234"],
        ])

        result = import_candidates_xlsx(path)

        assert result.candidates == [{"name": "张三", "idCard": "110101199003071234", "projectName": None}]

    def test_import_when_id_card_cell_is_large_number_then_row_skipped_with_warning(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [
            ["name", "idcard"],
            ["Li Lei", 110101199003071234],
            ["Han Meimei", "110101199003071234"],
        ])

        result = import_candidates_xlsx(path)

        assert [c["name"] for c in result.candidates] == ["Han Meimei"]
        assert result.candidates[0]["idCard"] == "110101199003071234"
        assert result.warnings == ["Row 2: idCard cell is numeric; format the column as text"]

    def test_import_when_id_card_cell_is_float_then_row_skipped_with_warning(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [
            ["name", "idcard"],
            ["Li Lei", 1.10101199003071e17],
        ])

        result = import_candidates_xlsx(path)

        assert result.candidates == []
        assert "numeric" in result.warnings[0]

    def test_import_when_bad_rows_then_skipped_with_warnings(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [
            ["name", "idcard"],
            ["Li Lei", "1234"],
            [None, "110101199003071234"],
            [None, None],
            ["Han Meimei", "110101199003071234"],
        ])

        result = import_candidates_xlsx(path)

        assert [c["name"] for c in result.candidates] == ["Han Meimei"]
        assert result.warnings == [
            "Row 2: invalid idCard '1234'",
            "Row 3: missing name",
        ]

    def test_import_when_no_header_then_raises(self, tmp_path):
        path = make_workbook(tmp_path / "list.xlsx", [["foo", "bar"], ["a", "b"]])

        with pytest.raises(CandidateImportError, match="header"):
            import_candidates_xlsx(path)

    def test_import_when_not_a_workbook_then_raises(self, tmp_path):
        path = tmp_path / "list.xlsx"
        path.write_bytes(b"not a zip file")

        with pytest.raises(CandidateImportError):
            import_candidates_xlsx(path)

    def test_import_when_file_missing_then_raises(self, tmp_path):
        with pytest.raises(CandidateImportError):
            import_candidates_xlsx(tmp_path / "missing.xlsx")
