"""
Unit Tests for IntegrityManager

Bootstrap, quarantine-and-regenerate, read-only validation and repair.
"""

import json
import shutil
from pathlib import Path

from examdesk.config import KINDS, StoreConfig
from examdesk.storage import CollectionState, IntegrityManager


def write_raw(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def backups_of(path: Path):
    return sorted(path.parent.glob(f"{path.name}.backup.*"))


def snapshot(config: StoreConfig):
    return {kind: path.read_bytes() for kind, path in config.collection_paths.items()}


class TestInitializeAll:

    def test_initialize_all_when_empty_root_then_creates_tree_and_files(self, integrity, config):
        result = integrity.initialize_all()

        assert result.success
        assert result.initialized == KINDS
        for directory in config.directories:
            assert directory.is_dir()
        users = json.loads(config.collection_path("users").read_text(encoding="utf-8"))
        assert [u["id"] for u in users["data"]] == ["usr_admin_01"]
        for kind in ("projects", "questions", "candidates"):
            assert json.loads(config.collection_path(kind).read_text(encoding="utf-8"))["data"] == []

    def test_initialize_all_when_run_twice_then_files_unchanged(self, integrity, config):
        integrity.initialize_all()
        before = snapshot(config)

        assert integrity.initialize_all().success

        assert snapshot(config) == before
        assert not list(config.db_dir.glob("*.backup.*"))

    def test_initialize_all_when_force_then_backs_up_every_file(self, integrity, config):
        integrity.initialize_all()

        result = integrity.initialize_all(force=True)

        assert result.success
        for path in config.collection_paths.values():
            assert len(backups_of(path)) == 1

    def test_initialize_all_when_seed_credentials_configured_then_used(self, data_root):
        config = StoreConfig(data_root, seed_admin_username="root", seed_admin_password="pw")

        IntegrityManager(config).initialize_all()

        admin = json.loads(config.collection_path("users").read_text(encoding="utf-8"))["data"][0]
        assert (admin["username"], admin["password"]) == ("root", "pw")

    def test_initialize_all_when_root_is_a_file_then_fails(self, tmp_path):
        root = tmp_path / "data"
        root.write_text("not a directory")

        result = IntegrityManager(StoreConfig(root)).initialize_all()

        assert not result.success
        assert result.failed == KINDS


class TestInitialize:

    def test_initialize_when_corrupt_then_single_backup_with_original_bytes(self, integrity, config):
        integrity.initialize_all()
        path = config.collection_path("questions")
        write_raw(path, b"{ invalid json")

        assert integrity.initialize("questions")

        backups = backups_of(path)
        assert len(backups) == 1
        assert backups[0].read_bytes() == b"{ invalid json"
        assert json.loads(path.read_text(encoding="utf-8"))["data"] == []
        assert integrity.check("questions") == (CollectionState.VALID, None)

    def test_initialize_when_empty_file_then_regenerated(self, integrity, config):
        integrity.ensure_directories_exist()
        write_raw(config.collection_path("projects"), b"")

        assert integrity.initialize("projects")

        assert integrity.check("projects")[0] is CollectionState.VALID

    def test_initialize_when_legacy_array_then_quarantined(self, integrity, config):
        integrity.ensure_directories_exist()
        path = config.collection_path("projects")
        write_raw(path, b'[{"id": "p1", "name": "A"}]')

        assert integrity.initialize("projects")

        assert len(backups_of(path)) == 1
        assert json.loads(path.read_text(encoding="utf-8"))["data"] == []

    def test_initialize_when_record_invalid_then_regenerated(self, integrity, config):
        integrity.ensure_directories_exist()
        path = config.collection_path("users")
        bad = {"version": "1.0.0", "lastUpdated": "x", "data": [{"id": "u", "username": "u", "role": "guest"}]}
        write_raw(path, json.dumps(bad).encode("utf-8"))

        assert integrity.initialize("accounts")

        assert [u["role"] for u in json.loads(path.read_text(encoding="utf-8"))["data"]] == ["admin"]

    def test_initialize_when_backup_fails_then_file_not_regenerated(self, integrity, config, monkeypatch):
        integrity.ensure_directories_exist()
        path = config.collection_path("questions")
        write_raw(path, b"{ invalid json")

        def failing_copy(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(shutil, "copy2", failing_copy)

        assert integrity.initialize("questions") is False
        assert path.read_bytes() == b"{ invalid json"

    def test_initialize_when_unknown_kind_then_false(self, integrity):
        assert integrity.initialize("exams") is False

    def test_check_when_missing_then_missing_state(self, integrity):
        state, reason = integrity.check("projects")

        assert state is CollectionState.MISSING
        assert reason


class TestBackupCorrupted:

    def test_backup_name_when_same_instant_then_suffixed(self, integrity, config, monkeypatch):
        monkeypatch.setattr(
            "examdesk.storage.integrity.backup_timestamp",
            lambda: "2025-06-12T15-17-34-123Z",
        )
        integrity.ensure_directories_exist()
        path = config.collection_path("projects")
        write_raw(path, b"first")

        first = integrity.backup_corrupted(path)
        second = integrity.backup_corrupted(path)

        assert first.name == "projects.json.backup.2025-06-12T15-17-34-123Z"
        assert second.name == "projects.json.backup.2025-06-12T15-17-34-123Z-1"

    def test_backup_when_source_missing_then_none(self, integrity, config):
        assert integrity.backup_corrupted(config.db_dir / "nope.json") is None


class TestValidateAndRepair:

    def test_validate_all_when_fresh_store_then_success(self, integrity):
        integrity.initialize_all()

        report = integrity.validate_all()

        assert report.success
        assert report.valid == KINDS
        assert report.to_dict()["invalid"] == []

    def test_validate_all_when_corrupt_then_reports_without_changes(self, integrity, config):
        integrity.initialize_all()
        path = config.collection_path("candidates")
        write_raw(path, b"{ invalid json")

        report = integrity.validate_all()

        assert not report.success
        assert list(report.invalid) == ["candidates"]
        assert "JSON parse error" in report.invalid["candidates"]
        assert path.read_bytes() == b"{ invalid json"
        assert not backups_of(path)

    def test_repair_all_when_all_valid_then_nothing_written(self, integrity, config):
        integrity.initialize_all()
        before = snapshot(config)

        result = integrity.repair_all()

        assert result.success
        assert result.repaired == ()
        assert snapshot(config) == before
        assert not list(config.db_dir.glob("*.backup.*"))

    def test_repair_all_when_one_corrupt_then_only_it_repaired(self, integrity, config):
        integrity.initialize_all()
        path = config.collection_path("questions")
        write_raw(path, b"{ invalid json")

        result = integrity.repair_all()

        assert result.repaired == ("questions",)
        assert len(backups_of(path)) == 1
        assert integrity.validate_all().success
        assert integrity.repair_all().repaired == ()
        assert len(list(config.db_dir.glob("*.backup.*"))) == 1


class TestStrictValidation:

    def test_check_when_last_updated_missing_and_strict_then_corrupt(self, data_root):
        lenient = IntegrityManager(StoreConfig(data_root))
        strict = IntegrityManager(StoreConfig(data_root, strict_validation=True))
        lenient.ensure_directories_exist()
        write_raw(lenient.config.collection_path("projects"), b'{"version": "1.0.0", "data": []}')

        assert lenient.check("projects")[0] is CollectionState.VALID
        state, reason = strict.check("projects")
        assert state is CollectionState.CORRUPT
        assert "lastUpdated" in reason


class TestFileReport:

    def test_file_report_before_bootstrap_then_files_absent(self, integrity):
        report = integrity.file_report()

        assert set(report["files"]) == set(KINDS)
        assert all(not entry["exists"] for entry in report["files"].values())
        assert not integrity.config.data_root.exists()

    def test_file_report_after_bootstrap_then_sizes_and_paths(self, integrity, config):
        integrity.initialize_all()

        report = integrity.file_report()

        users = report["files"]["users"]
        assert users["exists"]
        assert users["size"] > 0
        assert users["last_modified"]
        assert Path(users["path"]).is_absolute()
        assert report["directories"]["db_dir"] == str(config.db_dir.resolve())
