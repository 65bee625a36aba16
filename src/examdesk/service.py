"""
Module: examdesk.service

Purpose:
    Single entry point for hosts (GUI, IPC bridge, CLI). Wires the document
    store, integrity manager, image store and record managers for one data
    root and exposes the operations collaborators call.

Key Classes:
    - ExamDeskService: Operation surface over one data root

Used By:
    - examdesk.cli
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from examdesk.config import StoreConfig
from examdesk.core.models import Candidate, Project, Question
from examdesk.core.schemas import DEFAULT_QUESTION_COUNT
from examdesk.managers import (
    AccountManager,
    AuthResult,
    CandidateManager,
    ImportResult,
    ProjectManager,
    QuestionManager,
    import_candidates_xlsx,
)
from examdesk.storage import (
    DocumentStore,
    ImageStore,
    InitResult,
    IntegrityManager,
    RepairResult,
    ValidationReport,
)

logger = logging.getLogger(__name__)


class ExamDeskService:
    """
    Operation surface over one data root.

    Each collection is verified by the integrity manager the first time it
    is touched (unless `verify_on_first_touch` is False); `bootstrap()`
    does the same for all four collections at once.

    Example:
        >>> service = ExamDeskService(StoreConfig(Path("data")))
        >>> service.bootstrap().success
        True
        >>> service.authenticate("admin", "123123").success
        True
    """

    def __init__(
        self,
        config: StoreConfig,
        *,
        verify_on_first_touch: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.integrity = IntegrityManager(config)
        self.store = DocumentStore(config, integrity=self.integrity if verify_on_first_touch else None)
        self.images = ImageStore(config)
        self.accounts = AccountManager(self.store)
        self.questions = QuestionManager(self.store, self.images, rng=rng)
        self.projects = ProjectManager(self.store, self.questions)
        self.candidates = CandidateManager(self.store, self.accounts)

    # ─────────────────────────────────────────────────────────────────────────
    # Store-wide
    # ─────────────────────────────────────────────────────────────────────────

    def bootstrap(self, force: bool = False) -> InitResult:
        return self.integrity.initialize_all(force)

    def validate(self) -> ValidationReport:
        return self.integrity.validate_all()

    def repair(self) -> RepairResult:
        return self.integrity.repair_all()

    def report(self) -> Dict[str, Any]:
        return self.integrity.file_report()

    # ─────────────────────────────────────────────────────────────────────────
    # Accounts & Settings
    # ─────────────────────────────────────────────────────────────────────────

    def authenticate(self, username: str, password: str) -> AuthResult:
        return self.accounts.authenticate(username, password)

    def update_password(self, user_id: str, new_password: str) -> bool:
        return self.accounts.update_password(user_id, new_password)

    def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.accounts.get_settings(user_id)

    def update_settings(self, user_id: str, settings: Mapping[str, Any]) -> bool:
        return self.accounts.update_settings(user_id, settings)

    # ─────────────────────────────────────────────────────────────────────────
    # Projects & Questions
    # ─────────────────────────────────────────────────────────────────────────

    def list_projects(self) -> List[Project]:
        return self.projects.get_all()

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.projects.get(project_id)

    def create_project(self, data: Mapping[str, Any]) -> Optional[Project]:
        return self.projects.create(data)

    def update_project(self, project_id: str, data: Mapping[str, Any]) -> Optional[Project]:
        return self.projects.update(project_id, data)

    def delete_project(self, project_id: str) -> bool:
        return self.projects.delete(project_id)

    def list_questions(self, project_id: str) -> List[Question]:
        return self.questions.list_by_project(project_id)

    def create_question(self, data: Mapping[str, Any]) -> Optional[Question]:
        return self.questions.create(data)

    def update_question(self, question_id: str, data: Mapping[str, Any]) -> Optional[Question]:
        return self.questions.update(question_id, data)

    def delete_question(self, question_id: str) -> bool:
        return self.questions.delete(question_id)

    def save_image(self, data: bytes, original_name: str) -> Optional[str]:
        return self.images.save(data, original_name)

    def delete_image(self, relative_path: str) -> bool:
        return self.images.delete(relative_path)

    def default_question_count(self) -> int:
        """defaultQuestionCount from the first admin's settings."""
        for account in self.accounts.get_all():
            if account.is_admin and account.settings:
                value = account.settings.get("defaultQuestionCount")
                if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                    return value
        return DEFAULT_QUESTION_COUNT

    def draw_questions(self, project_id: str, count: Optional[int] = None) -> List[Question]:
        if count is None:
            count = self.default_question_count()
        drawn = self.questions.draw(project_id, count)
        logger.info(f"Drew {len(drawn)} question(s) for project {project_id} (target {count})")
        return drawn

    # ─────────────────────────────────────────────────────────────────────────
    # Candidates
    # ─────────────────────────────────────────────────────────────────────────

    def list_candidates(self) -> List[Candidate]:
        return self.candidates.get_all()

    def add_candidate(self, data: Mapping[str, Any]) -> bool:
        return self.candidates.add(data)

    def add_candidates(self, items: Iterable[Mapping[str, Any]]) -> bool:
        return self.candidates.add_batch(items)

    def delete_candidate(self, id_card: str) -> bool:
        return self.candidates.delete(id_card)

    def clear_candidates(self) -> bool:
        return self.candidates.clear()

    def import_candidates(self, path: Path, project_name: Optional[str] = None) -> ImportResult:
        """
        Parse an .xlsx candidate list and register the valid rows.

        Raises:
            CandidateImportError: Unreadable workbook or no usable header row
        """
        result = import_candidates_xlsx(path, project_name)
        if result.candidates and not self.candidates.add_batch(result.candidates):
            result.warnings.append("Failed to save imported candidates or their login accounts")
        return result
