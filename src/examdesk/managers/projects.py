"""
Module: managers.projects

Purpose:
    Exam project records. Deleting a project cascades to its questions
    (and their images) before the project itself is removed. The two
    collections are written one after the other; there is no transaction
    spanning both files.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from examdesk.core.models import Project
from examdesk.core.utils import format_datetime, generate_id
from examdesk.storage import DocumentStore

from .questions import QuestionManager

logger = logging.getLogger(__name__)

KIND = "projects"


def _to_project(record: Mapping[str, Any]) -> Optional[Project]:
    try:
        return Project.from_dict(dict(record))
    except (KeyError, TypeError) as e:
        logger.warning(f"Skipping malformed project record {record.get('id')!r}: {e}")
        return None


class ProjectManager:
    """Operations on the projects collection."""

    def __init__(self, store: DocumentStore, questions: QuestionManager) -> None:
        self.store = store
        self.questions = questions

    def get_all(self) -> List[Project]:
        projects = (_to_project(record) for record in self.store.read(KIND))
        return [project for project in projects if project is not None]

    def get(self, project_id: str) -> Optional[Project]:
        for record in self.store.read(KIND):
            if record.get("id") == project_id:
                return _to_project(record)
        return None

    def create(self, data: Mapping[str, Any]) -> Optional[Project]:
        """
        Add a project.

        Raises:
            ValueError: If name is missing or empty
        """
        if not data.get("name"):
            raise ValueError("Project requires a non-empty name")

        project = Project(
            id=generate_id("proj_"),
            name=data["name"],
            description=data.get("description") or "",
            status=data.get("status") or "active",
            created_at=format_datetime(),
        )
        records = self.store.read(KIND)
        records.append(project.to_dict())
        if not self.store.write(KIND, records):
            return None
        return project

    def update(self, project_id: str, data: Mapping[str, Any]) -> Optional[Project]:
        """Update name/description/status; empty values keep the stored ones."""
        records = self.store.read(KIND)
        index = next((i for i, r in enumerate(records) if r.get("id") == project_id), -1)
        if index < 0:
            return None

        old: Dict[str, Any] = records[index]
        records[index] = {
            **old,
            "name": data.get("name") or old.get("name"),
            "description": data.get("description") or old.get("description"),
            "status": data.get("status") or old.get("status"),
        }
        if not self.store.write(KIND, records):
            return None
        return _to_project(records[index])

    def delete(self, project_id: str) -> bool:
        """
        Delete a project and, first, all of its questions.

        Returns False without touching questions if the project does not
        exist, and keeps the project if its questions could not be removed.
        """
        records = self.store.read(KIND)
        remaining = [r for r in records if r.get("id") != project_id]
        if len(remaining) == len(records):
            return False

        if not self.questions.delete_by_project(project_id):
            logger.error(f"Keeping project {project_id}: its questions could not be deleted")
            return False
        return self.store.write(KIND, remaining)
