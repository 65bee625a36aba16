"""
Module: managers.questions

Purpose:
    Question bank records. A question owns its image file: replacing the
    imageUrl or deleting the question removes the old file.

Key Classes:
    - QuestionManager: CRUD, per-project listing/deletion and drawing
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Mapping, Optional

from examdesk.core.models import QUESTION_TYPES, Question
from examdesk.core.utils import format_datetime, generate_id
from examdesk.selection import draw_questions
from examdesk.storage import DocumentStore, ImageStore

logger = logging.getLogger(__name__)

KIND = "questions"


def _to_question(record: Mapping[str, Any]) -> Optional[Question]:
    try:
        return Question.from_dict(dict(record))
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed question record {record.get('id')!r}: {e}")
        return None


def _to_questions(records: List[Dict[str, Any]]) -> List[Question]:
    questions = (_to_question(record) for record in records)
    return [question for question in questions if question is not None]


class QuestionManager:
    """
    Operations on the questions collection.

    Attributes:
        store: Collection persistence
        images: Image files owned by questions
        rng: Random source for draws (None = fresh system-seeded Random)
    """

    def __init__(self, store: DocumentStore, images: ImageStore, rng: Optional[random.Random] = None) -> None:
        self.store = store
        self.images = images
        self.rng = rng

    def get_all(self) -> List[Question]:
        return _to_questions(self.store.read(KIND))

    def list_by_project(self, project_id: str) -> List[Question]:
        return _to_questions([r for r in self.store.read(KIND) if r.get("projectId") == project_id])

    def get(self, question_id: str) -> Optional[Question]:
        for record in self.store.read(KIND):
            if record.get("id") == question_id:
                return _to_question(record)
        return None

    def create(self, data: Mapping[str, Any]) -> Optional[Question]:
        """
        Add a question.

        Args:
            data: projectId and content (required), type ("text"),
                imageUrl (None), isMandatory (False)

        Returns:
            The new question, or None if the write failed

        Raises:
            ValueError: Missing projectId/content or unknown type
        """
        if not data.get("projectId"):
            raise ValueError("Question requires a projectId")
        if not data.get("content"):
            raise ValueError("Question requires non-empty content")

        question = Question(
            id=generate_id("ques_"),
            project_id=data["projectId"],
            type=data.get("type") or "text",
            content=data["content"],
            image_url=data.get("imageUrl") or None,
            is_mandatory=bool(data.get("isMandatory", False)),
            created_at=format_datetime(),
        )
        records = self.store.read(KIND)
        records.append(question.to_dict())
        if not self.store.write(KIND, records):
            return None
        return question

    def update(self, question_id: str, data: Mapping[str, Any]) -> Optional[Question]:
        """
        Update a question; keys absent from `data` keep their stored value.

        projectId and type are only replaced by truthy values. If a new
        imageUrl differs from a non-empty stored one, the old image file is
        deleted before the record is rewritten.

        Returns:
            Updated question, or None if not found / write failed
        """
        records = self.store.read(KIND)
        index = next((i for i, r in enumerate(records) if r.get("id") == question_id), -1)
        if index < 0:
            return None

        old = records[index]
        if "type" in data and data["type"] and data["type"] not in QUESTION_TYPES:
            raise ValueError(f"Invalid question type: {data['type']!r}")
        if "content" in data and not data["content"]:
            raise ValueError("Question content cannot be emptied")

        if "imageUrl" in data and old.get("imageUrl") and data["imageUrl"] != old.get("imageUrl"):
            self.images.delete(old["imageUrl"])

        updated = {
            **old,
            "projectId": data.get("projectId") or old.get("projectId"),
            "type": data.get("type") or old.get("type"),
        }
        for key in ("content", "imageUrl", "isMandatory"):
            if key in data:
                updated[key] = data[key]

        records[index] = updated
        if not self.store.write(KIND, records):
            return None
        return _to_question(updated)

    def delete(self, question_id: str) -> bool:
        records = self.store.read(KIND)
        target = next((r for r in records if r.get("id") == question_id), None)
        if target is None:
            return False
        if target.get("imageUrl"):
            self.images.delete(target["imageUrl"])
        return self.store.write(KIND, [r for r in records if r.get("id") != question_id])

    def delete_by_project(self, project_id: str) -> bool:
        """Delete every question of a project and its images (single rewrite)."""
        records = self.store.read(KIND)
        remaining = []
        removed = 0
        for record in records:
            if record.get("projectId") != project_id:
                remaining.append(record)
                continue
            if record.get("imageUrl"):
                self.images.delete(record["imageUrl"])
            removed += 1

        logger.info(f"Deleting {removed} question(s) of project {project_id}")
        return self.store.write(KIND, remaining)

    def draw(self, project_id: str, count: int) -> List[Question]:
        """Mandatory-first random draw of `count` questions from a project."""
        return draw_questions(self.list_by_project(project_id), count, rng=self.rng)
