"""
Unit Tests for ProjectManager
"""

import pytest

from examdesk.managers import ProjectManager, QuestionManager


@pytest.fixture
def managers(integrity, store, images):
    integrity.initialize_all()
    questions = QuestionManager(store, images)
    return ProjectManager(store, questions), questions


class TestProjects:

    def test_create_then_listed(self, managers):
        projects, _ = managers

        project = projects.create({"name": "Welding Level 1", "description": "Practical"})

        assert project.id.startswith("proj_")
        assert project.status == "active"
        assert [p.name for p in projects.get_all()] == ["Welding Level 1"]

    def test_create_when_name_missing_then_raises(self, managers):
        projects, _ = managers

        with pytest.raises(ValueError):
            projects.create({"description": "nameless"})

    def test_update_when_empty_values_then_kept(self, managers):
        projects, _ = managers
        project = projects.create({"name": "A", "description": "first"})

        updated = projects.update(project.id, {"name": "", "status": "archived"})

        assert updated.name == "A"
        assert updated.description == "first"
        assert updated.status == "archived"

    def test_update_when_unknown_id_then_none(self, managers):
        projects, _ = managers

        assert projects.update("proj_missing", {"name": "x"}) is None


class TestCascadeDelete:

    def test_delete_then_questions_and_images_removed(self, managers, images, sample_image_bytes):
        projects, questions = managers
        doomed = projects.create({"name": "Doomed"})
        kept = projects.create({"name": "Kept"})
        image = images.save(sample_image_bytes, "diagram.png")
        questions.create({"projectId": doomed.id, "content": "a", "imageUrl": image, "type": "image"})
        questions.create({"projectId": doomed.id, "content": "b"})
        questions.create({"projectId": doomed.id, "content": "d", "isMandatory": True})
        questions.create({"projectId": kept.id, "content": "c"})

        assert projects.delete(doomed.id)

        assert [p.id for p in projects.get_all()] == [kept.id]
        assert [q.content for q in questions.get_all()] == ["c"]
        assert questions.list_by_project(doomed.id) == []
        assert not images.exists(image)

    def test_delete_when_unknown_id_then_false_and_questions_untouched(self, managers):
        projects, questions = managers
        questions.create({"projectId": "proj_missing", "content": "orphan"})

        assert projects.delete("proj_missing") is False

        assert len(questions.get_all()) == 1

    def test_delete_when_question_write_fails_then_project_kept(self, managers, monkeypatch):
        projects, questions = managers
        project = projects.create({"name": "Sticky"})
        monkeypatch.setattr(questions, "delete_by_project", lambda project_id: False)

        assert projects.delete(project.id) is False

        assert projects.get(project.id) is not None
