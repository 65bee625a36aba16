"""
Unit Tests for QuestionManager

Question CRUD and the image files questions own.
"""

import random

import pytest

from examdesk.managers import QuestionManager


@pytest.fixture
def questions(integrity, store, images):
    integrity.initialize_all()
    return QuestionManager(store, images, rng=random.Random(0))


class TestCreate:

    def test_create_when_minimal_then_defaults(self, questions):
        question = questions.create({"projectId": "proj_1", "content": "What is 2 + 2?"})

        assert question.id.startswith("ques_")
        assert question.type == "text"
        assert question.image_url is None
        assert question.is_mandatory is False
        assert question.created_at
        assert questions.get(question.id) == question

    def test_create_when_project_missing_then_raises(self, questions):
        with pytest.raises(ValueError, match="projectId"):
            questions.create({"content": "x"})

    def test_create_when_content_empty_then_raises(self, questions):
        with pytest.raises(ValueError, match="content"):
            questions.create({"projectId": "proj_1", "content": ""})

    def test_create_when_type_unknown_then_raises_and_nothing_stored(self, questions):
        with pytest.raises(ValueError):
            questions.create({"projectId": "proj_1", "content": "x", "type": "audio"})

        assert questions.get_all() == []

    def test_list_by_project_filters(self, questions):
        questions.create({"projectId": "a", "content": "1"})
        questions.create({"projectId": "b", "content": "2"})
        questions.create({"projectId": "a", "content": "3"})

        assert [q.content for q in questions.list_by_project("a")] == ["1", "3"]


class TestUpdate:

    def test_update_when_keys_absent_then_kept(self, questions):
        question = questions.create({"projectId": "p", "content": "old", "isMandatory": True})

        updated = questions.update(question.id, {"content": "new"})

        assert updated.content == "new"
        assert updated.is_mandatory is True
        assert updated.project_id == "p"
        assert updated.created_at == question.created_at

    def test_update_when_type_empty_then_kept(self, questions):
        question = questions.create({"projectId": "p", "content": "x", "type": "mixed"})

        assert questions.update(question.id, {"type": ""}).type == "mixed"

    def test_update_when_image_replaced_then_old_file_deleted(self, questions, images, sample_image_bytes):
        old_image = images.save(sample_image_bytes, "old.png")
        new_image = images.save(sample_image_bytes, "new.png")
        question = questions.create({"projectId": "p", "content": "x", "type": "image", "imageUrl": old_image})

        updated = questions.update(question.id, {"imageUrl": new_image})

        assert updated.image_url == new_image
        assert not images.exists(old_image)
        assert images.exists(new_image)

    def test_update_when_image_unchanged_then_file_kept(self, questions, images, sample_image_bytes):
        image = images.save(sample_image_bytes, "keep.png")
        question = questions.create({"projectId": "p", "content": "x", "imageUrl": image})

        questions.update(question.id, {"imageUrl": image, "content": "y"})

        assert images.exists(image)

    def test_update_when_image_cleared_then_file_deleted(self, questions, images, sample_image_bytes):
        image = images.save(sample_image_bytes, "gone.png")
        question = questions.create({"projectId": "p", "content": "x", "imageUrl": image})

        updated = questions.update(question.id, {"imageUrl": None})

        assert updated.image_url is None
        assert not images.exists(image)

    def test_update_when_unknown_id_then_none(self, questions):
        assert questions.update("ques_missing", {"content": "x"}) is None

    def test_update_when_invalid_type_then_raises(self, questions):
        question = questions.create({"projectId": "p", "content": "x"})

        with pytest.raises(ValueError):
            questions.update(question.id, {"type": "video"})


class TestDelete:

    def test_delete_then_record_and_image_removed(self, questions, images, sample_image_bytes):
        image = images.save(sample_image_bytes, "q.png")
        question = questions.create({"projectId": "p", "content": "x", "imageUrl": image})

        assert questions.delete(question.id)

        assert questions.get(question.id) is None
        assert not images.exists(image)

    def test_delete_when_unknown_id_then_false(self, questions):
        assert questions.delete("ques_missing") is False

    def test_delete_by_project_keeps_other_projects(self, questions, images, sample_image_bytes):
        image = images.save(sample_image_bytes, "a.png")
        questions.create({"projectId": "a", "content": "1", "imageUrl": image})
        questions.create({"projectId": "b", "content": "2"})

        assert questions.delete_by_project("a")

        assert [q.project_id for q in questions.get_all()] == ["b"]
        assert not images.exists(image)


class TestDraw:

    def test_draw_when_project_has_mandatory_then_included(self, questions):
        questions.create({"projectId": "p", "content": "must", "isMandatory": True})
        for i in range(6):
            questions.create({"projectId": "p", "content": f"opt {i}"})
        questions.create({"projectId": "other", "content": "elsewhere", "isMandatory": True})

        drawn = questions.draw("p", 3)

        assert len(drawn) == 3
        assert drawn[0].content == "must"
        assert all(q.project_id == "p" for q in drawn)
