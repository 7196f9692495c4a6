"""Tests for TaskRepository CRUD operations."""

from datetime import datetime, timedelta

import pytest

from taskmanager.models.task_factory import create_task_base
from taskmanager.models.validation import TaskQuery


def _create(task_repository, owner_id, description, completed=False, created_at=None):
    task = create_task_base(owner_id=owner_id, description=description, completed=completed)
    if created_at is not None:
        task = task.model_copy(update={"created_at": created_at, "updated_at": created_at})
    return task_repository.create(task)


@pytest.fixture
def seeded(task_repository, test_user_id):
    """Three tasks with distinct creation times: b (open), a (done), c (open)."""
    base = datetime(2024, 1, 1, 12, 0, 0)
    return [
        _create(task_repository, test_user_id, "b task", False, base),
        _create(task_repository, test_user_id, "a task", True, base + timedelta(minutes=1)),
        _create(task_repository, test_user_id, "c task", False, base + timedelta(minutes=2)),
    ]


class TestTaskRepository:
    """Test TaskRepository CRUD operations."""

    def test_create_task(self, task_repository, test_user_id):
        """Test creating a task."""
        created = _create(task_repository, test_user_id, "Buy milk")

        assert created.owner_id == test_user_id
        assert created.description == "Buy milk"
        assert created.completed is False

    def test_get_task_by_id(self, task_repository, test_user_id):
        """Test retrieving a task by ID."""
        created = _create(task_repository, test_user_id, "Buy milk")
        retrieved = task_repository.get(test_user_id, created.id)

        assert retrieved is not None
        assert retrieved.id == created.id

    def test_get_nonexistent_task(self, task_repository, test_user_id):
        """Test retrieving a nonexistent task returns None."""
        assert task_repository.get(test_user_id, "nonexistent-id") is None

    def test_update_task(self, task_repository, test_user_id):
        """Test updating a task bumps updated_at."""
        created = _create(task_repository, test_user_id, "Buy milk")
        updated = task_repository.update(test_user_id, created.id, {"completed": True})

        assert updated.completed is True
        assert updated.description == "Buy milk"
        assert updated.updated_at >= created.updated_at

    def test_delete_task(self, task_repository, test_user_id):
        """Test deleting a task returns it and removes it."""
        created = _create(task_repository, test_user_id, "Buy milk")
        deleted = task_repository.delete(test_user_id, created.id)

        assert deleted.id == created.id
        assert task_repository.get(test_user_id, created.id) is None
        assert task_repository.delete(test_user_id, created.id) is None

    def test_delete_all_for_owner(self, task_repository, test_user_id, other_user):
        _create(task_repository, test_user_id, "one")
        _create(task_repository, test_user_id, "two")
        _create(task_repository, other_user.id, "theirs")

        assert task_repository.delete_all_for_owner(test_user_id) == 2
        assert task_repository.list(test_user_id) == []
        assert len(task_repository.list(other_user.id)) == 1


class TestOwnershipIsolation:
    """A task owned by someone else behaves exactly like a missing one."""

    def test_other_owner_cannot_get_update_or_delete(self, task_repository, test_user_id, other_user):
        task = _create(task_repository, test_user_id, "private")

        assert task_repository.get(other_user.id, task.id) is None
        assert task_repository.update(other_user.id, task.id, {"completed": True}) is None
        assert task_repository.delete(other_user.id, task.id) is None

        # Untouched for the real owner.
        still_there = task_repository.get(test_user_id, task.id)
        assert still_there.completed is False

    def test_list_only_returns_own_tasks(self, task_repository, test_user_id, other_user):
        _create(task_repository, test_user_id, "mine")
        _create(task_repository, other_user.id, "theirs")

        assert [t.description for t in task_repository.list(test_user_id)] == ["mine"]


class TestListQuery:
    """Filter, sort and pagination on list()."""

    def test_default_order_is_creation_order(self, task_repository, test_user_id, seeded):
        tasks = task_repository.list(test_user_id)
        assert [t.description for t in tasks] == ["b task", "a task", "c task"]

    def test_filter_completed(self, task_repository, test_user_id, seeded):
        open_tasks = task_repository.list(test_user_id, TaskQuery(completed=False))
        done_tasks = task_repository.list(test_user_id, TaskQuery(completed=True))

        assert [t.description for t in open_tasks] == ["b task", "c task"]
        assert [t.description for t in done_tasks] == ["a task"]

    def test_sort_description_desc(self, task_repository, test_user_id, seeded):
        query = TaskQuery(sort_field="description", sort_direction="desc")
        assert [t.description for t in task_repository.list(test_user_id, query)] == [
            "c task", "b task", "a task",
        ]

    def test_sort_created_at_desc(self, task_repository, test_user_id, seeded):
        query = TaskQuery(sort_field="created_at", sort_direction="desc")
        assert [t.description for t in task_repository.list(test_user_id, query)] == [
            "c task", "a task", "b task",
        ]

    def test_sort_ties_fall_back_to_creation_order(self, task_repository, test_user_id, seeded):
        # b and c are both open; they keep creation order after the done task.
        query = TaskQuery(sort_field="completed", sort_direction="desc")
        assert [t.description for t in task_repository.list(test_user_id, query)] == [
            "a task", "b task", "c task",
        ]

    def test_limit_and_skip(self, task_repository, test_user_id, seeded):
        page = task_repository.list(test_user_id, TaskQuery(limit=1, skip=1))
        assert [t.description for t in page] == ["a task"]

    def test_skip_past_end_is_empty(self, task_repository, test_user_id, seeded):
        assert task_repository.list(test_user_id, TaskQuery(skip=10)) == []

    def test_filter_sort_and_paginate_together(self, task_repository, test_user_id, seeded):
        query = TaskQuery(completed=False, sort_field="description", sort_direction="desc", limit=1, skip=1)
        assert [t.description for t in task_repository.list(test_user_id, query)] == ["b task"]
