from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.database import SessionLocal
from app.models.task import Task, TaskPriority, TaskStatus
from app.models.user import UserRole
from app.utils.errors import NotFoundError, TransientStoreError, ValidationError

from .fakes import actor_for


def create(store, employee, manager, clock, **overrides):
    fields = {
        "title": "Report",
        "description": "Quarterly numbers",
        "deadline": clock() + timedelta(days=1),
        "priority": TaskPriority.HIGH,
        "assigned_to": employee.id,
        "created_by": manager.id,
    }
    fields.update(overrides)
    return store.create(**fields)


def count_tasks():
    db = SessionLocal()
    try:
        return db.query(Task).count()
    finally:
        db.close()


def test_create_returns_pending_post_image(store, employee, manager, clock):
    task = create(store, employee, manager, clock)

    assert task.id is not None
    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None
    assert task.created_at == clock()
    assert task.created_by == manager.id
    assert task.assigned_to_email == employee.email


def test_create_assigns_unique_ids(store, employee, manager, clock):
    ids = {create(store, employee, manager, clock, title=f"t{i}").id for i in range(3)}
    assert len(ids) == 3


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "   "},
        {"deadline": None},
        {"priority": "Urgent"},
        {"assigned_to": None},
        {"assigned_to": 999},
    ],
)
def test_create_rejects_bad_input_without_writing(store, employee, manager, clock, overrides):
    with pytest.raises(ValidationError):
        create(store, employee, manager, clock, **overrides)
    assert count_tasks() == 0


def test_create_rejects_manager_as_assignee(store, employee, manager, clock):
    with pytest.raises(ValidationError):
        create(store, employee, manager, clock, assigned_to=manager.id)
    assert count_tasks() == 0


def test_completed_at_follows_status(store, employee, manager, clock):
    task = create(store, employee, manager, clock)

    clock.advance(hours=3)
    done = store.set_status(task.id, TaskStatus.COMPLETED)
    assert done.status == TaskStatus.COMPLETED
    assert done.completed_at == clock()

    reverted = store.set_status(task.id, "pending")
    assert reverted.status == TaskStatus.PENDING
    assert reverted.completed_at is None


def test_setting_same_status_again_is_idempotent(store, employee, manager, clock):
    task = create(store, employee, manager, clock)
    first = store.set_status(task.id, TaskStatus.PENDING)
    second = store.set_status(task.id, TaskStatus.PENDING)
    assert first.status == second.status == TaskStatus.PENDING
    assert second.completed_at is None


def test_set_status_rejects_derived_statuses(store, employee, manager, clock):
    task = create(store, employee, manager, clock)
    with pytest.raises(ValidationError):
        store.set_status(task.id, "overdue")


def test_unknown_ids_raise_not_found(store):
    with pytest.raises(NotFoundError):
        store.get(42)
    with pytest.raises(NotFoundError):
        store.set_status(42, TaskStatus.COMPLETED)
    with pytest.raises(NotFoundError):
        store.delete(42)


def test_delete_is_permanent(store, employee, manager, clock):
    task = create(store, employee, manager, clock)
    store.delete(task.id)
    with pytest.raises(NotFoundError):
        store.get(task.id)
    assert store.list(UserRole.MANAGER, manager.id) == []


def test_list_is_scoped_by_role(store, employee, other_employee, manager, clock):
    mine = create(store, employee, manager, clock, title="mine")
    create(store, employee, manager, clock, title="theirs", assigned_to=other_employee.id)

    assert [t.id for t in store.list(UserRole.EMPLOYEE, employee.id)] == [mine.id]
    assert len(store.list(UserRole.MANAGER, manager.id)) == 2


def test_report_order_matches_presentation_order(store, employee, manager, clock):
    create(store, employee, manager, clock, title="low", priority=TaskPriority.LOW)
    done = create(store, employee, manager, clock, title="done", priority=TaskPriority.HIGH)
    store.set_status(done.id, TaskStatus.COMPLETED)
    create(store, employee, manager, clock, title="high-late", deadline=clock() + timedelta(days=4))
    create(store, employee, manager, clock, title="high-soon", deadline=clock() + timedelta(hours=3))
    create(store, employee, manager, clock, title="medium", priority=TaskPriority.MEDIUM)

    titles = [t.title for t in store.list_for_report()]
    assert titles == ["high-soon", "high-late", "medium", "low", "done"]


def test_list_employees_excludes_managers(store, employee, other_employee, manager):
    assert [u.email for u in store.list_employees()] == [employee.email, other_employee.email]


def test_commit_failure_surfaces_as_transient_and_rolls_back(store, db, employee, manager, clock, monkeypatch):
    task = create(store, employee, manager, clock)

    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(TransientStoreError):
        store.set_status(task.id, TaskStatus.COMPLETED)
    with pytest.raises(TransientStoreError):
        create(store, employee, manager, clock, title="never stored")
    monkeypatch.undo()

    check = SessionLocal()
    try:
        stored = check.query(Task).filter(Task.id == task.id).one()
        assert stored.status == TaskStatus.PENDING
        assert stored.completed_at is None
        assert check.query(Task).count() == 1
    finally:
        check.close()


def test_read_back_failure_surfaces_as_transient_and_rolls_back(store, service, events, db, employee, manager, clock, monkeypatch):
    task = create(store, employee, manager, clock)

    def broken_refresh(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "refresh", broken_refresh)
    with pytest.raises(TransientStoreError):
        service.set_task_status(actor_for(manager), task.id, TaskStatus.COMPLETED)
    with pytest.raises(TransientStoreError):
        create(store, employee, manager, clock, title="never stored")
    monkeypatch.undo()

    assert events.events == []
    check = SessionLocal()
    try:
        stored = check.query(Task).filter(Task.id == task.id).one()
        assert stored.status == TaskStatus.PENDING
        assert stored.completed_at is None
        assert check.query(Task).count() == 1
    finally:
        check.close()
