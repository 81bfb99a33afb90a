# app/services/task_store.py
"""
Authoritative task storage on top of SQLAlchemy.

Every mutation runs under the store's mutation lock and inside a single
transaction, so a reader never sees id, status and completed_at out of step.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.models.task import Task, TaskStatus, TaskPriority
from app.models.user import User, UserRole
from app.utils.access import AccessPolicy, Actor, access_policy
from app.utils.errors import ValidationError, NotFoundError, TransientStoreError
from app.utils.ordering import report_order_by
from app.utils.urgency import as_naive_utc

logger = logging.getLogger(__name__)

# One mutation sequencer shared by every request-scoped store
store_lock = threading.RLock()


class TaskStore:
    def __init__(
        self,
        db: Session,
        lock: Optional[threading.RLock] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        policy: AccessPolicy = access_policy,
    ):
        self.db = db
        self.lock = lock or store_lock
        self.clock = clock
        self.policy = policy

    @contextmanager
    def mutation(self):
        """Hold the mutation lock; nested store calls re-enter it"""
        with self.lock:
            yield

    # Reads

    def _task_query(self):
        return self.db.query(Task).options(joinedload(Task.assignee)).populate_existing()

    def get(self, task_id: int) -> Task:
        try:
            task = self._task_query().filter(Task.id == task_id).first()
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Could not load task {task_id}") from e
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def list(self, viewer_role, viewer_id: int) -> List[Task]:
        query = self.policy.filter_visible(self._task_query(), Actor(user_id=viewer_id, role=viewer_role))
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise TransientStoreError("Could not list tasks") from e

    def list_for_report(self) -> List[Task]:
        try:
            return self._task_query().order_by(*report_order_by()).all()
        except SQLAlchemyError as e:
            raise TransientStoreError("Could not load report rows") from e

    def get_user(self, user_id: int) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            raise TransientStoreError(f"Could not load user {user_id}") from e

    def list_employees(self) -> List[User]:
        try:
            return self.db.query(User).filter(User.role == UserRole.EMPLOYEE).order_by(User.id).all()
        except SQLAlchemyError as e:
            raise TransientStoreError("Could not list employees") from e

    # Mutations

    def create(
        self,
        title: str,
        deadline: Optional[datetime],
        priority,
        assigned_to: Optional[int],
        created_by: int,
        description: Optional[str] = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if deadline is None:
            raise ValidationError("Deadline is required")
        try:
            priority = TaskPriority(priority)
        except ValueError:
            raise ValidationError(f"Unknown priority: {priority}")

        with self.mutation():
            assignee = self.get_user(assigned_to) if assigned_to is not None else None
            if assignee is None or UserRole(assignee.role) != UserRole.EMPLOYEE:
                raise ValidationError(f"Assignee {assigned_to} is not an employee")

            task = Task(
                title=title.strip(),
                description=description,
                deadline=as_naive_utc(deadline),
                priority=priority,
                status=TaskStatus.PENDING,
                assigned_to=assignee.id,
                created_by=created_by,
                created_at=self.clock(),
                completed_at=None,
            )
            self.db.add(task)
            self._commit(f"create task '{task.title}'", task)
            logger.info(f"Task {task.id} created by user {created_by} for user {assignee.id}")
            return task

    def set_status(self, task_id: int, status) -> Task:
        try:
            status = TaskStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")

        with self.mutation():
            task = self.get(task_id)
            task.status = status
            task.completed_at = self.clock() if status == TaskStatus.COMPLETED else None
            self._commit(f"update task {task_id}", task)
            logger.info(f"Task {task_id} status set to {status.value}")
            return task

    def delete(self, task_id: int) -> None:
        with self.mutation():
            task = self.get(task_id)
            self.db.delete(task)
            self._commit(f"delete task {task_id}")
            logger.info(f"Task {task_id} deleted")

    def _commit(self, action: str, task: Optional[Task] = None) -> None:
        """Commit the pending change; a task passed in is read back before the commit"""
        try:
            if task is not None:
                self.db.flush()
                self.db.refresh(task)
                # post-image needs the assignee after the transaction ends
                task.assignee
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not {action}: {e}")
            raise TransientStoreError(f"Could not {action}") from e
