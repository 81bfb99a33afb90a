# app/services/task_service.py
"""
Entry points for task operations: access check, store mutation, broadcast.

A failed check or a failed commit raises before anything is published, so a
broadcast always describes a committed change.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.task import TaskCreate, TaskOut
from app.services.broadcaster import EventBroadcaster, TaskEvent, broadcaster
from app.services.task_store import TaskStore
from app.utils.access import AccessPolicy, Actor, access_policy

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        events: Optional[EventBroadcaster] = None,
        policy: AccessPolicy = access_policy,
    ):
        self.store = store
        self.events = events if events is not None else broadcaster
        self.policy = policy

    def create_task(self, actor: Actor, fields: TaskCreate):
        self.policy.check_create(actor)
        with self.store.mutation():
            task = self.store.create(
                title=fields.title,
                description=fields.description,
                deadline=fields.deadline,
                priority=fields.priority,
                assigned_to=fields.assigned_to,
                created_by=actor.user_id,
            )
            self._publish(TaskEvent.CREATED, task)
        return task

    def set_task_status(self, actor: Actor, task_id: int, status):
        with self.store.mutation():
            task = self.store.get(task_id)
            self.policy.check_set_status(actor, task)
            task = self.store.set_status(task_id, status)
            self._publish(TaskEvent.UPDATED, task)
        return task

    def delete_task(self, actor: Actor, task_id: int) -> None:
        self.policy.check_delete(actor)
        with self.store.mutation():
            self.store.delete(task_id)
            self.events.publish(TaskEvent.DELETED, {"id": task_id})

    def list_tasks(self, actor: Actor) -> List:
        """Tasks the actor may see, unordered"""
        return self.store.list(actor.role, actor.user_id)

    def list_employees(self, actor: Actor) -> List:
        self.policy.check_list_employees(actor)
        return self.store.list_employees()

    def report_rows(self, actor: Actor) -> List:
        self.policy.check_export(actor)
        return self.store.list_for_report()

    def _publish(self, kind: TaskEvent, task) -> None:
        payload = TaskOut.model_validate(task).model_dump(mode="json")
        self.events.publish(kind, payload)


def get_broadcaster() -> EventBroadcaster:
    return broadcaster


def get_clock() -> Callable[[], datetime]:
    return datetime.utcnow


def get_task_service(
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_broadcaster),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TaskService:
    return TaskService(TaskStore(db, clock=clock), events=events)
