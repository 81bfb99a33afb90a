# app/utils/access.py
from dataclasses import dataclass

from sqlalchemy.orm import Query

from app.models.task import Task
from app.models.user import UserRole
from app.utils.errors import ForbiddenError


@dataclass(frozen=True)
class Actor:
    """Identity of the caller as supplied by the identity provider"""
    user_id: int
    role: UserRole

    @property
    def is_manager(self) -> bool:
        return UserRole(self.role) == UserRole.MANAGER


class AccessPolicy:
    """Role-scoped visibility and mutation rules for tasks.

    manager  - sees all tasks, may create, update status of and delete any task
    employee - sees only tasks assigned to them, may update status of those only
    """

    def filter_visible(self, query: Query, actor: Actor) -> Query:
        """Restrict a Task query to what the actor is allowed to list"""
        if actor.is_manager:
            return query
        return query.filter(Task.assigned_to == actor.user_id)

    def can_view(self, actor: Actor, task) -> bool:
        """Check whether a single task (or event payload) concerns the actor.

        The broadcaster does not filter, so viewers apply this to the events they
        receive (see watch_events.py).
        """
        if actor.is_manager:
            return True
        return _assignee_id(task) == actor.user_id

    def check_create(self, actor: Actor) -> None:
        if not actor.is_manager:
            raise ForbiddenError("Only managers can create tasks")

    def check_set_status(self, actor: Actor, task) -> None:
        if actor.is_manager:
            return
        if _assignee_id(task) != actor.user_id:
            raise ForbiddenError("Task is not assigned to you")

    def check_delete(self, actor: Actor) -> None:
        if not actor.is_manager:
            raise ForbiddenError("Only managers can delete tasks")

    def check_list_employees(self, actor: Actor) -> None:
        if not actor.is_manager:
            raise ForbiddenError("Only managers can list employees")

    def check_export(self, actor: Actor) -> None:
        if not actor.is_manager:
            raise ForbiddenError("Only managers can export reports")


def _assignee_id(task):
    if isinstance(task, dict):
        return task.get("assigned_to")
    return task.assigned_to


access_policy = AccessPolicy()
