# app/utils/ordering.py
from typing import Iterable, List

from sqlalchemy import case

from app.models.task import Task, TaskStatus, TaskPriority
from app.utils.urgency import priority_weight


def _sort_key(task):
    return (
        TaskStatus(task.status) == TaskStatus.COMPLETED,
        -priority_weight(task.priority),
        task.deadline,
    )


def sort_tasks(tasks: Iterable) -> List:
    """Completed tasks last, then priority High to Low, then soonest deadline first"""
    return sorted(tasks, key=_sort_key)


def report_order_by():
    """The same order expressed as SQL ORDER BY clauses for report queries"""
    return [
        case((Task.status == TaskStatus.PENDING, 0), else_=1),
        case(
            (Task.priority == TaskPriority.HIGH, 0),
            (Task.priority == TaskPriority.MEDIUM, 1),
            else_=2,
        ),
        Task.deadline.asc(),
        Task.id.asc(),
    ]
