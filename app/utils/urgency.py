# app/utils/urgency.py
"""
Derived task status and urgency score.

Both values are a pure function of the stored task fields and the current time.
They are recomputed on every read and never written back to the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.models.task import TaskStatus, TaskPriority

PRIORITY_WEIGHTS = {
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}

DUE_SOON_WINDOW = timedelta(hours=24)

OVERDUE = "overdue"
DUE_SOON = "due-soon"
PENDING = "pending"
COMPLETED = "completed"


@dataclass(frozen=True)
class Classification:
    status: str
    urgency_score: Optional[int]


def priority_weight(priority) -> int:
    return PRIORITY_WEIGHTS[TaskPriority(priority)]


def days_left(deadline: datetime, now: datetime) -> int:
    """Whole days between now and the deadline, truncated toward zero"""
    seconds = (deadline - now).total_seconds()
    return int(seconds / 86400)


def urgency_score(task, now: datetime) -> int:
    """Higher means more urgent: -days_left + priority weight"""
    return -days_left(task.deadline, now) + priority_weight(task.priority)


def derived_status(task, now: datetime) -> str:
    if TaskStatus(task.status) == TaskStatus.COMPLETED:
        return COMPLETED
    if task.deadline < now:
        return OVERDUE
    if task.deadline <= now + DUE_SOON_WINDOW:
        return DUE_SOON
    return PENDING


def classify(task, now: datetime) -> Classification:
    status = derived_status(task, now)
    if status == COMPLETED:
        return Classification(status=status, urgency_score=None)
    return Classification(status=status, urgency_score=urgency_score(task, now))


def as_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware datetimes on the way in"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utc_isoformat(value: datetime) -> str:
    """ISO 8601 with an explicit UTC marker, so clients never read it as local time"""
    return as_naive_utc(value).isoformat() + "Z"
