from pydantic import BaseModel, field_serializer
from typing import List, Optional
from datetime import datetime

from app.models.task import TaskStatus, TaskPriority
from app.utils.urgency import classify, utc_isoformat


class TaskCreate(BaseModel):
    # title/deadline/assignee are checked by the store so every surface gets the same errors
    title: str = ""
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: Optional[int] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskOut(BaseModel):
    """Post-image of a task as broadcast to viewers"""
    id: int
    title: str
    description: Optional[str] = None
    deadline: datetime
    priority: TaskPriority
    status: TaskStatus
    assigned_to: int
    assigned_to_email: Optional[str] = None
    created_by: int
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

    @field_serializer("deadline", "created_at", "completed_at", when_used="json")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        return utc_isoformat(value) if value is not None else None


class TaskView(TaskOut):
    """TaskOut plus the values derived at read time"""
    display_status: str
    urgency_score: Optional[int] = None

    @classmethod
    def from_task(cls, task, now: datetime) -> "TaskView":
        derived = classify(task, now)
        base = TaskOut.model_validate(task).model_dump()
        return cls(**base, display_status=derived.status, urgency_score=derived.urgency_score)


class TaskListWithStats(BaseModel):
    total: int
    pending: int
    completed: int
    overdue: int
    tasks: List[TaskView]
