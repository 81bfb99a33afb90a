from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from app.database import Base
import enum
from datetime import datetime


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class TaskStatus(str, enum.Enum):
    # "overdue" and "due-soon" are derived at read time, never stored
    PENDING = "pending"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime, nullable=False)

    # Task properties
    priority = Column(Enum(TaskPriority, values_callable=_enum_values), nullable=False)
    status = Column(Enum(TaskStatus, values_callable=_enum_values), default=TaskStatus.PENDING, nullable=False)

    # Relationships
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_by = Column(Integer, nullable=False)

    # System dates
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    assignee = relationship("User", foreign_keys=[assigned_to], back_populates="assigned_tasks")

    @property
    def assigned_to_email(self):
        return self.assignee.email if self.assignee is not None else None
