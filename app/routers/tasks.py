from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from typing import Callable, List, Optional
from datetime import datetime
import csv
import io

from app.models.task import TaskPriority, TaskStatus
from app.schemas.task import TaskCreate, TaskOut, TaskStatusUpdate, TaskView, TaskListWithStats
from app.services.task_service import TaskService, get_task_service, get_clock
from app.utils.access import Actor
from app.utils.ordering import sort_tasks
from app.utils.auth import get_current_actor
from app.utils.urgency import OVERDUE

router = APIRouter(prefix="/tasks", tags=["tasks"])

REPORT_COLUMNS = [
    "Task Title",
    "Description",
    "Assigned Employee Name",
    "Assigned Employee Email",
    "Priority",
    "Deadline",
    "Status",
    "Created Date",
    "Completed Date",
]


def _matches(task, q: Optional[str]) -> bool:
    if not q:
        return True
    needle = q.lower()
    return needle in task.title.lower() or needle in (task.description or "").lower()


@router.get("", response_model=TaskListWithStats)
def list_tasks(
    q: Optional[str] = Query(None, description="Search title and description"),
    priority: Optional[TaskPriority] = Query(None),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Tasks visible to the caller with derived status, in presentation order.

    Stats are computed over every visible task; filters only narrow `tasks`.
    """
    now = clock()
    views = [TaskView.from_task(task, now) for task in service.list_tasks(actor)]

    stats = {
        "total": len(views),
        "pending": sum(v.status == TaskStatus.PENDING for v in views),
        "completed": sum(v.status == TaskStatus.COMPLETED for v in views),
        "overdue": sum(v.display_status == OVERDUE for v in views),
    }

    filtered: List[TaskView] = [
        v for v in views
        if _matches(v, q)
        and (priority is None or v.priority == priority)
        and (status_filter is None or v.status == status_filter)
    ]
    return {**stats, "tasks": sort_tasks(filtered)}


@router.post("", response_model=TaskOut)
def create_task(
    task: TaskCreate,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
):
    return service.create_task(actor, task)


@router.get("/export")
def export_tasks(
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """CSV report of every task, pending first, then priority, then deadline"""
    rows = service.report_rows(actor)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(REPORT_COLUMNS)
    for task in rows:
        assignee_email = task.assigned_to_email or "Unassigned"
        writer.writerow([
            task.title,
            task.description or "",
            assignee_email,
            assignee_email,
            task.priority.value,
            task.deadline.isoformat(),
            task.status.value,
            task.created_at.isoformat(),
            task.completed_at.isoformat() if task.completed_at else "N/A",
        ])
    csv_content = output.getvalue()
    output.close()

    filename = f"Task_Report_{clock().strftime('%Y_%m_%d')}.csv"
    return StreamingResponse(
        io.BytesIO(csv_content.encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.patch("/{task_id}", response_model=TaskOut)
def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
):
    return service.set_task_status(actor, task_id, status_update.status)


@router.delete("/{task_id}", status_code=status.HTTP_200_OK)
def delete_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
):
    service.delete_task(actor, task_id)
    return {"success": True}
