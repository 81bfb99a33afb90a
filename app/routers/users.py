from fastapi import APIRouter, Depends
from typing import List

from app.schemas.user import EmployeeOut
from app.services.task_service import TaskService, get_task_service
from app.utils.access import Actor
from app.utils.auth import get_current_actor

router = APIRouter()


@router.get("/employees", response_model=List[EmployeeOut])
def list_employees(
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
):
    """Employees a manager can assign tasks to"""
    return service.list_employees(actor)
