"""
Demo data for local development
Creates one manager, a few employees and a spread of tasks around "now"
"""

import logging
from datetime import datetime, timedelta

from app.database import Base, SessionLocal, engine
from app.models.task import TaskPriority, TaskStatus
from app.models.user import User, UserRole
from app.schemas.task import TaskCreate
from app.services.task_service import TaskService
from app.services.task_store import TaskStore
from app.utils.access import Actor
from app.utils.auth import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {"email": "manager@company.com", "role": UserRole.MANAGER},
    {"email": "priya.sharma@company.com", "role": UserRole.EMPLOYEE},
    {"email": "arjun.singh@company.com", "role": UserRole.EMPLOYEE},
    {"email": "deepika.patel@company.com", "role": UserRole.EMPLOYEE},
]

# (title, description, assignee index, priority, deadline offset, completed)
DEMO_TASKS = [
    ("Quarterly report", "Collect numbers from all teams", 1, TaskPriority.HIGH, timedelta(hours=6), False),
    ("Update onboarding docs", None, 1, TaskPriority.LOW, timedelta(days=7), False),
    ("Fix login bug", "Users with + in email cannot sign in", 2, TaskPriority.HIGH, timedelta(days=-1), False),
    ("Vendor follow-up", "Call back about the invoice", 2, TaskPriority.MEDIUM, timedelta(days=2), True),
    ("Prepare demo", None, 3, TaskPriority.MEDIUM, timedelta(hours=20), False),
]


def seed_users(db):
    users = []
    for data in DEMO_USERS:
        user = db.query(User).filter(User.email == data["email"]).first()
        if user is None:
            user = User(email=data["email"], hashed_password=hash_password(DEMO_PASSWORD), role=data["role"])
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Created {data['role'].value} {user.email}")
        users.append(user)
    return users


def seed_tasks(db, users):
    service = TaskService(TaskStore(db))
    manager = Actor(user_id=users[0].id, role=UserRole.MANAGER)
    now = datetime.utcnow()
    for title, description, assignee, priority, offset, completed in DEMO_TASKS:
        task = service.create_task(
            manager,
            TaskCreate(
                title=title,
                description=description,
                deadline=now + offset,
                priority=priority,
                assigned_to=users[assignee].id,
            ),
        )
        if completed:
            service.set_task_status(manager, task.id, TaskStatus.COMPLETED)
    logger.info(f"Created {len(DEMO_TASKS)} tasks")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users = seed_users(db)
        seed_tasks(db, users)
    finally:
        db.close()
    logger.info(f"Done. Every demo account uses the password '{DEMO_PASSWORD}'")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
