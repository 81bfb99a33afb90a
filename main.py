from fastapi import FastAPI, Depends, WebSocket, WebSocketDisconnect, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import HTTPException
import json
import logging
from datetime import datetime

from app.config.settings import settings
from app.database import Base, engine
from app.routers import auth, users, tasks
from app.services.broadcaster import EventBroadcaster, broadcaster
from app.services.task_service import get_broadcaster
from app.utils.auth import IdentityProvider, get_identity_provider
from app.utils.errors import TaskTrackerError, TransientStoreError
from app.utils.urgency import utc_isoformat

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Task Tracker API")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(tasks.router)


@app.exception_handler(TaskTrackerError)
async def task_error_handler(request: Request, exc: TaskTrackerError):
    if isinstance(exc, TransientStoreError):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Task Tracker API...")
    Base.metadata.create_all(bind=engine)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down Task Tracker API with {broadcaster.get_total_connections()} open connection(s)")


# Root route
@app.get("/")
def read_root():
    return {"message": "Task Tracker API"}


@app.get("/health")
def health(events: EventBroadcaster = Depends(get_broadcaster)):
    return {"status": "ok", "connections": events.get_total_connections()}


# WebSocket endpoint for live task updates
@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = None,
    events: EventBroadcaster = Depends(get_broadcaster),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    try:
        actor = provider.resolve(token or "")
    except HTTPException as e:
        logger.info(f"WebSocket rejected: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    session = await events.connect(websocket, actor)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                received = json.loads(data)
            except json.JSONDecodeError:
                continue

            if isinstance(received, dict) and received.get("type") == "get_users":
                session.enqueue(
                    {
                        "type": "users_list",
                        "users": events.registry.get_connected_users(),
                        "total_count": events.get_total_connections(),
                        "timestamp": utc_isoformat(datetime.utcnow()),
                    }
                )
    except WebSocketDisconnect:
        pass
    finally:
        await events.disconnect(session)
