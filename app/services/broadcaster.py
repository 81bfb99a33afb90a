# app/services/broadcaster.py
"""
Fan-out of committed task mutations to connected viewer sessions.

Each session owns a FIFO queue drained by its own sender task, so a session sees
events in commit order and a slow or dead session never holds up the publisher.
Delivery is best-effort: nothing is persisted or replayed, and a reconnecting
viewer re-fetches the task list.
"""

import asyncio
import enum
import json
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.config.settings import settings
from app.utils.access import Actor
from app.utils.urgency import utc_isoformat

logger = logging.getLogger(__name__)


class TaskEvent(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ViewerSession:
    """One connected viewer: a websocket plus its outbound queue"""

    def __init__(self, websocket, actor: Optional[Actor], queue_size: int):
        self.websocket = websocket
        self.actor = actor
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.loop = asyncio.get_running_loop()
        self.connected_at = datetime.now()
        self.sender: Optional[asyncio.Task] = None
        self.dropped = 0

    def enqueue(self, message: Dict[str, Any]) -> bool:
        """Queue a message for this session; must run on the session's loop"""
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Session of user {self.user_id} is too slow, dropped {message.get('type')}")
            return False

    @property
    def user_id(self) -> Optional[int]:
        return self.actor.user_id if self.actor else None


class SessionRegistry:
    """Who is connected right now. Safe to read from worker threads."""

    def __init__(self):
        self._sessions: List[ViewerSession] = []
        self._lock = threading.Lock()

    def register(self, session: ViewerSession) -> None:
        with self._lock:
            self._sessions.append(session)
        logger.info(f"User {session.user_id} connected. Total connections: {len(self)}")

    def unregister(self, session: ViewerSession) -> bool:
        with self._lock:
            if session not in self._sessions:
                return False
            self._sessions.remove(session)
        logger.info(f"User {session.user_id} disconnected. Remaining connections: {len(self)}")
        return True

    def sessions(self) -> List[ViewerSession]:
        with self._lock:
            return list(self._sessions)

    def get_connected_users(self) -> List[int]:
        return sorted({s.user_id for s in self.sessions() if s.user_id is not None})

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class EventBroadcaster:
    def __init__(self, queue_size: int = settings.BROADCAST_QUEUE_SIZE):
        self.registry = SessionRegistry()
        self.queue_size = queue_size

    async def connect(self, websocket, actor: Optional[Actor]) -> ViewerSession:
        """Register a session and start draining its queue.

        The websocket must already be accepted.
        """
        session = ViewerSession(websocket, actor, self.queue_size)
        session.enqueue(
            {
                "type": "connection",
                "message": "Connected to task updates",
                "timestamp": utc_isoformat(datetime.utcnow()),
            }
        )
        self.registry.register(session)
        session.sender = asyncio.create_task(self._drain(session))
        return session

    async def disconnect(self, session: ViewerSession) -> None:
        self.registry.unregister(session)
        if session.sender is not None and session.sender is not asyncio.current_task():
            session.sender.cancel()
            try:
                await session.sender
            except asyncio.CancelledError:
                pass

    def publish(self, kind: TaskEvent, payload: Dict[str, Any]) -> int:
        """Hand one event to every registered session without waiting on any of them.

        Callable from the event loop or from a worker thread. Returns the number
        of sessions the event was handed to.
        """
        message = {
            "type": f"task:{TaskEvent(kind).value}",
            "data": payload,
            "timestamp": utc_isoformat(datetime.utcnow()),
        }
        delivered = 0
        for session in self.registry.sessions():
            if self._deliver(session, message):
                delivered += 1
        logger.debug(f"Published {message['type']} to {delivered} session(s)")
        return delivered

    def _deliver(self, session: ViewerSession, message: Dict[str, Any]) -> bool:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is session.loop:
            return session.enqueue(message)
        try:
            session.loop.call_soon_threadsafe(session.enqueue, message)
            return True
        except RuntimeError:
            # The session's loop is gone; it can never receive anything again
            logger.warning(f"Event loop closed for user {session.user_id}, removing session")
            self.registry.unregister(session)
            return False

    async def _drain(self, session: ViewerSession) -> None:
        while True:
            message = await session.queue.get()
            try:
                await session.websocket.send_text(json.dumps(message, default=str))
            except Exception as e:
                logger.error(f"Error sending {message.get('type')} to user {session.user_id}: {e}")
                self.registry.unregister(session)
                return

    def get_total_connections(self) -> int:
        return len(self.registry)


# Global instance
broadcaster = EventBroadcaster()
