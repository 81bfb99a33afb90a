#!/usr/bin/env python3
"""
Print live task events from a running server
Run with: python watch_events.py <token> [ws://localhost:8000/ws]

The server sends every event to every viewer; this client only prints the ones
that concern the token's user, the same way a dashboard would filter them.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import websockets
from jose import jwt

from app.models.user import UserRole
from app.utils.access import Actor, access_policy

logger = logging.getLogger(__name__)


def actor_from_token(token: str) -> Actor:
    """Read the viewer's identity from the token; the server has already verified it"""
    claims = jwt.get_unverified_claims(token)
    return Actor(user_id=int(claims["id"]), role=UserRole(claims["role"]))


def concerns_viewer(actor: Optional[Actor], message: dict) -> bool:
    if actor is None or not message.get("type", "").startswith("task:"):
        return True
    # A deletion only carries the id; the viewer drops it if the task is on screen
    if message["type"] == "task:deleted":
        return True
    return access_policy.can_view(actor, message.get("data") or {})


async def watch(uri: str, actor: Optional[Actor] = None):
    logger.info(f"Connecting to {uri.split('?')[0]}...")
    try:
        async with websockets.connect(uri) as websocket:
            async for raw in websocket:
                message = json.loads(raw)
                if not concerns_viewer(actor, message):
                    continue
                data = message.get("data") or {}
                if message["type"] == "task:deleted":
                    logger.info(f"{message['type']}: #{data.get('id')}")
                elif message["type"].startswith("task:"):
                    logger.info(f"{message['type']}: #{data.get('id')} {data.get('title')!r} [{data.get('status')}]")
                else:
                    logger.info(f"{message['type']}: {message.get('message', '')}")
    except websockets.exceptions.ConnectionClosed as e:
        logger.error(f"Connection closed: {e}")
    except websockets.exceptions.InvalidURI as e:
        logger.error(f"Invalid URI: {e}")
    except websockets.exceptions.WebSocketException as e:
        logger.error(f"WebSocket error: {e}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    if len(sys.argv) < 2:
        sys.exit(__doc__)
    token = sys.argv[1]
    base = sys.argv[2] if len(sys.argv) > 2 else "ws://localhost:8000/ws"
    asyncio.run(watch(f"{base}?token={token}", actor_from_token(token)))
