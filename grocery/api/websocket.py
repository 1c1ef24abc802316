"""WebSocket endpoint for real-time list synchronization."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from grocery.database import Database
from grocery.exceptions import AppError
from grocery.models.user import User
from grocery.services.auth import user_id_from_token
from grocery.services.permissions import get_list_access
from grocery.services.realtime import RealtimeService, channel_for

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ws", tags=["websocket"])

# Application-defined close codes
CLOSE_UNAUTHENTICATED = 4001
CLOSE_FORBIDDEN = 4003
PING_INTERVAL_SECONDS = 30


def _authorize(database: Database, token: str, list_id: UUID) -> tuple[int, str] | None:
    """Check the token and list membership. Returns a close code and reason on failure."""
    db = database.session_factory()
    try:
        user_id = user_id_from_token(token)
        if user_id is None:
            return CLOSE_UNAUTHENTICATED, "Invalid token"

        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return CLOSE_UNAUTHENTICATED, "User not found"

        try:
            get_list_access(db, list_id, user)
        except AppError as e:
            return CLOSE_FORBIDDEN, e.message
        return None
    finally:
        db.close()


async def run_until_first_exits(*handlers: Coroutine[Any, Any, None]) -> None:
    """Run handlers concurrently; once one returns, cancel and await the rest.

    A closed client must not leave the pub/sub listener waiting for the next
    event on the channel.
    """
    tasks = [asyncio.create_task(handler) for handler in handlers]
    _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


@router.websocket("/lists/{list_id}")
async def websocket_list_sync(
    websocket: WebSocket,
    list_id: UUID,
    token: str = Query(...),
) -> None:
    """WebSocket endpoint for real-time list updates.

    Authentication via token query parameter (WebSocket doesn't support headers).
    Subscribes to the list's Redis pub/sub channel and forwards its events.
    """
    failure = _authorize(websocket.app.state.database, token, list_id)
    if failure is not None:
        code, reason = failure
        await websocket.close(code=code, reason=reason)
        return

    realtime_service = RealtimeService()
    try:
        await websocket.accept()
        logger.info(f"WebSocket connected: list={list_id}")

        async def handle_messages() -> None:
            """Receive messages from Redis and forward to WebSocket."""
            async for message in realtime_service.subscribe(channel_for(list_id)):
                try:
                    await websocket.send_json(message)
                except WebSocketDisconnect:
                    break
                except Exception as e:
                    logger.error(f"Error sending WebSocket message: {e}")
                    break

        async def handle_ping() -> None:
            """Send periodic pings to keep connection alive."""
            while True:
                try:
                    await asyncio.sleep(PING_INTERVAL_SECONDS)
                    await websocket.send_json({"type": "ping"})
                except Exception:
                    break

        async def handle_client() -> None:
            """Handle incoming messages from client (pong responses)."""
            while True:
                try:
                    data = await websocket.receive_json()
                    if data.get("type") == "pong":
                        continue  # Keepalive acknowledgment
                except WebSocketDisconnect:
                    break
                except Exception:
                    break

        await run_until_first_exits(handle_messages(), handle_ping(), handle_client())
        logger.info(f"WebSocket disconnected: list={list_id}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: list={list_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        await realtime_service.cleanup()
