import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from app.core.realtime import ChangeEvent, ChangeFeed, get_change_feed
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])

REALTIME_TABLES = ("tasks", "comments", "project_members", "notifications", "activity_log")


@router.websocket("/{table}")
async def subscribe_table(
    websocket: WebSocket,
    table: str,
    token: Optional[str] = None,
    filter_column: Optional[str] = None,
    filter_value: Optional[str] = None,
    feed: ChangeFeed = Depends(get_change_feed),
    supabase: Client = Depends(get_supabase)
):
    """
    Stream row changes of one table as JSON:
    {"eventType": "INSERT" | "UPDATE" | "DELETE", "table": ..., "new": {...}, "old": {...}}

    Optional filter_column/filter_value narrow the stream to matching rows.
    """
    if table not in REALTIME_TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user = AuthService(supabase).get_current_user(token or "")
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    loop = asyncio.get_running_loop()

    def on_change(event: ChangeEvent) -> None:
        # Publishers may run in a worker thread
        loop.call_soon_threadsafe(queue.put_nowait, event.to_dict())

    unsubscribe = feed.subscribe(table, on_change, filter_column, filter_value)
    logger.info(f"Realtime subscriber {user['id']} on {table}")

    async def forward() -> None:
        while True:
            await websocket.send_json(await queue.get())

    sender = asyncio.create_task(forward())
    try:
        # Incoming messages are ignored; receiving detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        unsubscribe()
        logger.info(f"Realtime subscriber {user['id']} left {table}")
