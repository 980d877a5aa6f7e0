# ============================================================================
# LEO-CAD Officer Chat — WebSocket Push Channel
# ============================================================================
# Fire-and-forget broadcast of officer chat events to every connected LEO
# client. Duty filtering happens client-side.
# ============================================================================

from fastapi import WebSocket
from typing import Dict, Set, Any
import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

OFFICER_CHAT_EVENT = "officer-chat"
OFFICER_CHAT_DELETED_EVENT = "officer-chat-deleted"


class MessageBroadcaster:
    """
    Manages WebSocket connections for officer chat push events.

    Features:
    - Per-user connection tracking (a user may have several tabs open)
    - Broadcast to all users
    - Send to specific user
    - Connection heartbeat/ping
    """

    def __init__(self):
        # Map user_id -> set of WebSocket connections
        self._connections: Dict[str, Set[WebSocket]] = {}
        # Map WebSocket -> user_id
        self._ws_to_user: Dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str):
        """Register a new WebSocket connection for a user."""
        await websocket.accept()

        async with self._lock:
            if user_id not in self._connections:
                self._connections[user_id] = set()
            self._connections[user_id].add(websocket)
            self._ws_to_user[websocket] = user_id

        logger.info(f"[WS] User {user_id} connected. Total connections: {self._count_connections()}")

        await self._send_to_websocket(websocket, {
            "type": "connected",
            "user_id": user_id,
            "timestamp": datetime.now().isoformat(),
        })

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            user_id = self._ws_to_user.pop(websocket, None)
            if user_id and user_id in self._connections:
                self._connections[user_id].discard(websocket)
                if not self._connections[user_id]:
                    del self._connections[user_id]

        logger.info(f"[WS] User {user_id} disconnected. Total connections: {self._count_connections()}")

    def _count_connections(self) -> int:
        return sum(len(conns) for conns in self._connections.values())

    # ---- Core Send/Broadcast ----

    async def _send_to_websocket(self, ws: WebSocket, data: Dict) -> bool:
        """Send data to a single WebSocket."""
        try:
            await ws.send_json(data)
            return True
        except Exception as e:
            # Any transport failure means the socket is gone; caller drops it.
            logger.warning(f"[WS] Send failed: {e}")
            return False

    async def send_to_user(self, user_id: str, event_type: str, data: Any) -> int:
        """Send event to all connections for a specific user."""
        message = {
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            "data": data,
        }

        sent_count = 0
        failed_connections = []

        async with self._lock:
            connections = self._connections.get(user_id, set()).copy()

        for ws in connections:
            if await self._send_to_websocket(ws, message):
                sent_count += 1
            else:
                failed_connections.append(ws)

        for ws in failed_connections:
            await self.disconnect(ws)

        return sent_count

    async def broadcast(self, event_type: str, data: Any) -> int:
        """Broadcast event to all connected users."""
        total_sent = 0

        async with self._lock:
            all_users = list(self._connections.keys())

        for user_id in all_users:
            total_sent += await self.send_to_user(user_id, event_type, data)

        logger.debug(f"[WS] {event_type} delivered to {total_sent} connection(s)")
        return total_sent

    async def ping_all(self):
        """Send ping to all connections to keep them alive."""
        async with self._lock:
            all_websockets = [
                ws for conns in self._connections.values()
                for ws in conns
            ]

        for ws in all_websockets:
            ok = await self._send_to_websocket(ws, {"type": "ping", "timestamp": datetime.now().isoformat()})
            if not ok:
                await self.disconnect(ws)

    async def handle_client_message(self, websocket: WebSocket, data: Dict):
        """Route incoming WebSocket messages from client. Only keepalive is understood."""
        if data.get("type") == "ping":
            await self._send_to_websocket(websocket, {
                "type": "pong",
                "timestamp": datetime.now().isoformat(),
            })


# Singleton instance
_broadcaster = None


def get_broadcaster() -> MessageBroadcaster:
    """Get or create the singleton broadcaster instance."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = MessageBroadcaster()
    return _broadcaster
