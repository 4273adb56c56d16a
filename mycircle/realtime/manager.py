"""Registry of live WebSocket connections.

One instance is created by the app factory and kept on ``app.state``; a
user may hold several sockets (tabs, devices). Delivery is best effort:
a send that fails drops the socket and moves on.
"""

import logging

from fastapi import WebSocket, WebSocketDisconnect

from .events import Event, envelope

logger = logging.getLogger(__name__)

SEND_ERRORS = (WebSocketDisconnect, RuntimeError, OSError)


class ConnectionManager:
    def __init__(self) -> None:
        # user_id -> open sockets
        self.active_connections: dict[str, set[WebSocket]] = {}
        # conversation_id -> user_ids with the conversation open
        self.rooms: dict[str, set[str]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        self.active_connections.setdefault(user_id, set()).add(websocket)
        logger.info("WebSocket connected: user=%s sockets=%d", user_id, len(self.active_connections[user_id]))

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        sockets = self.active_connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.active_connections[user_id]

        if user_id not in self.active_connections:
            for room_id in [r for r, members in self.rooms.items() if user_id in members]:
                self.leave(user_id, room_id)
        logger.info("WebSocket disconnected: user=%s", user_id)

    def join(self, user_id: str, conversation_id: str) -> None:
        self.rooms.setdefault(conversation_id, set()).add(user_id)

    def leave(self, user_id: str, conversation_id: str) -> None:
        members = self.rooms.get(conversation_id)
        if members is None:
            return
        members.discard(user_id)
        if not members:
            del self.rooms[conversation_id]

    def in_room(self, conversation_id, user_id) -> bool:
        """Whether ``user_id`` has ``conversation_id`` open."""
        return str(user_id) in self.rooms.get(str(conversation_id), ())

    def is_online(self, user_id) -> bool:
        return str(user_id) in self.active_connections

    async def send_to_user(self, user_id, event: Event | str, data: dict | None = None) -> int:
        """Push one event to every socket of ``user_id``. Returns how many sends succeeded."""
        uid = str(user_id)
        sockets = list(self.active_connections.get(uid, ()))
        if not sockets:
            logger.debug("No live socket for user=%s, dropping %s", uid, event)
            return 0

        frame = envelope(event, data)
        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_text(frame)
                delivered += 1
            except SEND_ERRORS as exc:
                logger.warning("Dropping dead socket for user=%s: %s", uid, exc)
                self.disconnect(websocket, uid)
        return delivered

    async def close_all(self) -> None:
        """Close every socket; called on application shutdown."""
        for user_id, sockets in list(self.active_connections.items()):
            for websocket in list(sockets):
                try:
                    await websocket.close(code=1001)
                except SEND_ERRORS as exc:
                    logger.debug("Close failed for user=%s: %s", user_id, exc)
        self.active_connections.clear()
        self.rooms.clear()
