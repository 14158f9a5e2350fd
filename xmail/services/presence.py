"""
In-memory presence map for the realtime channel.

Maps a user id to the single WebSocket connection currently registered
for it. Nothing is persisted; a restart forgets everyone.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from xmail.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Connection:
    """A registered socket and the id handed back to the client."""
    connection_id: str
    websocket: Any


class PresenceRegistry:
    """user id -> Connection"""

    def __init__(self):
        self._online: Dict[str, Connection] = {}

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._online

    def __len__(self) -> int:
        return len(self._online)

    def get(self, user_id: str) -> Optional[Connection]:
        return self._online.get(user_id)

    async def register(self, user_id: str, websocket) -> Connection:
        """
        Register a socket for a user.

        An older socket for the same user is closed and replaced. A socket
        only ever stands for one user, so any entry it held before is dropped.
        """
        for other_id, connection in list(self._online.items()):
            if other_id != user_id and connection.websocket is websocket:
                del self._online[other_id]
                logger.info("Socket re-registered from %s to %s", other_id, user_id)

        previous = self._online.get(user_id)
        connection = Connection(connection_id=uuid.uuid4().hex, websocket=websocket)
        self._online[user_id] = connection

        if previous is not None and previous.websocket is not websocket:
            try:
                await previous.websocket.close()
            except RuntimeError:
                # Already closed by the client
                pass
            logger.info("Replaced connection for %s", user_id)

        logger.info("User registered: %s -> %s", user_id, connection.connection_id)
        return connection

    def unregister(self, websocket) -> Optional[str]:
        """Drop the entry pointing at this socket. Returns the user id removed."""
        for user_id, connection in list(self._online.items()):
            if connection.websocket is websocket:
                del self._online[user_id]
                logger.info("User %s disconnected", user_id)
                return user_id
        return None

    async def notify(self, user_id: str, event: dict) -> bool:
        """Push an event to a user if they are online."""
        connection = self._online.get(user_id)
        if connection is None:
            return False

        try:
            await connection.websocket.send_json(event)
        except Exception:
            logger.warning("Push to %s failed, dropping connection", user_id, exc_info=True)
            self.unregister(connection.websocket)
            return False
        return True


presence = PresenceRegistry()
