"""
Realtime channel.

Clients connect to /ws and send {"type": "registerUser", "token": <access token>}.
The token may instead be given as the "token" query parameter. The user
id is taken from the token, never from the message. From then on the
server pushes {"type": "newMail", "mail": {...}} when a mail lands in
that user's inbox.
"""

import json
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from xmail.logging_config import get_logger
from xmail.services import auth_service
from xmail.services.presence import presence
from xmail.services.user_service import normalize_user_id

logger = get_logger(__name__)

router = APIRouter(tags=["Realtime"])


def user_id_from_token(token: Optional[str]) -> Optional[str]:
    """Return the account address inside a valid access token, or None."""
    if not token:
        return None
    payload = auth_service.decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return normalize_user_id(payload["sub"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: Optional[str] = Query(None)):
    await websocket.accept()
    logger.info("Socket connected")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring non-JSON socket message")
                continue
            if not isinstance(message, dict):
                continue

            if message.get("type") == "registerUser":
                user_id = user_id_from_token(message.get("token") or token)
                if not user_id:
                    logger.warning("Rejected socket registration without a valid token")
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                    return
                connection = await presence.register(user_id, websocket)
                await websocket.send_json({
                    "type": "registered",
                    "userId": user_id,
                    "connectionId": connection.connection_id,
                })
            elif message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        presence.unregister(websocket)
