"""Real-time channel endpoint."""

import json
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from secure_workroom.db.time import utcnow
from secure_workroom.services.presence import EVENT_TYPING, job_room

from ..dependencies import PresenceDep, SessionFactoryDep, resolve_principal

router = APIRouter(tags=["realtime"])

logger = logging.getLogger(__name__)


class WebSocketChannel:
    """Presence channel backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, principal_id: str) -> None:
        self.websocket = websocket
        self.principal_id = principal_id
        self.channel_id = uuid.uuid4().hex

    async def send(self, event: str, payload: Mapping[str, Any]) -> None:
        await self.websocket.send_json({"event": event, "data": jsonable_encoder(payload)})

    async def close(self, code: int = 1000) -> None:
        await self.websocket.close(code=code)


@router.websocket("/ws")
async def realtime_channel(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    presence: PresenceDep,
    token: str | None = Query(None),
) -> None:
    """Authenticate, register with presence and serve client frames until disconnect."""
    principal_id = None
    if token:
        # Scoped to the handshake; the receive loop holds no pooled connection.
        with session_factory() as db:
            principal = resolve_principal(token, db)
            principal_id = principal.id if principal is not None else None
    if principal_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    channel = WebSocketChannel(websocket, principal_id)
    presence.connect(channel)
    try:
        await channel.send(
            "connected",
            {"user_id": principal_id, "channel_id": channel.channel_id},
        )
        while True:
            raw = await websocket.receive_text()
            presence.touch(channel.channel_id)
            try:
                frame = json.loads(raw)
            except ValueError:
                await channel.send("error", {"message": "Frames must be JSON objects"})
                continue
            if not isinstance(frame, dict):
                await channel.send("error", {"message": "Frames must be JSON objects"})
                continue
            await _handle_frame(presence, channel, frame)
    except WebSocketDisconnect:
        logger.debug("Channel %s closed by peer", channel.channel_id)
    finally:
        presence.disconnect(channel)


async def _handle_frame(presence, channel: WebSocketChannel, frame: dict[str, Any]) -> None:
    event = frame.get("event")
    data = frame.get("data") or {}
    job_id = data.get("job_id") if isinstance(data, dict) else None

    if event == "ping":
        await channel.send("pong", {"timestamp": utcnow()})
    elif event in ("join_job", "leave_job"):
        if not job_id:
            await channel.send("error", {"message": "job_id is required"})
        elif event == "join_job":
            presence.join(job_room(str(job_id)), channel)
        else:
            presence.leave(job_room(str(job_id)), channel)
    elif event in ("typing", "stop_typing"):
        if job_id:
            await presence.broadcast(
                job_room(str(job_id)),
                EVENT_TYPING,
                {
                    "user_id": channel.principal_id,
                    "job_id": job_id,
                    "is_typing": event == "typing",
                },
                exclude=channel.channel_id,
            )
    else:
        await channel.send("error", {"message": f"Unknown event '{event}'"})
