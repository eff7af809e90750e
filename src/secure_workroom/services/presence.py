"""Presence tracking and real-time fan-out.

The router maps each principal to the set of channels it currently holds open
(one per device or tab) and pushes events to them. Delivery is at-most-once
and best-effort: nothing is queued and a failed push never fails the caller.
Durable state stays the source of truth and is always re-fetchable over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Protocol

from secure_workroom.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)

EVENT_ENCRYPTION_READY = "encryption_ready"
EVENT_ENCRYPTED_MESSAGE = "encrypted_message"
EVENT_MESSAGE_DELIVERED = "message_delivered"
EVENT_MESSAGES_READ = "messages_read"
EVENT_CONVERSATION_CREATED = "secure_conversation_created"
EVENT_MEETING_SCHEDULED = "meeting_scheduled"
EVENT_PARTICIPANT_JOINED = "participant_joined"
EVENT_DOCUMENT_UPLOADED = "document_uploaded"
EVENT_TASK_ASSIGNED = "task_assigned"
EVENT_TASK_UPDATED = "task_updated"
EVENT_SCREEN_SHARE_STARTED = "screen_share_started"
EVENT_TYPING = "typing"


class Channel(Protocol):
    """A live real-time connection owned by one principal."""

    channel_id: str
    principal_id: str

    async def send(self, event: str, payload: Mapping[str, Any]) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


def job_room(job_id: str) -> str:
    """Return the broadcast group name for a job or conversation."""
    return f"job_{job_id}"


@dataclass
class _Membership:
    channel: Channel
    last_seen: float
    rooms: set[str] = field(default_factory=set)


class PresenceRouter:
    """Process-wide registry of live channels keyed by principal id."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._members: dict[str, _Membership] = {}
        self._by_principal: dict[str, set[str]] = {}
        self._rooms: dict[str, set[str]] = {}
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    # --- membership -----------------------------------------------------------------
    def connect(self, channel: Channel) -> None:
        """Register an authenticated channel for its principal."""
        with self._lock:
            self._members[channel.channel_id] = _Membership(channel, self._clock())
            self._by_principal.setdefault(channel.principal_id, set()).add(channel.channel_id)
        logger.info("Channel %s connected for principal %s", channel.channel_id, channel.principal_id)

    def disconnect(self, channel: Channel) -> None:
        """Remove a channel and every room membership it held."""
        with self._lock:
            self._drop_locked(channel.channel_id)
        logger.info(
            "Channel %s disconnected for principal %s", channel.channel_id, channel.principal_id
        )

    def _drop_locked(self, channel_id: str) -> _Membership | None:
        membership = self._members.pop(channel_id, None)
        if membership is None:
            return None
        principal_id = membership.channel.principal_id
        owned = self._by_principal.get(principal_id)
        if owned is not None:
            owned.discard(channel_id)
            if not owned:
                del self._by_principal[principal_id]
        for room in membership.rooms:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(channel_id)
                if not members:
                    del self._rooms[room]
        return membership

    def touch(self, channel_id: str) -> None:
        """Record a heartbeat for a channel."""
        with self._lock:
            membership = self._members.get(channel_id)
            if membership is not None:
                membership.last_seen = self._clock()

    def join(self, room: str, channel: Channel) -> None:
        with self._lock:
            membership = self._members.get(channel.channel_id)
            if membership is None:
                return
            membership.rooms.add(room)
            self._rooms.setdefault(room, set()).add(channel.channel_id)
        logger.debug("Channel %s joined %s", channel.channel_id, room)

    def leave(self, room: str, channel: Channel) -> None:
        with self._lock:
            membership = self._members.get(channel.channel_id)
            if membership is not None:
                membership.rooms.discard(room)
            members = self._rooms.get(room)
            if members is not None:
                members.discard(channel.channel_id)
                if not members:
                    del self._rooms[room]
        logger.debug("Channel %s left %s", channel.channel_id, room)

    # --- queries --------------------------------------------------------------------
    def is_online(self, principal_id: str) -> bool:
        """True iff the principal holds at least one live channel."""
        with self._lock:
            return bool(self._by_principal.get(principal_id))

    def channel_count(self, principal_id: str) -> int:
        with self._lock:
            return len(self._by_principal.get(principal_id, ()))

    def room_members(self, room: str) -> set[str]:
        """Return the channel ids currently joined to a room."""
        with self._lock:
            return set(self._rooms.get(room, ()))

    # --- fan-out --------------------------------------------------------------------
    async def notify(self, principal_id: str, event: str, payload: Mapping[str, Any]) -> int:
        """Push an event to every live channel of a principal.

        Returns:
            Number of channels the event was handed to. Zero channels is not
            an error.
        """
        with self._lock:
            targets = [
                self._members[channel_id].channel
                for channel_id in self._by_principal.get(principal_id, ())
            ]
        return await self._deliver(targets, event, payload)

    async def broadcast(
        self,
        room: str,
        event: str,
        payload: Mapping[str, Any],
        exclude: str | None = None,
    ) -> int:
        """Push an event to every channel in a room, optionally skipping one."""
        with self._lock:
            targets = [
                self._members[channel_id].channel
                for channel_id in self._rooms.get(room, ())
                if channel_id != exclude
            ]
        return await self._deliver(targets, event, payload)

    async def _deliver(
        self, targets: list[Channel], event: str, payload: Mapping[str, Any]
    ) -> int:
        delivered = 0
        for channel in targets:
            try:
                await channel.send(event, payload)
            except Exception as exc:  # any transport failure prunes the channel
                logger.warning(
                    "Dropping channel %s after failed %s push: %s",
                    channel.channel_id,
                    event,
                    exc,
                )
                self.disconnect(channel)
                continue
            delivered += 1
        return delivered

    # --- heartbeat sweeping ---------------------------------------------------------
    async def prune_stale(self, timeout: float | None = None) -> list[Channel]:
        """Drop channels whose last heartbeat is older than `timeout` seconds."""
        limit = settings.presence_timeout_seconds if timeout is None else timeout
        cutoff = self._clock() - limit
        with self._lock:
            stale = [
                channel_id
                for channel_id, membership in self._members.items()
                if membership.last_seen < cutoff
            ]
            removed = [
                membership.channel
                for membership in (self._drop_locked(channel_id) for channel_id in stale)
                if membership is not None
            ]
        for channel in removed:
            logger.info("Pruned silent channel %s for %s", channel.channel_id, channel.principal_id)
            try:
                await channel.close(code=1001)
            except Exception as exc:  # already gone
                logger.debug("Closing pruned channel %s failed: %s", channel.channel_id, exc)
        return removed

    async def start(self) -> None:
        """Start the background heartbeat sweeper."""
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the sweeper and close every remaining channel."""
        if self._task is not None:
            self._stopping.set()
            await self._task
            self._task = None

        with self._lock:
            remaining = [membership.channel for membership in self._members.values()]
            self._members.clear()
            self._by_principal.clear()
            self._rooms.clear()
        for channel in remaining:
            try:
                await channel.close(code=1001)
            except Exception as exc:
                logger.debug("Closing channel %s on shutdown failed: %s", channel.channel_id, exc)

    async def _run(self) -> None:
        interval = max(0.1, float(settings.presence_sweep_interval_seconds))
        while not self._stopping.is_set():
            await self.prune_stale()
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue


_router: PresenceRouter | None = None


def get_presence_router() -> PresenceRouter:
    """Return the process-wide presence router."""
    global _router
    if _router is None:
        _router = PresenceRouter()
    return _router
