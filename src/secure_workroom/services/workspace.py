"""Shared workspace: meetings, documents, tasks and screen sharing."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import update

from secure_workroom.core.settings import settings
from secure_workroom.db.time import utcnow
from secure_workroom.models import Meeting, ScreenShareSession, WorkspaceDocument, WorkspaceTask
from secure_workroom.models.workspace import (
    MEETING_STATUS_IN_PROGRESS,
    MEETING_STATUS_SCHEDULED,
    MEETING_TYPES,
    TASK_PRIORITIES,
    TASK_STATUS_COMPLETED,
    TASK_STATUSES,
)
from secure_workroom.schemas.workspace import DocumentResponse, MeetingResponse, TaskResponse
from secure_workroom.services.audit import (
    AUDIT_DOCUMENT_UPLOADED,
    AUDIT_MEETING_SCHEDULED,
    RequestOrigin,
)
from secure_workroom.services.conversations import ConversationStore, generate_id
from secure_workroom.services.errors import InvalidInputError, NotFoundError
from secure_workroom.services.presence import (
    EVENT_DOCUMENT_UPLOADED,
    EVENT_MEETING_SCHEDULED,
    EVENT_PARTICIPANT_JOINED,
    EVENT_SCREEN_SHARE_STARTED,
    EVENT_TASK_ASSIGNED,
    EVENT_TASK_UPDATED,
)

logger = logging.getLogger(__name__)


class WorkspaceService:
    """Collections scoped to a conversation besides the message log."""

    def __init__(self, store: ConversationStore) -> None:
        self.store = store
        self.db = store.db
        self.presence = store.presence

    # --- meetings -------------------------------------------------------------------
    async def schedule_meeting(
        self,
        conversation_id: str,
        caller_id: str,
        title: str | None,
        scheduled_at: datetime | None,
        duration: int | None,
        meeting_type: str = "video",
        description: str = "",
        origin: RequestOrigin | None = None,
    ) -> Meeting:
        if not title or scheduled_at is None or not duration:
            raise InvalidInputError("Title, scheduled time, and duration are required")
        if meeting_type not in MEETING_TYPES:
            raise InvalidInputError(f"Unknown meeting type '{meeting_type}'")

        ctx = self.store.resolve(conversation_id, caller_id)
        meeting_id = generate_id("meet", 12)
        meeting = Meeting(
            meeting_id=meeting_id,
            conversation_id=ctx.conversation_id,
            title=title,
            description=description or "",
            scheduled_at=scheduled_at,
            duration_minutes=int(duration),
            meeting_type=meeting_type,
            status=MEETING_STATUS_SCHEDULED,
            meeting_link=f"{settings.client_url.rstrip('/')}/secure-meeting/{meeting_id}",
            participants=[
                {"user_id": caller_id, "joined": False, "joined_at": None},
                {"user_id": ctx.partner_id, "joined": False, "joined_at": None},
            ],
            created_by=caller_id,
        )
        self.db.add(meeting)
        self.store.touch_activity(ctx.conversation_id, meetings=1)
        self.db.commit()
        self.db.refresh(meeting)

        self.store.append_audit_entry(
            ctx.conversation_id,
            AUDIT_MEETING_SCHEDULED,
            caller_id,
            f'Meeting "{title}" scheduled for {scheduled_at.isoformat()}',
            origin,
        )
        await self.presence.notify(
            ctx.partner_id,
            EVENT_MEETING_SCHEDULED,
            {
                "conversation_id": ctx.conversation_id,
                "meeting": MeetingResponse.model_validate(meeting).model_dump(mode="json"),
            },
        )
        return meeting

    def list_meetings(self, conversation_id: str, caller_id: str) -> Sequence[Meeting]:
        ctx = self.store.resolve(conversation_id, caller_id)
        return (
            self.db.query(Meeting)
            .filter(Meeting.conversation_id == ctx.conversation_id)
            .order_by(Meeting.scheduled_at, Meeting.id)
            .all()
        )

    async def join_meeting(self, conversation_id: str, caller_id: str, meeting_id: str) -> Meeting:
        ctx = self.store.resolve(conversation_id, caller_id)
        meeting = (
            self.db.query(Meeting)
            .filter(
                Meeting.conversation_id == ctx.conversation_id,
                Meeting.meeting_id == meeting_id,
            )
            .first()
        )
        if meeting is None:
            raise NotFoundError("Meeting not found")

        joined_at = utcnow().isoformat()
        # JSON columns only persist on reassignment.
        meeting.participants = [
            {**participant, "joined": True, "joined_at": joined_at}
            if participant.get("user_id") == caller_id
            else dict(participant)
            for participant in meeting.participants
        ]
        self.db.commit()

        self.db.execute(
            update(Meeting)
            .where(Meeting.id == meeting.id, Meeting.status == MEETING_STATUS_SCHEDULED)
            .values(status=MEETING_STATUS_IN_PROGRESS)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(meeting)

        await self.presence.notify(
            ctx.partner_id,
            EVENT_PARTICIPANT_JOINED,
            {
                "conversation_id": ctx.conversation_id,
                "meeting_id": meeting.meeting_id,
                "user_id": caller_id,
            },
        )
        return meeting

    # --- documents ------------------------------------------------------------------
    async def upload_document(
        self,
        conversation_id: str,
        caller_id: str,
        name: str | None,
        encrypted_url: str | None,
        encryption_key: str | None,
        file_size: int = 0,
        mime_type: str | None = None,
        checksum: str | None = None,
        origin: RequestOrigin | None = None,
    ) -> WorkspaceDocument:
        """Register a client-encrypted file; the bytes live in external storage."""
        if not name or not encrypted_url or not encryption_key:
            raise InvalidInputError("Document name, URL, and encryption key are required")

        ctx = self.store.resolve(conversation_id, caller_id)
        document = WorkspaceDocument(
            document_id=generate_id("doc", 12),
            conversation_id=ctx.conversation_id,
            name=name,
            encrypted_url=encrypted_url,
            encryption_key=encryption_key,
            file_size=file_size or 0,
            mime_type=mime_type or "application/octet-stream",
            uploaded_by=caller_id,
            version=1,
            checksum=checksum or "",
        )
        self.db.add(document)
        self.store.touch_activity(ctx.conversation_id)
        self.db.commit()
        self.db.refresh(document)

        self.store.append_audit_entry(
            ctx.conversation_id,
            AUDIT_DOCUMENT_UPLOADED,
            caller_id,
            f'Document "{name}" uploaded to workspace',
            origin,
        )
        await self.presence.notify(
            ctx.partner_id,
            EVENT_DOCUMENT_UPLOADED,
            {
                "conversation_id": ctx.conversation_id,
                "document": DocumentResponse.model_validate(document).model_dump(mode="json"),
            },
        )
        return document

    def list_documents(self, conversation_id: str, caller_id: str) -> Sequence[WorkspaceDocument]:
        ctx = self.store.resolve(conversation_id, caller_id)
        return (
            self.db.query(WorkspaceDocument)
            .filter(WorkspaceDocument.conversation_id == ctx.conversation_id)
            .order_by(WorkspaceDocument.id)
            .all()
        )

    # --- tasks ----------------------------------------------------------------------
    async def create_task(
        self,
        conversation_id: str,
        caller_id: str,
        title: str | None,
        description: str = "",
        assigned_to: str | None = None,
        due_date: datetime | None = None,
        priority: str = "medium",
    ) -> WorkspaceTask:
        if not title:
            raise InvalidInputError("Task title is required")
        if priority not in TASK_PRIORITIES:
            raise InvalidInputError(f"Unknown task priority '{priority}'")

        ctx = self.store.resolve(conversation_id, caller_id)
        if assigned_to is not None and ctx.conversation.role_of(assigned_to) is None:
            raise InvalidInputError("Tasks can only be assigned to a conversation party")

        task = WorkspaceTask(
            task_id=generate_id("task", 8),
            conversation_id=ctx.conversation_id,
            title=title,
            description=description or "",
            assigned_to=assigned_to,
            due_date=due_date,
            priority=priority,
            created_by=caller_id,
        )
        self.db.add(task)
        self.store.touch_activity(ctx.conversation_id)
        self.db.commit()
        self.db.refresh(task)

        if assigned_to:
            await self.presence.notify(
                assigned_to,
                EVENT_TASK_ASSIGNED,
                {
                    "conversation_id": ctx.conversation_id,
                    "task": TaskResponse.model_validate(task).model_dump(mode="json"),
                },
            )
        return task

    def list_tasks(self, conversation_id: str, caller_id: str) -> Sequence[WorkspaceTask]:
        ctx = self.store.resolve(conversation_id, caller_id)
        return (
            self.db.query(WorkspaceTask)
            .filter(WorkspaceTask.conversation_id == ctx.conversation_id)
            .order_by(WorkspaceTask.id)
            .all()
        )

    async def update_task_status(
        self, conversation_id: str, caller_id: str, task_id: str, status: str | None
    ) -> WorkspaceTask:
        if status is not None and status not in TASK_STATUSES:
            raise InvalidInputError(f"Unknown task status '{status}'")

        ctx = self.store.resolve(conversation_id, caller_id)
        task = (
            self.db.query(WorkspaceTask)
            .filter(
                WorkspaceTask.conversation_id == ctx.conversation_id,
                WorkspaceTask.task_id == task_id,
            )
            .first()
        )
        if task is None:
            raise NotFoundError("Task not found")

        if status:
            task.status = status
            if status == TASK_STATUS_COMPLETED:
                task.completed_at = utcnow()
        self.store.touch_activity(ctx.conversation_id)
        self.db.commit()
        self.db.refresh(task)

        await self.presence.notify(
            ctx.partner_id,
            EVENT_TASK_UPDATED,
            {
                "conversation_id": ctx.conversation_id,
                "task": TaskResponse.model_validate(task).model_dump(mode="json"),
            },
        )
        return task

    # --- screen sharing -------------------------------------------------------------
    async def start_screen_share(
        self, conversation_id: str, caller_id: str, quality: str = "medium"
    ) -> ScreenShareSession:
        ctx = self.store.resolve(conversation_id, caller_id)
        session = ScreenShareSession(
            session_id=generate_id("screen", 8),
            conversation_id=ctx.conversation_id,
            initiated_by=caller_id,
            started_at=utcnow(),
            quality=quality or "medium",
            encryption_enabled=True,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.info("Screen share %s started in %s", session.session_id, ctx.conversation_id)

        await self.presence.notify(
            ctx.partner_id,
            EVENT_SCREEN_SHARE_STARTED,
            {
                "conversation_id": ctx.conversation_id,
                "session_id": session.session_id,
                "initiated_by": caller_id,
            },
        )
        return session
