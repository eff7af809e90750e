# src/secure_workroom/models/principal.py
"""Local projection of marketplace users."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_workroom.db.session import Base
from secure_workroom.db.time import utcnow


class Principal(Base):
    """An authenticated marketplace account allowed to open real-time channels.

    Rows are upserted by the marketplace; this service never creates accounts
    on its own.
    """

    __tablename__ = "principal"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
