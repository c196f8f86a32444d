"""SQLAlchemy ORM models for in-app notifications."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from casecore.db.base import Base
from casecore.db.models._common import utc_now


class Notification(Base):
    """In-app notification for a user about a case lifecycle change."""

    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user_unread", "user_id", "read_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    # Plain column: notifications outlive a purged case
    case_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)
