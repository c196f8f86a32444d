"""SQLAlchemy ORM models for offices and users."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from casecore.db.base import Base
from casecore.db.models._common import utc_now


class Office(Base):
    """
    A physical office (tenant partition).

    Cases belong to exactly one office; office managers and staff are scoped
    to the office they are attached to.
    """

    __tablename__ = "offices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)


class User(Base):
    """
    Staff member, manager, administrator or client.

    `department` holds the case category a staff member works in
    (e.g. "Familiar", "Psicologia"). Clients have neither office nor
    department.
    """

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_office_role", "office_id", "role"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    office_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("offices.id", ondelete="SET NULL"), nullable=True
    )
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
