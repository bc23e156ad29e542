"""Persisted capability held by a user over a single resource (e.g. delete on a cron)."""

from __future__ import annotations

import enum
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ci_api.db.base import Base


class Capability(str, enum.Enum):
    READ = "read"
    CREATE_CRON = "create_cron"
    DELETE = "delete"


class Grant(Base):
    __tablename__ = "grants"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_type", "resource_id", "capability", name="uq_grants_holder_capability"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False)
    resource_id: Mapped[int] = mapped_column(Integer, nullable=False)
    capability: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
