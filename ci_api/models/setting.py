"""Per-repository settings. Only overrides are stored; every known name has a default."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from sqlalchemy import JSON, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ci_api.db.base import Base

SETTING_DEFAULTS: dict[str, Any] = {
    "builds_only_with_travis_yml": False,
    "build_pushes": True,
    "build_pull_requests": True,
    "maximum_number_of_builds": 0,
    "auto_cancel_pushes": False,
    "auto_cancel_pull_requests": False,
}


class RepositorySetting(Base):
    __tablename__ = "repository_settings"
    __table_args__ = (UniqueConstraint("repository_id", "name", name="uq_repository_settings_name"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )
