"""Repository-scoped access row: pull (read), push (write), admin."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ci_api.db.base import Base


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("user_id", "repository_id", name="uq_permissions_user_repository"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    repository_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    push: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pull: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship("User", back_populates="permissions")
    repository: Mapped["Repository"] = relationship("Repository", back_populates="permissions")
