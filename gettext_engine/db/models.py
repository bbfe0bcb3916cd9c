"""SQLAlchemy models for pending (not yet translated) strings."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gettext_engine.db.base import Base


class PendingMessage(Base):
    __tablename__ = "pending_messages"
    __table_args__ = (
        UniqueConstraint("scope", "language", "message", name="uq_pending_messages_scope_language_message"),
    )

    scope: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    plural: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow
    )

    references: Mapped[list["PendingReference"]] = relationship(
        back_populates="pending",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PendingReference(Base):
    __tablename__ = "pending_references"
    __table_args__ = (
        UniqueConstraint("pending_id", "reference", name="uq_pending_references_pending_reference"),
    )

    pending_id: Mapped[int] = mapped_column(
        ForeignKey("pending_messages.id", ondelete="CASCADE"), nullable=False
    )
    reference: Mapped[str] = mapped_column(String(512), nullable=False)

    pending: Mapped[PendingMessage] = relationship(back_populates="references")


__all__ = ["PendingMessage", "PendingReference"]
