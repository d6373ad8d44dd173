from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, JSON, String, Text, func, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bulletin_review.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    """One uploaded bulletin moving through human quality control.

    ``original_data`` is the sorted AI extraction and is never written again
    after creation.  Reviewers only ever replace ``edited_data``.
    """

    __tablename__ = "documents"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    form_type: Mapped[str] = mapped_column(String(64), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="pending_review", server_default=sql_text("'pending_review'")
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    original_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    edited_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    validation_report: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    ai_confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    assigned_to: Mapped[str | None] = mapped_column(String(128), nullable=True)
    assigned_to_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_edited_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    release_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    final_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    rejected_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    rejected_by_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_type: Mapped[str | None] = mapped_column(String(32), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=sql_text("true"))
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    revisions: Mapped[list[Revision]] = relationship(back_populates="document")


class Revision(Base):
    """Immutable snapshot of one accepted edit to ``Document.edited_data``."""

    __tablename__ = "document_revisions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    document_id: Mapped[UUID] = mapped_column(ForeignKey("documents.id", ondelete="RESTRICT"), nullable=False)
    editor_id: Mapped[str] = mapped_column(String(128), nullable=False)
    editor_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    previous_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    change_description: Mapped[str] = mapped_column(
        String(512), nullable=False, default="Manual update", server_default=sql_text("'Manual update'")
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    document: Mapped[Document] = relationship(back_populates="revisions")


class AuditEvent(Base):
    """Append-only log of workflow transitions.

    Rows are immutable by default (``immutable=True``).
    """

    __tablename__ = "audit_events"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    actor: Mapped[str] = mapped_column(
        String(128), nullable=False, default="system", server_default=sql_text("'system'"),
    )
    actor_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    document_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(),
    )
    immutable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sql_text("true"),
    )


class Reviewer(Base):
    """Lifetime counters and presence for one reviewer identity."""

    __tablename__ = "reviewers"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    documents_approved: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    documents_rejected: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    last_approval_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=sql_text("true"))
