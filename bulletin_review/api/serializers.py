"""Read models returned by the API.

Timestamps are always ISO-8601 in UTC.  SQLite hands back naive values, so
a datetime without tzinfo is taken to already be UTC.
"""
from __future__ import annotations

from datetime import datetime, timezone

from bulletin_review.db.models import AuditEvent, Document, Revision


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def serialize_document_summary(doc: Document) -> dict:
    return {
        "id": str(doc.id),
        "form_type": doc.form_type,
        "file_name": doc.file_name,
        "status": doc.status,
        "priority": doc.priority,
        "owner_id": doc.owner_id,
        "ai_confidence_score": doc.ai_confidence_score,
        "assigned_to": doc.assigned_to,
        "assigned_to_name": doc.assigned_to_name,
        "assigned_at": _iso(doc.assigned_at),
        "created_at": _iso(doc.created_at),
        "updated_at": _iso(doc.updated_at),
    }


def serialize_document(doc: Document) -> dict:
    result = serialize_document_summary(doc)
    result.update({
        "owner_email": doc.owner_email,
        "original_data": doc.original_data,
        "edited_data": doc.edited_data,
        "validation_report": doc.validation_report,
        "review_notes": doc.review_notes,
        "last_edited_by": doc.last_edited_by,
        "release_reason": doc.release_reason,
        "approved_by": doc.approved_by,
        "approved_by_name": doc.approved_by_name,
        "approved_at": _iso(doc.approved_at),
        "final_notes": doc.final_notes,
        "rejected_by": doc.rejected_by,
        "rejected_by_name": doc.rejected_by_name,
        "rejected_at": _iso(doc.rejected_at),
        "rejection_reason": doc.rejection_reason,
        "rejection_type": doc.rejection_type,
        "is_active": doc.is_active,
        "archived_at": _iso(doc.archived_at),
    })
    return result


def serialize_revision(rev: Revision) -> dict:
    return {
        "id": str(rev.id),
        "document_id": str(rev.document_id),
        "editor_id": rev.editor_id,
        "editor_name": rev.editor_name,
        "change_description": rev.change_description,
        "comment": rev.comment,
        "previous_data": rev.previous_data,
        "new_data": rev.new_data,
        "created_at": _iso(rev.created_at),
    }


def serialize_event(ev: AuditEvent) -> dict:
    return {
        "audit_event_id": str(ev.audit_event_id),
        "event_type": ev.event_type,
        "actor": ev.actor,
        "actor_name": ev.actor_name,
        "document_id": ev.document_id,
        "details": ev.details,
        "timestamp": _iso(ev.timestamp),
    }
