"""Audit trail routes: GET /audit/{document_id}/history, GET /audit/recent."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bulletin_review.api.deps import get_db, require_reviewer
from bulletin_review.api.serializers import serialize_event
from bulletin_review.audit.audit_log import get_document_history, get_recent_events
from bulletin_review.review.roles import Principal

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/recent", summary="Get most recent audit events")
def get_recent(
    limit: int = 10,
    _: Principal = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    events = get_recent_events(db, limit=max(1, min(limit, 100)))
    return [serialize_event(ev) for ev in events]


@router.get("/{document_id}/history", summary="Get audit history for a document")
def get_history(
    document_id: str,
    _: Principal = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    events = get_document_history(db, document_id)
    if not events:
        raise HTTPException(status_code=404, detail=f"No audit history for document {document_id}")

    return [serialize_event(ev) for ev in events]
