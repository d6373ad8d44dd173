"""Human review routes: queue reads and claim/edit/decide actions.

Every route requires a review role; the caller's last-seen timestamp is
stamped in the background after the response is sent.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from bulletin_review.api.deps import (
    get_ledger,
    get_review_queue,
    get_workflow_engine,
    require_reviewer,
)
from bulletin_review.api.errors import workflow_errors
from bulletin_review.api.serializers import (
    serialize_document,
    serialize_document_summary,
    serialize_revision,
)
from bulletin_review.core.settings import get_settings
from bulletin_review.review.ledger import RevisionLedger
from bulletin_review.review.queue import PERIOD_WEEK, ReviewQueue
from bulletin_review.review.roles import Principal
from bulletin_review.review.workflow import WorkflowEngine

router = APIRouter(prefix="/review", tags=["review"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class ReleaseBody(BaseModel):
    reason: str | None = None


class UpdateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so a missing payload is a 400 from the engine, not a 422.
    edited_data: dict[str, Any] | None = Field(default=None, alias="editedData")
    change_description: str | None = Field(default=None, alias="changeDescription")
    comment: str | None = None


class ApproveBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    final_notes: str | None = Field(default=None, alias="finalNotes")


class RejectBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so a missing reason is a 400 from the engine, not a 422.
    reason: str | None = None
    rejection_type: str = Field(default="quality", alias="rejectionType")


# ---------------------------------------------------------------------------
# Queue reads
# ---------------------------------------------------------------------------

@router.get("/queue", summary="Open documents, most urgent first")
def get_queue(
    status: str | None = None,
    priority: int | None = None,
    limit: int | None = None,
    offset: int = 0,
    _: Principal = Depends(require_reviewer),
    queue: ReviewQueue = Depends(get_review_queue),
):
    with workflow_errors():
        documents = queue.list_queue(
            status=status,
            priority=priority,
            limit=limit or get_settings().queue_page_size,
            offset=offset,
        )
    return [serialize_document_summary(doc) for doc in documents]


@router.get("/queue/stats", summary="Counts per status")
def get_queue_stats(
    _: Principal = Depends(require_reviewer),
    queue: ReviewQueue = Depends(get_review_queue),
):
    return queue.status_counts()


@router.get("/assigned", summary="Documents assigned to the caller")
def get_assigned(
    status: str | None = None,
    limit: int | None = None,
    principal: Principal = Depends(require_reviewer),
    queue: ReviewQueue = Depends(get_review_queue),
):
    with workflow_errors():
        documents = queue.list_assigned(
            principal.identity,
            status=status,
            limit=limit or get_settings().queue_page_size,
        )
    return [serialize_document_summary(doc) for doc in documents]


@router.get("/stats", summary="Caller's review statistics")
def get_stats(
    period: str = PERIOD_WEEK,
    principal: Principal = Depends(require_reviewer),
    queue: ReviewQueue = Depends(get_review_queue),
):
    with workflow_errors():
        return queue.reviewer_stats(principal.identity, period)


@router.get("/leaderboard", summary="Approvals per reviewer")
def get_leaderboard(
    period: str = PERIOD_WEEK,
    limit: int = 10,
    _: Principal = Depends(require_reviewer),
    queue: ReviewQueue = Depends(get_review_queue),
):
    with workflow_errors():
        return queue.leaderboard(period, limit)


# ---------------------------------------------------------------------------
# Document actions
# ---------------------------------------------------------------------------

@router.post("/documents/{document_id}/claim", summary="Claim a document")
def claim_document(
    document_id: str,
    principal: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document = wf.claim(document_id, principal)
    return serialize_document(document)


@router.post("/documents/{document_id}/release", summary="Return a document to the queue")
def release_document(
    document_id: str,
    body: ReleaseBody | None = None,
    principal: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document = wf.release(document_id, principal, reason=body.reason if body else None)
    return serialize_document(document)


@router.put("/documents/{document_id}", summary="Save edited data")
def update_document(
    document_id: str,
    body: UpdateBody,
    principal: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        revision = wf.update(
            document_id,
            principal,
            body.edited_data,
            change_description=body.change_description,
            comment=body.comment,
        )
        document = wf.get_document(document_id)
    result = serialize_document(document)
    result["revision"] = serialize_revision(revision)
    return result


@router.post("/documents/{document_id}/approve", summary="Approve a document")
def approve_document(
    document_id: str,
    body: ApproveBody | None = None,
    principal: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document = wf.approve(document_id, principal, final_notes=body.final_notes if body else None)
    return serialize_document(document)


@router.post("/documents/{document_id}/reject", summary="Reject a document")
def reject_document(
    document_id: str,
    body: RejectBody,
    principal: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document = wf.reject(
            document_id,
            principal,
            reason=body.reason or "",
            rejection_type=body.rejection_type,
        )
    return serialize_document(document)


@router.get("/documents/{document_id}/revisions", summary="Edit history, newest first")
def get_revisions(
    document_id: str,
    limit: int | None = None,
    offset: int = 0,
    _: Principal = Depends(require_reviewer),
    wf: WorkflowEngine = Depends(get_workflow_engine),
    ledger: RevisionLedger = Depends(get_ledger),
):
    with workflow_errors():
        document = wf.get_document(document_id)
    revisions = ledger.list_revisions(
        document.id,
        limit=limit or get_settings().revision_page_size,
        offset=offset,
    )
    return {
        "document_id": str(document.id),
        "total": ledger.count(document.id),
        "revisions": [serialize_revision(rev) for rev in revisions],
    }
