"""Document intake and detail routes."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from bulletin_review.api.deps import get_ledger, get_principal, get_workflow_engine
from bulletin_review.api.errors import workflow_errors
from bulletin_review.api.serializers import serialize_document, serialize_revision
from bulletin_review.core.settings import get_settings
from bulletin_review.review.ledger import RevisionLedger
from bulletin_review.review.roles import ACTION_VIEW, Principal, can_act
from bulletin_review.review.workflow import PRIORITY_NORMAL, WorkflowEngine

router = APIRouter(prefix="/documents", tags=["documents"])


class CreateDocumentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_type: str = Field(alias="formType")
    file_name: str | None = Field(default=None, alias="fileName")
    priority: int = PRIORITY_NORMAL
    # Untrusted upstream output; any shape is accepted and judged by the validator.
    extraction: Any = None


@router.post("", status_code=201, summary="Register an AI extraction for review")
def create_document(
    body: CreateDocumentBody,
    principal: Principal = Depends(get_principal),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document, report = wf.create_document(
            principal,
            form_type=body.form_type,
            extraction=body.extraction,
            file_name=body.file_name,
            priority=body.priority,
        )
    return {"document": serialize_document(document), "validation": report.as_dict()}


@router.get("/{document_id}", summary="Document detail with recent revisions")
def get_document(
    document_id: str,
    principal: Principal = Depends(get_principal),
    wf: WorkflowEngine = Depends(get_workflow_engine),
    ledger: RevisionLedger = Depends(get_ledger),
):
    with workflow_errors():
        document = wf.get_document(document_id)
    if not can_act(principal, ACTION_VIEW, document):
        raise HTTPException(status_code=403, detail="Not allowed to view this document")

    result = serialize_document(document)
    result["revisions"] = [
        serialize_revision(rev)
        for rev in ledger.list_revisions(document.id, limit=get_settings().revision_page_size)
    ]
    return result


@router.post("/{document_id}/archive", summary="Soft-delete a document")
def archive_document(
    document_id: str,
    principal: Principal = Depends(get_principal),
    wf: WorkflowEngine = Depends(get_workflow_engine),
):
    with workflow_errors():
        document = wf.archive(document_id, principal)
    return {"id": str(document.id), "is_active": document.is_active, "archived": True}
