"""Document review state machine.

    ai_completed ┐
                 ├─→ in_review ─→ approved
    pending_review ┘     │    ╲
          ↑              │     ↘ rejected
          └── release ───┘

``ai_completed`` and ``pending_review`` are equivalent entry states.
``approved`` and ``rejected`` are terminal.  Every status change is a
conditional UPDATE keyed on the status (and, for claim/release, the
assignment) the caller expects, so two requests racing on the same
document cannot both win.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from bulletin_review.audit.audit_log import record_event
from bulletin_review.audit.events import (
    EVENT_DOCUMENT_APPROVED,
    EVENT_DOCUMENT_ARCHIVED,
    EVENT_DOCUMENT_CLAIMED,
    EVENT_DOCUMENT_CREATED,
    EVENT_DOCUMENT_REJECTED,
    EVENT_DOCUMENT_RELEASED,
)
from bulletin_review.db.models import Document, Revision, Reviewer, utcnow
from bulletin_review.db.repositories import DocumentRepository, ReviewerRepository
from bulletin_review.extraction.schema import ExtractedRecord
from bulletin_review.extraction.sorting import sort_record
from bulletin_review.extraction.validator import ExtractionValidator, ValidationReport
from bulletin_review.review.errors import ClaimConflictError, InvalidTransitionError
from bulletin_review.review.ledger import RevisionLedger
from bulletin_review.review.roles import (
    ACTION_APPROVE,
    ACTION_ARCHIVE,
    ACTION_CLAIM,
    ACTION_REJECT,
    ACTION_RELEASE,
    ACTION_UPDATE,
    ACTION_UPLOAD,
    Principal,
    can_act,
)

logger = logging.getLogger(__name__)

AI_COMPLETED = "ai_completed"
PENDING_REVIEW = "pending_review"
IN_REVIEW = "in_review"
APPROVED = "approved"
REJECTED = "rejected"

STATUSES = [AI_COMPLETED, PENDING_REVIEW, IN_REVIEW, APPROVED, REJECTED]
VALID_STATUSES: frozenset[str] = frozenset(STATUSES)

# Allowed transitions: current_status → {valid target statuses}
_TRANSITIONS: dict[str, set[str]] = {
    AI_COMPLETED: {IN_REVIEW, APPROVED, REJECTED},
    PENDING_REVIEW: {IN_REVIEW, APPROVED, REJECTED},
    IN_REVIEW: {PENDING_REVIEW, APPROVED, REJECTED},
}

OPEN_STATUSES: frozenset[str] = frozenset(_TRANSITIONS)
TERMINAL_STATUSES: frozenset[str] = VALID_STATUSES - OPEN_STATUSES

REJECTION_TYPES: frozenset[str] = frozenset({"quality", "illegible", "incomplete", "wrong_format"})

PRIORITY_NORMAL = 0
PRIORITY_HIGH = 1
PRIORITY_URGENT = 2
VALID_PRIORITIES: frozenset[int] = frozenset({PRIORITY_NORMAL, PRIORITY_HIGH, PRIORITY_URGENT})


def coerce_document_id(document_id: str | UUID) -> UUID:
    """Return *document_id* as a UUID; malformed ids are simply not found."""
    if isinstance(document_id, UUID):
        return document_id
    try:
        return UUID(str(document_id))
    except ValueError:
        raise KeyError(f"Document {document_id} not found") from None


class WorkflowEngine:
    """Create documents and move them through review with audit logging."""

    def __init__(self, db_session: Session, validator: ExtractionValidator | None = None) -> None:
        self.db = db_session
        self.validator = validator or ExtractionValidator()
        self.documents = DocumentRepository(db_session)
        self.reviewers = ReviewerRepository(db_session)
        self.ledger = RevisionLedger(db_session)

    def can_transition(self, current_status: str, to_status: str) -> bool:
        """Return whether *current_status* → *to_status* is allowed."""
        return to_status in _TRANSITIONS.get(current_status, set())

    def statuses_leading_to(self, to_status: str) -> list[str]:
        """Return every status from which *to_status* may be entered."""
        return [status for status in STATUSES if self.can_transition(status, to_status)]

    # -- create -------------------------------------------------------------

    def create_document(
        self,
        owner: Principal,
        form_type: str,
        extraction: Any,
        file_name: str | None = None,
        owner_email: str | None = None,
        priority: int = PRIORITY_NORMAL,
    ) -> tuple[Document, ValidationReport]:
        """Sort, validate and persist one extraction as a ``pending_review`` document.

        Invalid extractions are still stored; the report travels with the
        document so a reviewer can correct it.
        """
        if not can_act(owner, ACTION_UPLOAD):
            raise PermissionError(f"Role {owner.role!r} cannot upload documents")
        if not form_type or not form_type.strip():
            raise ValueError("form_type must be non-empty")
        if priority not in VALID_PRIORITIES:
            raise ValueError(
                f"Invalid priority {priority!r}; must be one of {sorted(VALID_PRIORITIES)}"
            )

        record = sort_record(ExtractedRecord.from_raw(extraction))
        report = self.validator.validate(record)
        data = record.to_dict()

        document = self.documents.create(
            owner_id=owner.identity,
            owner_email=owner_email or owner.email,
            form_type=form_type.strip(),
            file_name=file_name,
            status=PENDING_REVIEW,
            priority=priority,
            original_data=data,
            edited_data=copy.deepcopy(data),
            validation_report=report.as_dict(),
            ai_confidence_score=report.quality_score,
        )
        record_event(
            self.db,
            event_type=EVENT_DOCUMENT_CREATED,
            actor=owner.identity,
            actor_name=owner.display_name,
            document_id=str(document.id),
            form_type=document.form_type,
            is_valid=report.is_valid,
        )
        logger.info(
            "Document created: id=%s form_type=%s valid=%s",
            document.id, document.form_type, report.is_valid,
        )
        return document, report

    # -- read ---------------------------------------------------------------

    def get_document(self, document_id: str | UUID) -> Document:
        doc_id = coerce_document_id(document_id)
        document = self.documents.get_active(doc_id)
        if document is None:
            raise KeyError(f"Document {document_id} not found")
        return document

    # -- claim / release ----------------------------------------------------

    def claim(self, document_id: str | UUID, reviewer: Principal) -> Document:
        """Assign the document to *reviewer* and move it to ``in_review``.

        The write only lands if nobody holds the claim, so of two
        simultaneous claims exactly one sees a changed row.  Claiming a
        document you already hold is a no-op.
        """
        doc_id = coerce_document_id(document_id)
        if not can_act(reviewer, ACTION_CLAIM):
            raise PermissionError(f"Role {reviewer.role!r} cannot claim documents")

        now = utcnow()
        result = self.db.execute(
            update(Document)
            .where(
                Document.id == doc_id,
                Document.is_active.is_(True),
                Document.assigned_to.is_(None),
                Document.status.in_(self.statuses_leading_to(IN_REVIEW)),
            )
            .values(
                assigned_to=reviewer.identity,
                assigned_to_name=reviewer.display_name,
                assigned_at=now,
                status=IN_REVIEW,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        document = self.get_document(doc_id)

        if result.rowcount == 1:
            record_event(
                self.db,
                event_type=EVENT_DOCUMENT_CLAIMED,
                actor=reviewer.identity,
                actor_name=reviewer.display_name,
                document_id=str(doc_id),
            )
            logger.info("Document claimed: id=%s reviewer=%s", doc_id, reviewer.identity)
            return document

        if document.status == IN_REVIEW and document.assigned_to == reviewer.identity:
            return document
        if document.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(str(doc_id), document.status, ACTION_CLAIM)
        raise ClaimConflictError(str(doc_id), document.assigned_to_name)

    def release(
        self,
        document_id: str | UUID,
        actor: Principal,
        reason: str | None = None,
    ) -> Document:
        """Clear the assignment and put the document back in the queue."""
        document = self.get_document(document_id)
        if not can_act(actor, ACTION_RELEASE, document):
            raise PermissionError("You can only release documents assigned to you")

        document = self._conditional_update(
            document,
            ACTION_RELEASE,
            Document.assigned_to == document.assigned_to,
            assigned_to=None,
            assigned_to_name=None,
            assigned_at=None,
            status=PENDING_REVIEW,
            release_reason=reason or None,
        )
        record_event(
            self.db,
            event_type=EVENT_DOCUMENT_RELEASED,
            actor=actor.identity,
            actor_name=actor.display_name,
            document_id=str(document.id),
            reason=reason or None,
        )
        logger.info("Document released: id=%s actor=%s", document.id, actor.identity)
        return document

    # -- edit ---------------------------------------------------------------

    def update(
        self,
        document_id: str | UUID,
        actor: Principal,
        new_data: Mapping[str, Any] | None,
        change_description: str | None = None,
        comment: str | None = None,
    ) -> Revision:
        """Replace ``edited_data`` with *new_data* and append a revision.

        Status is unchanged.  Concurrent updates are last-writer-wins; every
        one of them keeps its revision.
        """
        if new_data is None:
            raise ValueError("Edited data is required")
        if not isinstance(new_data, Mapping):
            raise ValueError("new_data must be a JSON object")

        document = self.get_document(document_id)
        if not can_act(actor, ACTION_UPDATE, document):
            raise PermissionError("You can only update documents assigned to you")
        if document.status not in OPEN_STATUSES:
            raise InvalidTransitionError(str(document.id), document.status, ACTION_UPDATE)

        return self.ledger.append(
            document,
            actor,
            dict(new_data),
            change_description=change_description,
            comment=comment,
            statuses=OPEN_STATUSES,
        )

    # -- decide -------------------------------------------------------------

    def approve(
        self,
        document_id: str | UUID,
        actor: Principal,
        final_notes: str | None = None,
    ) -> Document:
        document = self.get_document(document_id)
        if not can_act(actor, ACTION_APPROVE, document):
            raise PermissionError("You can only approve documents assigned to you")

        now = utcnow()
        document = self._conditional_update(
            document,
            ACTION_APPROVE,
            status=APPROVED,
            approved_by=actor.identity,
            approved_by_name=actor.display_name,
            approved_at=now,
            final_notes=final_notes or None,
        )
        self._increment_counter(actor, Reviewer.documents_approved, last_approval_at=now)
        record_event(
            self.db,
            event_type=EVENT_DOCUMENT_APPROVED,
            actor=actor.identity,
            actor_name=actor.display_name,
            document_id=str(document.id),
            notes=final_notes or None,
        )
        logger.info("Document approved: id=%s actor=%s", document.id, actor.identity)
        return document

    def reject(
        self,
        document_id: str | UUID,
        actor: Principal,
        reason: str,
        rejection_type: str = "quality",
    ) -> Document:
        """Reject the document.  Any reviewer may reject, claimed or not."""
        if not reason or not reason.strip():
            raise ValueError("Rejection reason is required")
        if rejection_type not in REJECTION_TYPES:
            raise ValueError(
                f"Invalid rejection_type {rejection_type!r}; "
                f"must be one of {sorted(REJECTION_TYPES)}"
            )

        document = self.get_document(document_id)
        if not can_act(actor, ACTION_REJECT, document):
            raise PermissionError(f"Role {actor.role!r} cannot reject documents")

        document = self._conditional_update(
            document,
            ACTION_REJECT,
            status=REJECTED,
            rejected_by=actor.identity,
            rejected_by_name=actor.display_name,
            rejected_at=utcnow(),
            rejection_reason=reason.strip(),
            rejection_type=rejection_type,
        )
        self._increment_counter(actor, Reviewer.documents_rejected)
        record_event(
            self.db,
            event_type=EVENT_DOCUMENT_REJECTED,
            actor=actor.identity,
            actor_name=actor.display_name,
            document_id=str(document.id),
            reason=reason.strip(),
            rejection_type=rejection_type,
        )
        logger.info(
            "Document rejected: id=%s actor=%s type=%s",
            document.id, actor.identity, rejection_type,
        )
        return document

    # -- archive ------------------------------------------------------------

    def archive(self, document_id: str | UUID, actor: Principal) -> Document:
        """Soft-delete: the row stays, it just leaves every list."""
        document = self.get_document(document_id)
        if not can_act(actor, ACTION_ARCHIVE, document):
            raise PermissionError("You can only archive your own documents")

        now = utcnow()
        result = self.db.execute(
            update(Document)
            .where(Document.id == document.id, Document.is_active.is_(True))
            .values(is_active=False, archived_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise KeyError(f"Document {document_id} not found")
        self.db.refresh(document)

        record_event(
            self.db,
            event_type=EVENT_DOCUMENT_ARCHIVED,
            actor=actor.identity,
            actor_name=actor.display_name,
            document_id=str(document.id),
        )
        logger.info("Document archived: id=%s actor=%s", document.id, actor.identity)
        return document

    # -- helpers ------------------------------------------------------------

    def _conditional_update(
        self,
        document: Document,
        action: str,
        *criteria,
        **values: Any,
    ) -> Document:
        """Apply *values* only if the row may still move to ``values["status"]``."""
        values.setdefault("updated_at", utcnow())
        result = self.db.execute(
            update(Document)
            .where(
                Document.id == document.id,
                Document.is_active.is_(True),
                Document.status.in_(self.statuses_leading_to(values["status"])),
                *criteria,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        fresh = self.get_document(document.id)
        if result.rowcount != 1:
            raise InvalidTransitionError(str(document.id), fresh.status, action)
        return fresh

    def _increment_counter(self, actor: Principal, column, **values: Any) -> None:
        self.reviewers.ensure(
            actor.identity,
            display_name=actor.display_name,
            role=actor.role,
        )
        self.db.execute(
            update(Reviewer)
            .where(Reviewer.identity == actor.identity)
            .values({column.key: column + 1, **values})
            .execution_options(synchronize_session=False)
        )
