"""Revision ledger: append-only edit history per document.

Each accepted edit writes one ``Revision`` and replaces the document's
``edited_data`` in the same transaction, so readers never see one without
the other.  There is no merge: the newest edit wins the snapshot, and every
losing edit is still recoverable from its revision row.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Collection
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from bulletin_review.db.models import Document, Revision, utcnow
from bulletin_review.db.repositories import RevisionRepository
from bulletin_review.review.errors import InvalidTransitionError
from bulletin_review.review.roles import ACTION_UPDATE, Principal

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_DESCRIPTION = "Manual update"
MAX_PAGE_SIZE = 100


class RevisionLedger:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session
        self.revisions = RevisionRepository(db_session)

    def append(
        self,
        document: Document,
        editor: Principal,
        new_data: dict,
        change_description: str | None = None,
        comment: str | None = None,
        statuses: Collection[str] | None = None,
    ) -> Revision:
        """Record *new_data* as the document's edited snapshot.

        With *statuses*, the snapshot is only replaced while the document is
        still in one of them; otherwise ``InvalidTransitionError`` is raised
        and no revision is written.
        """
        previous_data = copy.deepcopy(document.edited_data)
        values = {
            "edited_data": copy.deepcopy(new_data),
            "last_edited_by": editor.identity,
            "updated_at": utcnow(),
        }
        if comment is not None:
            values["review_notes"] = comment

        criteria = [Document.id == document.id, Document.is_active.is_(True)]
        if statuses is not None:
            criteria.append(Document.status.in_(sorted(statuses)))
        result = self.db.execute(
            update(Document)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(document)
        if result.rowcount != 1:
            if not document.is_active:
                raise KeyError(f"Document {document.id} not found")
            raise InvalidTransitionError(str(document.id), document.status, ACTION_UPDATE)

        revision = self.revisions.create(
            document_id=document.id,
            editor_id=editor.identity,
            editor_name=editor.display_name,
            previous_data=previous_data,
            new_data=copy.deepcopy(new_data),
            change_description=change_description or DEFAULT_CHANGE_DESCRIPTION,
            comment=comment,
        )

        logger.info("Revision appended: document=%s editor=%s", document.id, editor.identity)
        return revision

    def list_revisions(
        self,
        document_id: UUID,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Revision]:
        """Return revisions for *document_id*, newest first."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        stmt = (
            select(Revision)
            .where(Revision.document_id == document_id)
            .order_by(Revision.created_at.desc(), Revision.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count(self, document_id: UUID) -> int:
        stmt = select(func.count()).select_from(Revision).where(Revision.document_id == document_id)
        return self.db.execute(stmt).scalar_one()
