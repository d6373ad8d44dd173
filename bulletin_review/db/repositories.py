from __future__ import annotations

import logging
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bulletin_review.db import models

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Dialects with INSERT ... ON CONFLICT DO NOTHING.
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs) -> ModelT:
        entity = self.model(**kwargs)
        self.db.add(entity)
        self.db.flush()
        return entity

    def get(self, entity_id) -> ModelT | None:
        return self.db.get(self.model, entity_id)


class DocumentRepository(BaseRepository[models.Document]):
    model = models.Document

    def get_active(self, document_id: UUID) -> models.Document | None:
        """Return the document with fresh column values, or None if archived."""
        document = self.db.get(models.Document, document_id, populate_existing=True)
        if document is None or not document.is_active:
            return None
        return document


class RevisionRepository(BaseRepository[models.Revision]):
    """Revisions are only ever created, never updated."""

    model = models.Revision


class ReviewerRepository(BaseRepository[models.Reviewer]):
    model = models.Reviewer

    def ensure(self, identity: str, **defaults) -> None:
        """Insert the reviewer row unless one already exists.

        Safe against a concurrent insert of the same identity: the loser's
        insert is a no-op instead of a primary-key violation.
        """
        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is not None:
            self.db.execute(
                insert(models.Reviewer)
                .values(identity=identity, **defaults)
                .on_conflict_do_nothing(index_elements=["identity"])
            )
            return

        if self.get(identity) is not None:
            return
        try:
            with self.db.begin_nested():
                self.db.add(models.Reviewer(identity=identity, **defaults))
        except IntegrityError:
            logger.debug("Reviewer row created concurrently: identity=%s", identity)
