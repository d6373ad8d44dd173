"""Best-effort reviewer presence.

``record_last_seen`` runs as a fire-and-forget background task after the
response is sent.  It uses its own session, so a failure here can never
roll back the request that scheduled it.
"""
from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from bulletin_review.db.models import Reviewer, utcnow
from bulletin_review.db.repositories import ReviewerRepository
from bulletin_review.db.session import StoreHandle
from bulletin_review.review.roles import Principal

logger = logging.getLogger(__name__)


def record_last_seen(store: StoreHandle, principal: Principal) -> bool:
    """Stamp ``last_seen_at`` for *principal*.  Returns False on store failure."""
    try:
        with store.session_scope() as db:
            ReviewerRepository(db).ensure(
                principal.identity,
                display_name=principal.display_name,
                role=principal.role,
            )
            db.execute(
                update(Reviewer)
                .where(Reviewer.identity == principal.identity)
                .values(last_seen_at=utcnow())
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError as exc:
        logger.warning("Last-seen update failed: identity=%s error=%s", principal.identity, exc)
        return False
    return True
