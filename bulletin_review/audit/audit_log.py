"""Append-only audit logger.

Provides ``record_event()`` to persist ``AuditEvent`` rows.
All writes are immutable: ``immutable=True`` always.

Only event_type and actor are written to the application log; reasons and
notes stay in the database.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from bulletin_review.audit.events import EVENT_DOCUMENT_REJECTED, VALID_EVENT_TYPES
from bulletin_review.db.models import AuditEvent

logger = logging.getLogger(__name__)


def record_event(
    db_session: Session,
    event_type: str,
    actor: str,
    document_id: str | None = None,
    actor_name: str | None = None,
    **details: Any,
) -> AuditEvent:
    """Create and persist an immutable ``AuditEvent``.

    Extra keyword arguments are stored in ``details``.  Raises ``ValueError``
    for invalid inputs.  Flushes but does **not** commit; the caller
    controls the transaction boundary.
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type {event_type!r}; "
            f"must be one of {sorted(VALID_EVENT_TYPES)}"
        )

    if not actor or not actor.strip():
        raise ValueError("actor must be a non-empty string")

    if event_type == EVENT_DOCUMENT_REJECTED and not details.get("reason"):
        raise ValueError(f"reason is required for {event_type} events")

    event = AuditEvent(
        event_type=event_type,
        actor=actor,
        actor_name=actor_name,
        document_id=document_id,
        details={key: value for key, value in details.items() if value is not None} or None,
        immutable=True,
    )
    db_session.add(event)
    db_session.flush()

    logger.info("Audit event recorded: type=%s actor=%s", event_type, actor)
    return event


def get_document_history(
    db_session: Session,
    document_id: str,
) -> list[AuditEvent]:
    """Return all ``AuditEvent`` rows for *document_id*, ordered by timestamp."""
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.document_id == document_id)
        .order_by(AuditEvent.timestamp.asc())
    )
    return list(db_session.execute(stmt).scalars().all())


def get_recent_events(
    db_session: Session,
    limit: int = 10,
) -> list[AuditEvent]:
    """Return the *limit* newest ``AuditEvent`` rows, newest first."""
    stmt = (
        select(AuditEvent)
        .order_by(AuditEvent.timestamp.desc())
        .limit(limit)
    )
    return list(db_session.execute(stmt).scalars().all())
