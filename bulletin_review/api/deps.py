"""FastAPI dependency injection: store handle, principal and service factories."""
from __future__ import annotations

from collections.abc import Generator

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from bulletin_review.db.session import StoreHandle
from bulletin_review.extraction.validator import ExtractionValidator
from bulletin_review.review.ledger import RevisionLedger
from bulletin_review.review.presence import record_last_seen
from bulletin_review.review.queue import ReviewQueue
from bulletin_review.review.roles import ACTION_VIEW, VALID_ROLES, Principal, can_act
from bulletin_review.review.workflow import WorkflowEngine


def get_store(request: Request) -> StoreHandle:
    """Return the handle created once in the application lifespan."""
    return request.app.state.store


def get_db(store: StoreHandle = Depends(get_store)) -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    db = store.session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_validator(request: Request) -> ExtractionValidator:
    return request.app.state.validator


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Principal:
    """Build the caller from headers set by the authentication proxy."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    if x_user_role not in VALID_ROLES:
        raise HTTPException(status_code=403, detail=f"Unknown role {x_user_role!r}")
    return Principal(
        identity=x_user_id,
        role=x_user_role,
        name=x_user_name or None,
        email=x_user_email or None,
    )


def require_reviewer(
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
    store: StoreHandle = Depends(get_store),
) -> Principal:
    """Gate review routes and schedule the last-seen stamp for the caller."""
    if not can_act(principal, ACTION_VIEW):
        raise HTTPException(status_code=403, detail="Reviewer access required")
    background_tasks.add_task(record_last_seen, store, principal)
    return principal


def get_workflow_engine(
    db: Session = Depends(get_db),
    validator: ExtractionValidator = Depends(get_validator),
) -> WorkflowEngine:
    """Return a WorkflowEngine bound to the current DB session."""
    return WorkflowEngine(db, validator)


def get_review_queue(db: Session = Depends(get_db)) -> ReviewQueue:
    """Return a ReviewQueue bound to the current DB session."""
    return ReviewQueue(db)


def get_ledger(db: Session = Depends(get_db)) -> RevisionLedger:
    return RevisionLedger(db)
