"""Review queue read side.

Nothing here mutates state.  Archived documents (``is_active=False``) are
invisible to every query.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bulletin_review.db.models import Document, Reviewer
from bulletin_review.review.workflow import (
    APPROVED,
    IN_REVIEW,
    OPEN_STATUSES,
    REJECTED,
    STATUSES,
    VALID_PRIORITIES,
    VALID_STATUSES,
)

PERIOD_DAY = "day"
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_YEAR = "year"
PERIOD_ALL = "all"

_PERIOD_DAYS: dict[str, int] = {
    PERIOD_WEEK: 7,
    PERIOD_MONTH: 30,
    PERIOD_YEAR: 365,
}
VALID_PERIODS: frozenset[str] = frozenset({PERIOD_DAY, PERIOD_ALL, *_PERIOD_DAYS})

MAX_PAGE_SIZE = 100


def _midnight(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def window_start(period: str, now: datetime | None = None) -> datetime | None:
    """Return the inclusive lower bound for *period*, or None for ``all``."""
    if period not in VALID_PERIODS:
        raise ValueError(f"Invalid period {period!r}; must be one of {sorted(VALID_PERIODS)}")
    now = now or datetime.now(timezone.utc)
    if period == PERIOD_ALL:
        return None
    if period == PERIOD_DAY:
        return _midnight(now)
    return now - timedelta(days=_PERIOD_DAYS[period])


def _clamp(limit: int) -> int:
    return max(1, min(limit, MAX_PAGE_SIZE))


class ReviewQueue:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list_queue(
        self,
        status: str | None = None,
        priority: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Document]:
        """Open documents, most urgent first, then oldest first."""
        if status is not None and status not in VALID_STATUSES:
            raise ValueError(f"Invalid status {status!r}; must be one of {STATUSES}")
        if priority is not None and priority not in VALID_PRIORITIES:
            raise ValueError(
                f"Invalid priority {priority!r}; must be one of {sorted(VALID_PRIORITIES)}"
            )

        stmt = select(Document).where(Document.is_active.is_(True))
        if status is None:
            stmt = stmt.where(Document.status.in_(sorted(OPEN_STATUSES)))
        else:
            stmt = stmt.where(Document.status == status)
        if priority is not None:
            stmt = stmt.where(Document.priority == priority)
        stmt = (
            stmt.order_by(Document.priority.desc(), Document.created_at.asc(), Document.id.asc())
            .offset(max(0, offset))
            .limit(_clamp(limit))
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_assigned(
        self,
        identity: str,
        status: str | None = None,
        limit: int = 20,
    ) -> list[Document]:
        """Documents currently held by *identity*, most recently touched first."""
        if status is not None and status not in VALID_STATUSES:
            raise ValueError(f"Invalid status {status!r}; must be one of {STATUSES}")

        stmt = select(Document).where(
            Document.is_active.is_(True),
            Document.assigned_to == identity,
        )
        if status is not None:
            stmt = stmt.where(Document.status == status)
        stmt = stmt.order_by(Document.updated_at.desc()).limit(_clamp(limit))
        return list(self.db.execute(stmt).scalars().all())

    def status_counts(self, now: datetime | None = None) -> dict[str, int]:
        """Per-status counts, zero-filled, plus queue total and today's approvals."""
        now = now or datetime.now(timezone.utc)
        rows = self.db.execute(
            select(Document.status, func.count())
            .where(Document.is_active.is_(True))
            .group_by(Document.status)
        ).all()

        counts = {status: 0 for status in STATUSES}
        for status, count in rows:
            counts[status] = count
        counts["total_in_queue"] = sum(counts[status] for status in OPEN_STATUSES)
        counts["approved_today"] = self.db.execute(
            select(func.count())
            .select_from(Document)
            .where(
                Document.is_active.is_(True),
                Document.status == APPROVED,
                Document.approved_at >= _midnight(now),
            )
        ).scalar_one()
        return counts

    def reviewer_stats(
        self,
        identity: str,
        period: str = PERIOD_WEEK,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        start = window_start(period, now)

        approved_stmt = select(func.count()).select_from(Document).where(
            Document.approved_by == identity, Document.status == APPROVED
        )
        rejected_stmt = select(func.count()).select_from(Document).where(
            Document.rejected_by == identity, Document.status == REJECTED
        )
        if start is not None:
            approved_stmt = approved_stmt.where(Document.approved_at >= start)
            rejected_stmt = rejected_stmt.where(Document.rejected_at >= start)
        approved = self.db.execute(approved_stmt).scalar_one()
        rejected = self.db.execute(rejected_stmt).scalar_one()

        in_progress = self.db.execute(
            select(func.count())
            .select_from(Document)
            .where(
                Document.is_active.is_(True),
                Document.assigned_to == identity,
                Document.status == IN_REVIEW,
            )
        ).scalar_one()

        lifetime = self.db.execute(
            select(Reviewer.documents_approved, Reviewer.documents_rejected).where(
                Reviewer.identity == identity
            )
        ).one_or_none()

        total = approved + rejected
        return {
            "period": period,
            "approved": approved,
            "rejected": rejected,
            "in_progress": in_progress,
            "total_reviewed": total,
            "approval_rate": round(approved / total * 100, 1) if total else 0.0,
            "lifetime_approved": lifetime.documents_approved if lifetime else 0,
            "lifetime_rejected": lifetime.documents_rejected if lifetime else 0,
        }

    def leaderboard(
        self,
        period: str = PERIOD_WEEK,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Approvals per approver within *period*, highest first."""
        start = window_start(period, now)
        approvals = func.count().label("approvals")
        stmt = (
            select(Document.approved_by, func.max(Document.approved_by_name), approvals)
            .where(Document.status == APPROVED, Document.approved_by.is_not(None))
            .group_by(Document.approved_by)
            .order_by(approvals.desc(), Document.approved_by.asc())
            .limit(_clamp(limit))
        )
        if start is not None:
            stmt = stmt.where(Document.approved_at >= start)

        return [
            {"rank": rank, "identity": identity, "name": name or identity, "approvals": count}
            for rank, (identity, name, count) in enumerate(self.db.execute(stmt).all(), start=1)
        ]
