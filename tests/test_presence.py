"""Tests for bulletin_review/review/presence.py: best-effort last seen."""
from __future__ import annotations

import logging

from bulletin_review.db.models import Reviewer
from bulletin_review.db.session import init_store
from bulletin_review.review.presence import record_last_seen


def test_creates_reviewer_and_stamps(reviewer_a):
    store = init_store("sqlite+pysqlite:///:memory:")
    store.create_schema()

    assert record_last_seen(store, reviewer_a) is True

    with store.session_scope() as db:
        reviewer = db.get(Reviewer, reviewer_a.identity)
        assert reviewer.last_seen_at is not None
        assert reviewer.display_name == "Alice Reviewer"
        assert reviewer.documents_approved == 0
    store.dispose()


def test_store_failure_is_logged_not_raised(reviewer_a, caplog):
    store = init_store("sqlite+pysqlite:///:memory:")
    # No schema: the reviewers table does not exist.

    with caplog.at_level(logging.WARNING, logger="bulletin_review.review.presence"):
        assert record_last_seen(store, reviewer_a) is False

    assert "Last-seen update failed" in caplog.text
    store.dispose()
