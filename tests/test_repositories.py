"""Tests for bulletin_review/db/repositories.py."""
from __future__ import annotations

from conftest import make_extraction
from sqlalchemy import func, select

from bulletin_review.db.models import Reviewer
from bulletin_review.db.repositories import DocumentRepository, ReviewerRepository
from bulletin_review.review.workflow import APPROVED, WorkflowEngine


def test_ensure_creates_reviewer_with_defaults(db_session):
    ReviewerRepository(db_session).ensure("rev-a", display_name="Alice Reviewer", role="reviewer")

    reviewer = db_session.get(Reviewer, "rev-a")
    assert reviewer.display_name == "Alice Reviewer"
    assert reviewer.documents_approved == 0
    assert reviewer.documents_rejected == 0
    assert reviewer.is_active is True


def test_ensure_is_a_no_op_when_row_exists(db_session, monkeypatch):
    repo = ReviewerRepository(db_session)
    repo.ensure("rev-a", display_name="Alice Reviewer", role="reviewer")
    # A reader that missed the other writer's insert must not collide with it.
    monkeypatch.setattr(ReviewerRepository, "get", lambda self, entity_id: None)

    repo.ensure("rev-a", display_name="Someone Else", role="reviewer")

    count = db_session.execute(select(func.count()).select_from(Reviewer)).scalar_one()
    assert count == 1
    reviewer = db_session.get(Reviewer, "rev-a", populate_existing=True)
    assert reviewer.display_name == "Alice Reviewer"


def test_approve_after_presence_row_exists(db_session, partner, reviewer_a):
    ReviewerRepository(db_session).ensure(reviewer_a.identity, display_name="Alice", role=reviewer_a.role)
    wf = WorkflowEngine(db_session)
    document, _ = wf.create_document(partner, "bulletin", make_extraction())
    wf.claim(document.id, reviewer_a)

    assert wf.approve(document.id, reviewer_a).status == APPROVED
    reviewer = db_session.get(Reviewer, reviewer_a.identity, populate_existing=True)
    assert reviewer.documents_approved == 1


def test_get_active_hides_archived(db_session, partner):
    wf = WorkflowEngine(db_session)
    document, _ = wf.create_document(partner, "bulletin", make_extraction())
    repo = DocumentRepository(db_session)
    assert repo.get_active(document.id) is document

    wf.archive(document.id, partner)
    assert repo.get_active(document.id) is None
    assert repo.get(document.id) is not None
