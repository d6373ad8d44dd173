import copy
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bulletin_review.db.base import Base
from bulletin_review.review.roles import PARTNER, REVIEWER, SUPER_ADMIN, Principal

_SUBJECT = {
    "subject": "Mathematiques",
    "firstSemester": {"period1": 14, "period2": 16, "exam": 31, "total": 61},
    "secondSemester": {"period3": 15, "period4": 13, "exam": 28, "total": 56},
    "overallTotal": 117,
    "maxima": {"periodMaxima": 20, "examMaxima": 40, "totalMaxima": 80},
    "confidence": {"subject": 95, "gradesAvg": 88, "maxima": 92},
}

_RECORD = {
    "studentName": "Amani Kabila",
    "class": "6e Scientifique",
    "academicYear": "2024-2025",
    "centerCode": "KIN-042",
    "verifierName": "M. Tshibanda",
    "subjects": [],
    "extractionMetadata": {"confidence": 87, "missingFields": [], "uncertainFields": []},
}


def make_subject(name="Mathematiques", period_max=20, **overrides) -> dict:
    subject = copy.deepcopy(_SUBJECT)
    subject["subject"] = name
    subject["maxima"]["periodMaxima"] = period_max
    subject.update(overrides)
    return subject


def make_extraction(subjects=..., **overrides) -> dict:
    record = copy.deepcopy(_RECORD)
    record["subjects"] = [make_subject()] if subjects is ... else subjects
    record.update(overrides)
    return record


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def reviewer_a() -> Principal:
    return Principal(identity="rev-a", role=REVIEWER, name="Alice Reviewer")


@pytest.fixture()
def reviewer_b() -> Principal:
    return Principal(identity="rev-b", role=REVIEWER, name="Bruno Reviewer")


@pytest.fixture()
def admin() -> Principal:
    return Principal(identity="admin-1", role=SUPER_ADMIN, name="Ada Admin")


@pytest.fixture()
def partner() -> Principal:
    return Principal(identity="partner-1", role=PARTNER, name="Partner School")


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("AUTO_CREATE_SCHEMA", "true")

    from bulletin_review.core.settings import get_settings

    get_settings.cache_clear()

    from bulletin_review.api.main import app

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()
    os.environ.pop("DATABASE_URL", None)
