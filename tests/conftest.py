"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from readiness_engine.catalog import AnswerOption, Question, QuestionCatalog, StaticQuestionSource
from readiness_engine.scoring.models import AttemptResult, CategoryScore
from readiness_engine.service import AssessmentService
from readiness_engine.store import SqliteAttemptStore


@pytest.fixture
def make_question():
    """Factory for questions with options A-D."""
    def _make(
        qid,
        category="Password Management",
        weight=10,
        option_weights=(100, 70, 30, 0),
        audience="both",
        is_active=True,
    ):
        return Question(
            id=qid,
            category=category,
            weight=weight,
            audience=audience,
            is_active=is_active,
            options=tuple(
                AnswerOption(label=label, weight=w)
                for label, w in zip("ABCD", option_weights)
            ),
        )
    return _make


@pytest.fixture
def make_result():
    """Factory for AttemptResult objects built from {category: percentage}."""
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _make(attempt_number, percentages, subject_id="alice", weight=1000.0):
        scores = tuple(
            CategoryScore(
                category=name,
                total_scored=pct / 100 * weight,
                total_weighted=weight,
                percentage_score=pct,
                questions_answered=1,
            )
            for name, pct in sorted(percentages.items())
        )
        total_scored = sum(cs.total_scored for cs in scores)
        total_weighted = sum(cs.total_weighted for cs in scores)
        return AttemptResult(
            subject_id=subject_id,
            attempt_number=attempt_number,
            completed_at=base + timedelta(days=attempt_number),
            overall_percentage=total_scored / total_weighted * 100 if total_weighted else 0.0,
            total_scored=total_scored,
            total_weighted=total_weighted,
            category_scores=scores,
        )
    return _make


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "readiness.db"


@pytest.fixture
def store(db_path):
    return SqliteAttemptStore(db_path, initial_backoff=0.01)


@pytest.fixture
def seed_source():
    return StaticQuestionSource()


@pytest.fixture
def catalog(seed_source):
    return QuestionCatalog(seed_source)


@pytest.fixture
def service(store, catalog):
    return AssessmentService(store, catalog)


@pytest.fixture
def subject(service):
    """A registered individual subject in organization ACME."""
    service.register_subject(
        "alice", display_name="Alice", audience="individual", organization="ACME"
    ).unwrap()
    return "alice"


@pytest.fixture
def answer_all(service):
    """Answer every snapshot question of an attempt ("A" unless overridden)."""
    def _answer(subject_id, attempt_number, choices=None):
        choices = choices or {}
        snapshot = service.get_attempt(subject_id, attempt_number).unwrap().snapshot
        for q in snapshot:
            service.record_answer(subject_id, attempt_number, q.id, choices.get(q.id, "A")).unwrap()
    return _answer
