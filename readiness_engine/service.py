"""
Assessment service — the operations exposed to UI, API and export layers.

Every method takes an explicit subject id and returns ``Ok(value)`` or
``Err(error)``; domain errors never escape as exceptions from here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

from .catalog.catalog import QuestionCatalog, build_source
from .catalog.models import QuestionSnapshot
from .config import AUDIENCES, EngineConfig, ScoringPolicy
from .errors import AssessmentError, InvalidAudience
from .recorder import AnswerRecorder
from .reporting.aggregator import Recommendation, ReportAggregator, SubjectReport, TrendEntry
from .reporting.organization import OrganizationAggregator, OrganizationSummary
from .results import Err, Ok, Result
from .scoring.models import AttemptResult
from .store.base import AttemptStore
from .store.models import Attempt, Subject
from .store.sqlite_store import SqliteAttemptStore
from .tracker import AttemptTracker

logger = logging.getLogger("readiness_engine.service")

T = TypeVar("T")


class AssessmentService:
    """Wires catalog, tracker, recorder and aggregators over one store."""

    def __init__(
        self,
        store: AttemptStore,
        catalog: QuestionCatalog,
        policy: Optional[ScoringPolicy] = None,
    ):
        policy = policy or ScoringPolicy()
        self.store = store
        self.catalog = catalog
        self.policy = policy
        self.tracker = AttemptTracker(store, catalog, max_attempts=policy.max_attempts)
        self.recorder = AnswerRecorder(store)
        self.aggregator = ReportAggregator(
            recommendation_limit=policy.recommendation_limit,
            benchmarks=policy.benchmarks,
        )
        self.organizations = OrganizationAggregator()

    @classmethod
    def from_config(cls, config: EngineConfig, db_path: Optional[str | Path] = None) -> "AssessmentService":
        store = SqliteAttemptStore.from_config(config.storage, db_path)
        catalog = QuestionCatalog(build_source(config.questions))
        return cls(store, catalog, config.policy)

    @staticmethod
    def _run(operation: str, fn: Callable[[], T]) -> Result[T]:
        try:
            return Ok(fn())
        except AssessmentError as e:
            logger.info(f"{operation} rejected: {e.kind}: {e}")
            return Err(e)

    # --- Subjects & catalog ---

    def register_subject(
        self,
        subject_id: str,
        display_name: str = "",
        audience: str = "individual",
        organization: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Result[Subject]:
        def _register():
            if audience not in AUDIENCES:
                raise InvalidAudience(audience, subject_id)
            return self.store.upsert_subject(Subject(
                subject_id=subject_id,
                display_name=display_name,
                audience=audience,
                organization=organization,
                department=department,
            ))
        return self._run("register_subject", _register)

    def get_subject(self, subject_id: str) -> Result[Subject]:
        return self._run("get_subject", lambda: self.store.get_subject(subject_id))

    def active_questions(self, audience: str) -> Result[QuestionSnapshot]:
        return self._run("active_questions", lambda: self.catalog.active_questions(audience))

    # --- Attempt lifecycle ---

    def start_attempt(self, subject_id: str) -> Result[int]:
        return self._run(
            "start_attempt",
            lambda: self.tracker.start_attempt(subject_id).attempt_number,
        )

    def record_answer(
        self,
        subject_id: str,
        attempt_number: int,
        question_id: str,
        option_label: str,
    ) -> Result[None]:
        return self._run(
            "record_answer",
            lambda: self.recorder.record_answer(subject_id, attempt_number, question_id, option_label),
        )

    def finalize(self, subject_id: str, attempt_number: int) -> Result[AttemptResult]:
        return self._run("finalize", lambda: self.tracker.finalize(subject_id, attempt_number))

    def get_attempt(self, subject_id: str, attempt_number: int) -> Result[Attempt]:
        return self._run("get_attempt", lambda: self.tracker.get_attempt(subject_id, attempt_number))

    def get_open_attempt(self, subject_id: str) -> Result[Optional[Attempt]]:
        return self._run("get_open_attempt", lambda: self.store.open_attempt(subject_id))

    def get_answers(self, subject_id: str, attempt_number: int) -> Result[dict[str, str]]:
        return self._run("get_answers", lambda: self.recorder.answers(subject_id, attempt_number))

    def get_progress(self, subject_id: str, attempt_number: int) -> Result[tuple[int, int]]:
        """(answered, total) for one attempt."""
        return self._run("get_progress", lambda: self.recorder.progress(subject_id, attempt_number))

    def remaining_attempts(self, subject_id: str) -> Result[int]:
        return self._run("remaining_attempts", lambda: self.tracker.remaining_attempts(subject_id))

    # --- History & reporting ---

    def get_history(self, subject_id: str) -> Result[list[AttemptResult]]:
        return self._run("get_history", lambda: self.store.list_results(subject_id))

    def get_trend(self, subject_id: str) -> Result[list[TrendEntry]]:
        return self._run(
            "get_trend",
            lambda: self.aggregator.trend(self.store.list_results(subject_id)),
        )

    def get_recommendations(self, subject_id: str) -> Result[list[Recommendation]]:
        return self._run(
            "get_recommendations",
            lambda: self.aggregator.recommendations(self.store.list_results(subject_id)),
        )

    def get_report(self, subject_id: str) -> Result[SubjectReport]:
        def _build():
            subject = self.store.get_subject(subject_id)
            results = self.store.list_results(subject_id)
            remaining = max(0, self.policy.max_attempts - len(results))
            return self.aggregator.build_report(subject, results, remaining_attempts=remaining)
        return self._run("get_report", _build)

    def get_organization_summary(self, organization: str) -> Result[OrganizationSummary]:
        def _build():
            members = [
                (subject, self.store.list_results(subject.subject_id))
                for subject in self.store.list_subjects(organization=organization)
            ]
            return self.organizations.summarize(organization, members)
        return self._run("get_organization_summary", _build)
