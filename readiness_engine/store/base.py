"""
Persistence contract — the operations the core needs from durable storage.

Implementations must make ``create_attempt``, ``record_answer`` and
``finalize_attempt`` atomic conditional updates scoped to one subject, and
surface exhausted retries as StorageUnavailable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Mapping, Optional

from ..catalog.models import QuestionSnapshot
from ..scoring.models import AttemptResult
from .models import Attempt, Subject

Scorer = Callable[[QuestionSnapshot, Mapping[str, str]], AttemptResult]


class AttemptStore(ABC):
    """Abstract storage for subjects, attempts, answers and results."""

    # --- Subjects ---

    @abstractmethod
    def upsert_subject(self, subject: Subject) -> Subject:
        raise NotImplementedError

    @abstractmethod
    def get_subject(self, subject_id: str) -> Subject:
        """Raises SubjectNotFound."""
        raise NotImplementedError

    @abstractmethod
    def list_subjects(self, organization: Optional[str] = None) -> list[Subject]:
        raise NotImplementedError

    # --- Attempts ---

    @abstractmethod
    def create_attempt(
        self,
        subject_id: str,
        snapshot: QuestionSnapshot,
        max_attempts: int,
    ) -> Attempt:
        """
        Allocate the next attempt number in one conditional write.
        Raises SubjectNotFound, AttemptLimitExceeded or AttemptInProgress.
        """
        raise NotImplementedError

    @abstractmethod
    def get_attempt(self, subject_id: str, attempt_number: int) -> Attempt:
        """Raises SubjectNotFound or AttemptNotFound."""
        raise NotImplementedError

    @abstractmethod
    def open_attempt(self, subject_id: str) -> Optional[Attempt]:
        """The subject's in-progress attempt, if any."""
        raise NotImplementedError

    # --- Answers ---

    @abstractmethod
    def record_answer(
        self,
        subject_id: str,
        attempt_number: int,
        question_id: str,
        option_label: str,
    ) -> bool:
        """Upsert one selection. Returns False if the attempt is no longer in progress."""
        raise NotImplementedError

    @abstractmethod
    def get_answers(self, subject_id: str, attempt_number: int) -> dict[str, str]:
        raise NotImplementedError

    # --- Results ---

    @abstractmethod
    def finalize_attempt(
        self,
        subject_id: str,
        attempt_number: int,
        scorer: Scorer,
    ) -> tuple[AttemptResult, bool]:
        """
        Score and finalize in one transaction.

        Returns ``(result, newly_finalized)``. An already-finalized attempt
        returns its stored result without calling ``scorer``. If ``scorer``
        raises, nothing is written and the attempt stays in progress.
        """
        raise NotImplementedError

    @abstractmethod
    def get_result(self, subject_id: str, attempt_number: int) -> Optional[AttemptResult]:
        raise NotImplementedError

    @abstractmethod
    def list_results(self, subject_id: str) -> list[AttemptResult]:
        """Finalized results ordered by attempt number."""
        raise NotImplementedError

    @abstractmethod
    def count_finalized(self, subject_id: str) -> int:
        raise NotImplementedError
