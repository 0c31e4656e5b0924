"""
Attempt tracker — allocates attempt numbers, enforces the attempt cap and
owns the in_progress -> finalized transition.

State machine:
    in_progress --finalize(complete)-->   finalized
    in_progress --finalize(incomplete)--> in_progress  (IncompleteAssessment)
    finalized   --finalize-->             finalized    (stored result returned)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from .catalog.catalog import QuestionCatalog
from .catalog.models import QuestionSnapshot
from .config import MAX_ATTEMPTS
from .scoring.engine import score
from .scoring.models import AttemptResult
from .store.base import AttemptStore
from .store.models import Attempt

logger = logging.getLogger("readiness_engine.tracker")


class AttemptTracker:
    """Starts and finalizes attempts through the store's conditional writes."""

    def __init__(
        self,
        store: AttemptStore,
        catalog: QuestionCatalog,
        max_attempts: int = MAX_ATTEMPTS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.max_attempts = max_attempts
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def start_attempt(self, subject_id: str) -> Attempt:
        """
        Open attempt n+1 for a subject with n finalized attempts.

        The question snapshot is read from the catalog now and stored with
        the attempt, so later catalog edits never affect it.

        Raises:
            SubjectNotFound, AttemptLimitExceeded, AttemptInProgress,
            NoQuestionsAvailable, StorageUnavailable
        """
        subject = self.store.get_subject(subject_id)
        snapshot = self.catalog.active_questions(subject.audience)
        attempt = self.store.create_attempt(subject_id, snapshot, self.max_attempts)
        logger.info(
            f"Started attempt {attempt.attempt_number}/{self.max_attempts} for {subject_id} "
            f"({len(snapshot)} questions, audience={subject.audience})"
        )
        return attempt

    def finalize(self, subject_id: str, attempt_number: int) -> AttemptResult:
        """
        Score and finalize an attempt, or return the stored result if it is
        already finalized.

        Raises:
            SubjectNotFound, AttemptNotFound, IncompleteAssessment,
            StorageUnavailable
        """
        def _scorer(snapshot: QuestionSnapshot, answers: Mapping[str, str]) -> AttemptResult:
            return score(
                snapshot,
                answers,
                subject_id=subject_id,
                attempt_number=attempt_number,
                completed_at=self._clock(),
            )

        result, newly_finalized = self.store.finalize_attempt(subject_id, attempt_number, _scorer)
        if newly_finalized:
            logger.info(
                f"Finalized attempt {attempt_number} for {subject_id}: "
                f"{result.overall_percentage:.1f}% across {len(result.category_scores)} categories"
            )
        else:
            logger.debug(f"Attempt {attempt_number} for {subject_id} already finalized; returning stored result")
        return result

    def get_attempt(self, subject_id: str, attempt_number: int) -> Attempt:
        return self.store.get_attempt(subject_id, attempt_number)

    def remaining_attempts(self, subject_id: str) -> int:
        return max(0, self.max_attempts - self.store.count_finalized(subject_id))
