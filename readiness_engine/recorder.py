"""
Answer recorder — captures one selected option per question for an
in-progress attempt. Re-recording a question overwrites the earlier choice.
"""

from __future__ import annotations

from .errors import AttemptAlreadyFinalized
from .store.base import AttemptStore


class AnswerRecorder:
    """Validates a selection against the attempt's snapshot and upserts it."""

    def __init__(self, store: AttemptStore):
        self.store = store

    def record_answer(
        self,
        subject_id: str,
        attempt_number: int,
        question_id: str,
        option_label: str,
    ) -> None:
        """
        Raises:
            SubjectNotFound, AttemptNotFound, AttemptAlreadyFinalized,
            UnknownQuestion, InvalidOptionLabel, StorageUnavailable
        """
        attempt = self.store.get_attempt(subject_id, attempt_number)
        if attempt.is_finalized:
            raise AttemptAlreadyFinalized(subject_id, attempt_number)

        question = attempt.snapshot.get(question_id, attempt_number)
        question.option(option_label)

        # The write re-checks the state, so a finalize that lands between
        # the read above and this upsert still wins.
        if not self.store.record_answer(subject_id, attempt_number, question_id, option_label):
            raise AttemptAlreadyFinalized(subject_id, attempt_number)

    def answers(self, subject_id: str, attempt_number: int) -> dict[str, str]:
        self.store.get_attempt(subject_id, attempt_number)
        return self.store.get_answers(subject_id, attempt_number)

    def progress(self, subject_id: str, attempt_number: int) -> tuple[int, int]:
        """(answered, total) for the attempt's snapshot."""
        attempt = self.store.get_attempt(subject_id, attempt_number)
        answered = self.store.get_answers(subject_id, attempt_number)
        total = len(attempt.snapshot)
        return total - len(attempt.snapshot.missing(answered)), total
