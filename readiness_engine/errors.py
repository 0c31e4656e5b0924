"""
Error taxonomy — every failure the engine reports to its callers.

Each error carries a stable ``kind`` string and the identifiers needed to
correct the input. ``AssessmentService`` turns them into ``Err`` results.
"""

from __future__ import annotations

from typing import Iterable, Optional


class AssessmentError(Exception):
    """Base class for all domain errors raised by the engine."""
    kind: str = "AssessmentError"

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": str(self)}
        for attr in (
            "subject_id", "attempt_number", "question_id", "option_label",
            "audience", "max_attempts", "missing_question_ids", "open_attempt",
        ):
            value = getattr(self, attr, None)
            if value is not None:
                payload[attr] = value
        return payload


class NoQuestionsAvailable(AssessmentError):
    kind = "NoQuestionsAvailable"

    def __init__(self, audience: str):
        self.audience = audience
        super().__init__(f"No active questions available for audience '{audience}'")


class InvalidAudience(AssessmentError):
    """Raised when a subject is registered with an audience outside AUDIENCES."""
    kind = "InvalidAudience"

    def __init__(self, audience: str, subject_id: Optional[str] = None):
        self.audience = audience
        self.subject_id = subject_id
        super().__init__(f"Unknown audience '{audience}'")


class AttemptLimitExceeded(AssessmentError):
    kind = "AttemptLimitExceeded"

    def __init__(self, subject_id: str, max_attempts: int):
        self.subject_id = subject_id
        self.max_attempts = max_attempts
        super().__init__(
            f"Maximum assessment attempts ({max_attempts}) reached for subject '{subject_id}'"
        )


class AttemptInProgress(AssessmentError):
    """Raised when a subject already has an open attempt."""
    kind = "AttemptInProgress"

    def __init__(self, subject_id: str, open_attempt: int):
        self.subject_id = subject_id
        self.open_attempt = open_attempt
        super().__init__(
            f"Subject '{subject_id}' already has attempt {open_attempt} in progress"
        )


class UnknownQuestion(AssessmentError):
    kind = "UnknownQuestion"

    def __init__(self, question_id: str, attempt_number: Optional[int] = None):
        self.question_id = question_id
        self.attempt_number = attempt_number
        where = f" in attempt {attempt_number}" if attempt_number is not None else ""
        super().__init__(f"Question '{question_id}' is not part of the snapshot{where}")


class InvalidOptionLabel(AssessmentError):
    kind = "InvalidOptionLabel"

    def __init__(self, question_id: str, option_label: str):
        self.question_id = question_id
        self.option_label = option_label
        super().__init__(f"Invalid option '{option_label}' for question '{question_id}'")


class AttemptAlreadyFinalized(AssessmentError):
    kind = "AttemptAlreadyFinalized"

    def __init__(self, subject_id: str, attempt_number: int):
        self.subject_id = subject_id
        self.attempt_number = attempt_number
        super().__init__(
            f"Attempt {attempt_number} of subject '{subject_id}' is already finalized"
        )


class AttemptNotFound(AssessmentError):
    kind = "AttemptNotFound"

    def __init__(self, subject_id: str, attempt_number: int):
        self.subject_id = subject_id
        self.attempt_number = attempt_number
        super().__init__(f"Attempt {attempt_number} of subject '{subject_id}' does not exist")


class IncompleteAssessment(AssessmentError):
    kind = "IncompleteAssessment"

    def __init__(
        self,
        missing_question_ids: Iterable[str],
        subject_id: Optional[str] = None,
        attempt_number: Optional[int] = None,
    ):
        self.missing_question_ids = sorted(missing_question_ids)
        self.subject_id = subject_id
        self.attempt_number = attempt_number
        super().__init__(
            f"{len(self.missing_question_ids)} question(s) unanswered: "
            f"{', '.join(self.missing_question_ids)}"
        )


class SubjectNotFound(AssessmentError):
    kind = "SubjectNotFound"

    def __init__(self, subject_id: str):
        self.subject_id = subject_id
        super().__init__(f"Subject '{subject_id}' not found")


class StorageUnavailable(AssessmentError):
    """Raised once a collaborator has exhausted its retries."""
    kind = "StorageUnavailable"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        detail = f": {cause}" if cause else ""
        super().__init__(f"Storage unavailable during {operation}{detail}")


class InvalidQuestionDefinition(AssessmentError):
    """A catalog entry violates the weight or option rules."""
    kind = "InvalidQuestionDefinition"

    def __init__(self, question_id: str, reason: str):
        self.question_id = question_id
        super().__init__(f"Question '{question_id}' is invalid: {reason}")
