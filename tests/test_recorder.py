"""Tests for answer recording."""

import pytest

from readiness_engine.errors import (
    AttemptAlreadyFinalized,
    AttemptNotFound,
    InvalidOptionLabel,
    SubjectNotFound,
    UnknownQuestion,
)


@pytest.fixture
def open_attempt(service, subject):
    return service.start_attempt(subject).unwrap()


class TestAnswerRecorder:

    def test_rerecording_overwrites(self, service, subject, open_attempt):
        recorder = service.recorder
        recorder.record_answer(subject, open_attempt, "PWD-001", "C")
        recorder.record_answer(subject, open_attempt, "PWD-001", "A")

        assert recorder.answers(subject, open_attempt) == {"PWD-001": "A"}
        assert recorder.progress(subject, open_attempt) == (1, 10)

    def test_unknown_question(self, service, subject, open_attempt):
        with pytest.raises(UnknownQuestion) as exc_info:
            service.recorder.record_answer(subject, open_attempt, "XYZ-404", "A")
        assert exc_info.value.question_id == "XYZ-404"
        assert exc_info.value.attempt_number == open_attempt

    def test_invalid_option(self, service, subject, open_attempt):
        with pytest.raises(InvalidOptionLabel):
            service.recorder.record_answer(subject, open_attempt, "PWD-001", "E")
        assert service.recorder.answers(subject, open_attempt) == {}

    def test_finalized_attempt_rejects_answers(self, service, subject, open_attempt, answer_all):
        answer_all(subject, open_attempt)
        service.finalize(subject, open_attempt).unwrap()

        with pytest.raises(AttemptAlreadyFinalized):
            service.recorder.record_answer(subject, open_attempt, "PWD-001", "D")
        assert service.recorder.answers(subject, open_attempt)["PWD-001"] == "A"

    def test_missing_attempt_and_subject(self, service, subject):
        with pytest.raises(AttemptNotFound):
            service.recorder.record_answer(subject, 1, "PWD-001", "A")
        with pytest.raises(SubjectNotFound):
            service.recorder.record_answer("ghost", 1, "PWD-001", "A")

    def test_store_rejects_write_after_finalize(self, service, subject, open_attempt, answer_all):
        answer_all(subject, open_attempt)
        service.finalize(subject, open_attempt).unwrap()
        assert service.store.record_answer(subject, open_attempt, "PWD-001", "B") is False
