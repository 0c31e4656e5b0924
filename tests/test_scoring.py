"""Tests for the scoring engine."""

from datetime import datetime, timezone

import pytest

from readiness_engine.catalog import QuestionSnapshot
from readiness_engine.errors import IncompleteAssessment, InvalidOptionLabel, UnknownQuestion
from readiness_engine.scoring import AttemptResult, score


@pytest.fixture
def password_snapshot(make_question):
    """Two Password Management questions, weights 10 and 8."""
    return QuestionSnapshot("individual", (
        make_question("PWD-001", weight=10, option_weights=(100, 60, 30, 10)),
        make_question("PWD-002", weight=8, option_weights=(100, 70, 30, 50)),
    ))


@pytest.fixture
def mixed_snapshot(make_question):
    return QuestionSnapshot("individual", (
        make_question("AUTH-001", category="Authentication", weight=10),
        make_question("DATA-001", category="Data Protection", weight=8),
        make_question("DATA-002", category="Data Protection", weight=7),
        make_question("NET-001", category="Network Security", weight=7),
        make_question("PWD-001", category="Password Management", weight=9),
    ))


class TestCategoryScoring:

    def test_weighted_category_percentage(self, password_snapshot):
        result = score(password_snapshot, {"PWD-001": "A", "PWD-002": "B"})
        cs = result.category("Password Management")

        assert cs.total_scored == 10 * 100 + 8 * 70 == 1560
        assert cs.total_weighted == 1800
        assert cs.percentage_score == pytest.approx(1560 / 1800 * 100)
        assert cs.questions_answered == 2

    def test_categories_sorted_and_totals_consistent(self, mixed_snapshot):
        answers = {"AUTH-001": "B", "DATA-001": "C", "DATA-002": "A", "NET-001": "D", "PWD-001": "A"}
        result = score(mixed_snapshot, answers)

        assert [cs.category for cs in result.category_scores] == [
            "Authentication", "Data Protection", "Network Security", "Password Management",
        ]
        assert result.total_weighted == sum(cs.total_weighted for cs in result.category_scores)
        assert result.total_weighted == sum(q.max_contribution for q in mixed_snapshot)
        assert result.overall_percentage == pytest.approx(
            result.total_scored / result.total_weighted * 100
        )

    def test_overall_is_ratio_of_sums_not_mean_of_categories(self, make_question):
        snapshot = QuestionSnapshot("individual", (
            make_question("A-1", category="Heavy", weight=10),
            make_question("B-1", category="Light", weight=1),
        ))
        result = score(snapshot, {"A-1": "A", "B-1": "D"})
        assert result.overall_percentage == pytest.approx(1000 / 1100 * 100)

    @pytest.mark.parametrize("label", ["A", "B", "C", "D"])
    def test_overall_within_bounds(self, mixed_snapshot, label):
        result = score(mixed_snapshot, {qid: label for qid in mixed_snapshot.question_ids})
        assert 0 <= result.overall_percentage <= 100
        for cs in result.category_scores:
            assert 0 <= cs.percentage_score <= 100

    def test_result_metadata(self, password_snapshot):
        when = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        result = score(password_snapshot, {"PWD-001": "A", "PWD-002": "A"},
                       subject_id="alice", attempt_number=2, completed_at=when)
        assert (result.subject_id, result.attempt_number, result.completed_at) == ("alice", 2, when)

    def test_json_reload_is_identical(self, password_snapshot):
        result = score(password_snapshot, {"PWD-001": "C", "PWD-002": "B"}, subject_id="alice",
                       attempt_number=1)
        assert AttemptResult.from_json(result.to_json()) == result


class TestScoringValidation:

    def test_unanswered_questions(self, mixed_snapshot):
        answers = {qid: "A" for qid in mixed_snapshot.question_ids[:4]}
        with pytest.raises(IncompleteAssessment) as exc_info:
            score(mixed_snapshot, answers)
        assert exc_info.value.missing_question_ids == ["PWD-001"]

    def test_answer_outside_snapshot(self, password_snapshot):
        with pytest.raises(UnknownQuestion) as exc_info:
            score(password_snapshot, {"PWD-001": "A", "PWD-002": "A", "GHOST-1": "A"})
        assert exc_info.value.question_id == "GHOST-1"

    def test_invalid_option_label(self, password_snapshot):
        with pytest.raises(InvalidOptionLabel) as exc_info:
            score(password_snapshot, {"PWD-001": "A", "PWD-002": "E"})
        assert exc_info.value.question_id == "PWD-002"
        assert exc_info.value.option_label == "E"
