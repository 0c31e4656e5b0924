"""Tests for trend, recommendation and subject report derivation."""

import pytest

from readiness_engine.config import DEFAULT_BENCHMARKS
from readiness_engine.reporting import ReportAggregator
from readiness_engine.reporting.aggregator import priority_for, rank_for
from readiness_engine.store import Subject


@pytest.fixture
def aggregator():
    return ReportAggregator()


class TestTrend:

    def test_accuracy_change(self, aggregator, make_result):
        first = make_result(1, {"Password Management": 70.0})
        second = make_result(2, {"Password Management": 1560 / 1800 * 100})

        entries = aggregator.trend([second, first])

        assert [e.attempt_number for e in entries] == [1, 2]
        assert entries[0].accuracy_change == 0.0
        assert entries[0].has_prior is False
        assert entries[1].accuracy_change == pytest.approx(16.6666666, rel=1e-6)
        assert entries[1].has_prior is True

    def test_empty_history(self, aggregator):
        assert aggregator.trend([]) == []
        assert aggregator.recommendations([]) == []


class TestRecommendations:

    @pytest.mark.parametrize("pct, expected", [
        (0.0, "High"), (49.99, "High"), (50.0, "Medium"),
        (69.99, "Medium"), (70.0, "Low"), (100.0, "Low"),
    ])
    def test_priority_tiers(self, pct, expected):
        assert priority_for(pct) == expected

    def test_lowest_categories_of_latest_attempt(self, aggregator, make_result):
        older = make_result(1, {"Authentication": 10.0, "Network Security": 95.0})
        latest = make_result(2, {"Authentication": 90.0, "Network Security": 40.0, "Data Protection": 65.0})

        recs = aggregator.recommendations([latest, older])

        assert [(r.category, r.priority) for r in recs] == [
            ("Network Security", "High"),
            ("Data Protection", "Medium"),
            ("Authentication", "Low"),
        ]
        assert recs[0].percentage == 40.0
        assert recs[0].issue == "Low score in Network Security"

    def test_ties_broken_by_category_name(self, aggregator, make_result):
        result = make_result(1, {"Zeta": 40.0, "Alpha": 40.0, "Mid": 40.0})
        assert [r.category for r in aggregator.recommendations([result])] == ["Alpha", "Mid", "Zeta"]

    def test_capped_at_limit(self, make_result):
        result = make_result(1, {f"Cat{i}": float(i * 10) for i in range(8)})
        assert len(ReportAggregator().recommendations([result])) == 5
        assert [r.category for r in ReportAggregator(recommendation_limit=2).recommendations([result])] == [
            "Cat0", "Cat1",
        ]


class TestSubjectReport:

    @pytest.mark.parametrize("pct, expected", [
        (95.0, "Gold"), (90.0, "Gold"), (89.9, "Silver"), (70.0, "Silver"), (69.9, "Bronze"),
    ])
    def test_rank(self, pct, expected):
        assert rank_for(pct) == expected

    def test_report_fields(self, aggregator, make_result):
        results = [make_result(1, {"Authentication": 60.0}), make_result(2, {"Authentication": 92.0})]
        report = aggregator.build_report(Subject("alice", display_name="Alice"), results, remaining_attempts=8)

        assert report.overall_score == pytest.approx(92.0)
        assert report.previous_score == pytest.approx(60.0)
        assert report.total_assessments == 2
        assert report.remaining_attempts == 8
        assert report.rank == "Gold"
        assert report.category_scores == {"Authentication": pytest.approx(92.0)}
        assert report.last_assessment == results[1].completed_at
        assert report.benchmarks == DEFAULT_BENCHMARKS

    def test_report_without_attempts(self, aggregator):
        report = aggregator.build_report(Subject("alice"), [])
        assert report.rank == "Unranked"
        assert report.overall_score == 0.0
        assert report.attempts == []
        assert report.last_assessment is None

    def test_benchmarks_are_supplied_not_computed(self, make_result):
        aggregator = ReportAggregator(benchmarks={"industry": 50.0})
        report = aggregator.build_report(Subject("alice"), [make_result(1, {"A": 99.0})])
        assert report.benchmarks == {"industry": 50.0}
        assert report.to_dict()["benchmarks"] == {"industry": 50.0}
