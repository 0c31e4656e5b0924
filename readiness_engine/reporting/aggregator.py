"""
Report aggregator — turns a subject's finalized attempt history into trend
entries, prioritized recommendations and a dashboard report.

Inputs are full-precision AttemptResults; nothing here rounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ..config import (
    DEFAULT_BENCHMARKS,
    PRIORITY_FALLBACK,
    PRIORITY_THRESHOLDS,
    RANK_FALLBACK,
    RANK_THRESHOLDS,
    RANK_UNRANKED,
    RECOMMENDATION_LIMIT,
    tier_at_least,
    tier_below,
)
from ..scoring.models import AttemptResult
from ..store.models import Subject


@dataclass(frozen=True)
class TrendEntry:
    """One attempt in the history with its change from the previous attempt."""
    attempt_number: int
    overall_percentage: float
    completed_at: datetime
    accuracy_change: float
    has_prior: bool

    def to_dict(self) -> dict:
        return {
            "attempt_number": self.attempt_number,
            "overall_percentage": self.overall_percentage,
            "completed_at": self.completed_at.isoformat(),
            "accuracy_change": self.accuracy_change,
            "has_prior": self.has_prior,
        }


@dataclass(frozen=True)
class Recommendation:
    """Pointer to a low-scoring category from the latest attempt."""
    category: str
    percentage: float
    priority: str           # High, Medium, Low
    issue: str = ""
    action: str = ""

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "percentage": self.percentage,
            "priority": self.priority,
            "issue": self.issue,
            "action": self.action,
        }


@dataclass
class SubjectReport:
    """Everything a dashboard or export needs about one subject."""
    subject_id: str
    display_name: str = ""
    overall_score: float = 0.0
    previous_score: float = 0.0
    total_assessments: int = 0
    remaining_attempts: Optional[int] = None
    last_assessment: Optional[datetime] = None
    rank: str = RANK_UNRANKED
    attempts: list[TrendEntry] = field(default_factory=list)
    category_scores: dict[str, float] = field(default_factory=dict)
    recommendations: list[Recommendation] = field(default_factory=list)
    benchmarks: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "display_name": self.display_name,
            "overall_score": self.overall_score,
            "previous_score": self.previous_score,
            "total_assessments": self.total_assessments,
            "remaining_attempts": self.remaining_attempts,
            "last_assessment": self.last_assessment.isoformat() if self.last_assessment else None,
            "rank": self.rank,
            "attempts": [a.to_dict() for a in self.attempts],
            "category_scores": dict(self.category_scores),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "benchmarks": dict(self.benchmarks),
        }


def priority_for(percentage: float) -> str:
    """High below 50, Medium below 70, otherwise Low."""
    return tier_below(percentage, PRIORITY_THRESHOLDS, PRIORITY_FALLBACK)


def rank_for(percentage: float) -> str:
    return tier_at_least(percentage, RANK_THRESHOLDS, RANK_FALLBACK)


class ReportAggregator:
    """Derives trend and recommendation views from an attempt history."""

    def __init__(
        self,
        recommendation_limit: int = RECOMMENDATION_LIMIT,
        benchmarks: Optional[dict[str, float]] = None,
    ):
        self.recommendation_limit = recommendation_limit
        self.benchmarks = dict(benchmarks if benchmarks is not None else DEFAULT_BENCHMARKS)

    @staticmethod
    def _ordered(results: Sequence[AttemptResult]) -> list[AttemptResult]:
        return sorted(results, key=lambda r: r.attempt_number)

    @staticmethod
    def accuracy_change(results: Sequence[AttemptResult], index: int) -> float:
        """Overall change from the previous attempt; 0 for the first one."""
        if index <= 0:
            return 0.0
        return results[index].overall_percentage - results[index - 1].overall_percentage

    def trend(self, results: Sequence[AttemptResult]) -> list[TrendEntry]:
        ordered = self._ordered(results)
        return [
            TrendEntry(
                attempt_number=r.attempt_number,
                overall_percentage=r.overall_percentage,
                completed_at=r.completed_at,
                accuracy_change=self.accuracy_change(ordered, i),
                has_prior=i > 0,
            )
            for i, r in enumerate(ordered)
        ]

    def recommendations(self, results: Sequence[AttemptResult]) -> list[Recommendation]:
        """
        Lowest-scoring categories of the latest attempt, ascending by
        percentage (ties by category name), capped at the configured limit.
        """
        if not results:
            return []
        latest = self._ordered(results)[-1]
        ranked = sorted(latest.category_scores, key=lambda cs: (cs.percentage_score, cs.category))
        return [
            Recommendation(
                category=cs.category,
                percentage=cs.percentage_score,
                priority=priority_for(cs.percentage_score),
                issue=f"Low score in {cs.category}",
                action=f"Review {cs.category} best practices and implement stronger measures.",
            )
            for cs in ranked[: self.recommendation_limit]
        ]

    def build_report(
        self,
        subject: Subject,
        results: Sequence[AttemptResult],
        remaining_attempts: Optional[int] = None,
    ) -> SubjectReport:
        ordered = self._ordered(results)
        report = SubjectReport(
            subject_id=subject.subject_id,
            display_name=subject.display_name,
            total_assessments=len(ordered),
            remaining_attempts=remaining_attempts,
            benchmarks=dict(self.benchmarks),
        )
        if not ordered:
            return report

        latest = ordered[-1]
        report.overall_score = latest.overall_percentage
        report.previous_score = ordered[-2].overall_percentage if len(ordered) > 1 else 0.0
        report.last_assessment = latest.completed_at
        report.rank = rank_for(latest.overall_percentage)
        report.attempts = self.trend(ordered)
        report.category_scores = latest.percentages
        report.recommendations = self.recommendations(ordered)
        return report
