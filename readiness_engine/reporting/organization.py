"""
Organization roll-up — combines the latest attempt of every member subject
into an organization score, category and department averages, member
statuses and a leaderboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..config import (
    DEPARTMENT_UNASSIGNED,
    LEADERBOARD_SIZE,
    MEMBER_NOT_ASSESSED,
    MEMBER_STATUS_FALLBACK,
    MEMBER_STATUS_THRESHOLDS,
    ORG_RISK_FALLBACK,
    ORG_RISK_THRESHOLDS,
    WEAK_AREA_LIMIT,
    WEAK_AREA_THRESHOLD,
    tier_at_least,
    tier_below,
)
from ..scoring.models import AttemptResult
from ..store.models import Subject


@dataclass
class MemberSummary:
    subject_id: str
    display_name: str = ""
    department: str = DEPARTMENT_UNASSIGNED
    score: Optional[float] = None        # None when never assessed
    status: str = MEMBER_NOT_ASSESSED
    attempts: int = 0
    last_assessment: Optional[datetime] = None
    weak_areas: list[str] = field(default_factory=list)
    rank: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "display_name": self.display_name,
            "department": self.department,
            "score": self.score,
            "status": self.status,
            "attempts": self.attempts,
            "last_assessment": self.last_assessment.isoformat() if self.last_assessment else None,
            "weak_areas": list(self.weak_areas),
            "rank": self.rank,
        }


@dataclass(frozen=True)
class CategoryAverage:
    category: str
    average_score: float
    members: int

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "average_score": self.average_score,
            "members": self.members,
        }


@dataclass(frozen=True)
class DepartmentSummary:
    department: str
    average_score: float        # Σ scored / Σ possible over assessed members
    members: int
    assessed: int

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "average_score": self.average_score,
            "members": self.members,
            "assessed": self.assessed,
        }


@dataclass
class OrganizationSummary:
    organization: str
    overall_score: float = 0.0
    risk_level: str = ""
    total_members: int = 0
    assessed_members: int = 0
    categories: list[CategoryAverage] = field(default_factory=list)
    departments: list[DepartmentSummary] = field(default_factory=list)
    members: list[MemberSummary] = field(default_factory=list)
    leaderboard: list[MemberSummary] = field(default_factory=list)

    def filter_members(
        self,
        status: Optional[str] = None,
        department: Optional[str] = None,
    ) -> list[MemberSummary]:
        """Members matching ``status`` and ``department``; None or "all" matches any."""
        return [
            m for m in self.members
            if status in (None, "all", m.status)
            and department in (None, "all", m.department)
        ]

    def to_dict(self) -> dict:
        return {
            "organization": self.organization,
            "overall_score": self.overall_score,
            "risk_level": self.risk_level,
            "total_members": self.total_members,
            "assessed_members": self.assessed_members,
            "categories": [c.to_dict() for c in self.categories],
            "departments": [d.to_dict() for d in self.departments],
            "members": [m.to_dict() for m in self.members],
            "leaderboard": [m.to_dict() for m in self.leaderboard],
        }


def member_status(score: Optional[float]) -> str:
    if score is None:
        return MEMBER_NOT_ASSESSED
    return tier_at_least(score, MEMBER_STATUS_THRESHOLDS, MEMBER_STATUS_FALLBACK)


class OrganizationAggregator:
    """Summarizes member subjects by their most recent finalized attempt."""

    def __init__(self, leaderboard_size: int = LEADERBOARD_SIZE):
        self.leaderboard_size = leaderboard_size

    def summarize(
        self,
        organization: str,
        members: Iterable[tuple[Subject, Sequence[AttemptResult]]],
    ) -> OrganizationSummary:
        summary = OrganizationSummary(organization=organization)
        scored_sum = 0.0
        weighted_sum = 0.0
        cat_totals: dict[str, list] = {}
        dept_totals: dict[str, list] = {}     # scored, possible, members, assessed

        for subject, results in members:
            summary.total_members += 1
            member = MemberSummary(
                subject_id=subject.subject_id,
                display_name=subject.display_name,
                department=subject.department or DEPARTMENT_UNASSIGNED,
                attempts=len(results),
            )
            summary.members.append(member)
            dept = dept_totals.setdefault(member.department, [0.0, 0.0, 0, 0])
            dept[2] += 1
            if not results:
                continue

            latest = max(results, key=lambda r: r.attempt_number)
            summary.assessed_members += 1
            scored_sum += latest.total_scored
            weighted_sum += latest.total_weighted
            dept[0] += latest.total_scored
            dept[1] += latest.total_weighted
            dept[3] += 1

            member.score = latest.overall_percentage
            member.status = member_status(member.score)
            member.last_assessment = latest.completed_at
            weak = sorted(
                (cs for cs in latest.category_scores if cs.percentage_score < WEAK_AREA_THRESHOLD),
                key=lambda cs: (cs.percentage_score, cs.category),
            )
            member.weak_areas = [cs.category for cs in weak[:WEAK_AREA_LIMIT]]

            for cs in latest.category_scores:
                bucket = cat_totals.setdefault(cs.category, [0.0, 0.0, 0])
                bucket[0] += cs.total_scored
                bucket[1] += cs.total_weighted
                bucket[2] += 1

        summary.overall_score = scored_sum / weighted_sum * 100 if weighted_sum > 0 else 0.0
        summary.risk_level = tier_below(summary.overall_score, ORG_RISK_THRESHOLDS, ORG_RISK_FALLBACK)
        summary.categories = [
            CategoryAverage(
                category=name,
                average_score=scored / weighted * 100 if weighted > 0 else 0.0,
                members=count,
            )
            for name, (scored, weighted, count) in sorted(cat_totals.items())
        ]
        summary.departments = [
            DepartmentSummary(
                department=name,
                average_score=scored / weighted * 100 if weighted > 0 else 0.0,
                members=count,
                assessed=assessed,
            )
            for name, (scored, weighted, count, assessed) in sorted(dept_totals.items())
        ]

        ranked = sorted(
            (m for m in summary.members if m.score is not None and m.score > 0),
            key=lambda m: (-m.score, m.subject_id),
        )
        for position, member in enumerate(ranked[: self.leaderboard_size], 1):
            member.rank = position
            summary.leaderboard.append(member)

        return summary
