"""
Scoring data models — Defines structured types for the scoring engine output.

Percentages are kept at full float precision; rounding belongs to exporters.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CategoryScore:
    """Score for a single question category."""
    category: str
    total_scored: float = 0.0       # Σ question weight × chosen option weight
    total_weighted: float = 0.0     # Σ question weight × 100
    percentage_score: float = 0.0
    questions_answered: int = 0

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "total_scored": self.total_scored,
            "total_weighted": self.total_weighted,
            "percentage_score": self.percentage_score,
            "questions_answered": self.questions_answered,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryScore":
        return cls(
            category=data["category"],
            total_scored=data["total_scored"],
            total_weighted=data["total_weighted"],
            percentage_score=data["percentage_score"],
            questions_answered=data["questions_answered"],
        )


@dataclass(frozen=True)
class AttemptResult:
    """Immutable scored outcome of one finalized attempt."""
    subject_id: str
    attempt_number: int
    completed_at: datetime
    overall_percentage: float = 0.0
    total_scored: float = 0.0
    total_weighted: float = 0.0
    category_scores: tuple[CategoryScore, ...] = field(default_factory=tuple)

    def category(self, name: str) -> CategoryScore:
        for cs in self.category_scores:
            if cs.category == name:
                return cs
        raise KeyError(name)

    @property
    def percentages(self) -> dict[str, float]:
        return {cs.category: cs.percentage_score for cs in self.category_scores}

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "attempt_number": self.attempt_number,
            "completed_at": self.completed_at.isoformat(),
            "overall_percentage": self.overall_percentage,
            "total_scored": self.total_scored,
            "total_weighted": self.total_weighted,
            "category_scores": [cs.to_dict() for cs in self.category_scores],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttemptResult":
        return cls(
            subject_id=data["subject_id"],
            attempt_number=data["attempt_number"],
            completed_at=datetime.fromisoformat(data["completed_at"]),
            overall_percentage=data["overall_percentage"],
            total_scored=data["total_scored"],
            total_weighted=data["total_weighted"],
            category_scores=tuple(CategoryScore.from_dict(c) for c in data["category_scores"]),
        )

    def to_json(self) -> str:
        # json float repr round-trips exactly, so a stored result reloads bit-identical
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "AttemptResult":
        return cls.from_dict(json.loads(raw))
