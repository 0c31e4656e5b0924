"""
Scoring Engine — Computes per-category and overall readiness percentages
from a question snapshot and a complete answer set.

Scoring model:
  - A question of weight w answered with an option of weight o (0-100)
    scores w × o out of a possible w × 100.
  - Category percentage = Σ scored / Σ possible × 100 over its questions.
  - Overall percentage = Σ scored / Σ possible × 100 over included categories.
  - A category with no possible points is left out of both outputs.

Pure function: no I/O, safe to call concurrently.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional

from ..catalog.models import QuestionSnapshot
from ..errors import IncompleteAssessment
from .models import AttemptResult, CategoryScore


def score(
    snapshot: QuestionSnapshot,
    answers: Mapping[str, str],
    *,
    subject_id: str = "",
    attempt_number: int = 0,
    completed_at: Optional[datetime] = None,
) -> AttemptResult:
    """
    Score ``answers`` (question id → option label) against ``snapshot``.

    Raises:
        UnknownQuestion: an answer names a question outside the snapshot.
        InvalidOptionLabel: an answer names an option the question lacks.
        IncompleteAssessment: a snapshot question has no answer.
    """
    for question_id in answers:
        snapshot.get(question_id, attempt_number or None)

    missing = snapshot.missing(answers)
    if missing:
        raise IncompleteAssessment(
            missing,
            subject_id=subject_id or None,
            attempt_number=attempt_number or None,
        )

    # --- Group contributions by category ---
    totals: dict[str, list] = {}
    for question in snapshot:
        option = question.option(answers[question.id])
        bucket = totals.setdefault(question.category, [0, 0, 0])
        bucket[0] += question.weight * option.weight
        bucket[1] += question.max_contribution
        bucket[2] += 1

    # --- Per-category percentages ---
    category_scores = []
    for category in sorted(totals):
        scored, weighted, answered = totals[category]
        if weighted <= 0:
            continue
        category_scores.append(CategoryScore(
            category=category,
            total_scored=float(scored),
            total_weighted=float(weighted),
            percentage_score=scored / weighted * 100,
            questions_answered=answered,
        ))

    # --- Overall ---
    total_scored = sum(cs.total_scored for cs in category_scores)
    total_weighted = sum(cs.total_weighted for cs in category_scores)
    overall = total_scored / total_weighted * 100 if total_weighted > 0 else 0.0

    return AttemptResult(
        subject_id=subject_id,
        attempt_number=attempt_number,
        completed_at=completed_at or datetime.now(timezone.utc),
        overall_percentage=overall,
        total_scored=total_scored,
        total_weighted=total_weighted,
        category_scores=tuple(category_scores),
    )
