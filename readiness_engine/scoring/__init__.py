"""Scoring package — weighted category and overall percentage calculation."""

from .engine import score
from .models import AttemptResult, CategoryScore

__all__ = [
    "score",
    "AttemptResult",
    "CategoryScore",
]
