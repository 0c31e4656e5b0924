"""
Persistent record types — subjects and attempts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..catalog.models import QuestionSnapshot

IN_PROGRESS = "in_progress"
FINALIZED = "finalized"


@dataclass(frozen=True)
class Subject:
    """An individual or organization that takes assessments."""
    subject_id: str
    display_name: str = ""
    audience: str = "individual"          # Selects the catalog filter
    organization: Optional[str] = None    # Organization code for roll-ups
    department: Optional[str] = None      # Grouping within the organization
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "display_name": self.display_name,
            "audience": self.audience,
            "organization": self.organization,
            "department": self.department,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Attempt:
    """One pass through a question snapshot; state is in_progress or finalized."""
    subject_id: str
    attempt_number: int
    state: str
    snapshot: QuestionSnapshot
    started_at: datetime
    finalized_at: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.state == FINALIZED

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "attempt_number": self.attempt_number,
            "state": self.state,
            "audience": self.snapshot.audience,
            "question_count": len(self.snapshot),
            "started_at": self.started_at.isoformat(),
            "finalized_at": self.finalized_at.isoformat() if self.finalized_at else None,
        }
