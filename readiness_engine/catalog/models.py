"""
Question catalog data models — questions, answer options and the immutable
per-attempt snapshot.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from ..config import AUDIENCE_BOTH, AUDIENCES
from ..errors import InvalidOptionLabel, InvalidQuestionDefinition, UnknownQuestion


@dataclass(frozen=True)
class AnswerOption:
    """One labeled choice; ``weight`` is the share of the question earned (0-100)."""
    label: str
    weight: int
    text: str = ""

    def to_dict(self) -> dict:
        return {"label": self.label, "text": self.text, "weight": self.weight}


@dataclass(frozen=True)
class Question:
    """
    A published assessment question.
    Immutable once published; attempts hold their own copy in a snapshot.
    """
    id: str                                  # Sort key within the catalog (e.g. "PWD-001")
    category: str                            # Sub-score grouping (e.g. "Password Management")
    weight: int                              # Multiplier for scored and max contribution
    options: tuple[AnswerOption, ...] = ()
    text: str = ""
    audience: str = "individual"             # individual, organization, both
    is_active: bool = True

    def __post_init__(self):
        if not self.category:
            raise InvalidQuestionDefinition(self.id, "missing category")
        # bool is an int subclass but never a valid weight
        if isinstance(self.weight, bool) or not isinstance(self.weight, int) or self.weight <= 0:
            raise InvalidQuestionDefinition(
                self.id, f"question weight must be a positive integer, got {self.weight!r}"
            )
        if not self.options:
            raise InvalidQuestionDefinition(self.id, "no answer options")
        seen: set[str] = set()
        for opt in self.options:
            if opt.label in seen:
                raise InvalidQuestionDefinition(self.id, f"duplicate option label '{opt.label}'")
            seen.add(opt.label)
            if isinstance(opt.weight, bool) or not isinstance(opt.weight, (int, float)):
                raise InvalidQuestionDefinition(
                    self.id, f"option '{opt.label}' weight is not numeric"
                )
            if not 0 <= opt.weight <= 100:
                raise InvalidQuestionDefinition(
                    self.id, f"option '{opt.label}' weight {opt.weight} outside [0, 100]"
                )
        if self.audience not in AUDIENCES and self.audience != AUDIENCE_BOTH:
            raise InvalidQuestionDefinition(self.id, f"unknown audience '{self.audience}'")

    def option(self, label: str) -> AnswerOption:
        for opt in self.options:
            if opt.label == label:
                return opt
        raise InvalidOptionLabel(self.id, label)

    def applies_to(self, audience: str) -> bool:
        return self.is_active and self.audience in (audience, AUDIENCE_BOTH)

    @property
    def max_contribution(self) -> int:
        return self.weight * 100

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "weight": self.weight,
            "text": self.text,
            "audience": self.audience,
            "is_active": self.is_active,
            "options": [o.to_dict() for o in self.options],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        qid = str(data.get("id", ""))
        try:
            options = tuple(
                AnswerOption(
                    label=str(o["label"]),
                    weight=o["weight"],
                    text=o.get("text", ""),
                )
                for o in data.get("options", [])
            )
            return cls(
                id=qid,
                category=data.get("category", ""),
                weight=data.get("weight"),
                options=options,
                text=data.get("text", ""),
                audience=data.get("audience", "individual"),
                is_active=data.get("is_active", True),
            )
        except (KeyError, TypeError) as e:
            raise InvalidQuestionDefinition(qid, f"malformed record: {e}") from e


@dataclass(frozen=True)
class QuestionSnapshot:
    """
    The ordered question set an attempt was started against.
    Later catalog edits never change a stored snapshot.
    """
    audience: str
    questions: tuple[Question, ...]
    _index: dict[str, Question] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {q.id: q for q in self.questions})

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __len__(self) -> int:
        return len(self.questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._index

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    @property
    def categories(self) -> list[str]:
        return sorted({q.category for q in self.questions})

    def get(self, question_id: str, attempt_number: Optional[int] = None) -> Question:
        try:
            return self._index[question_id]
        except KeyError:
            raise UnknownQuestion(question_id, attempt_number) from None

    def missing(self, answered: Iterable[str]) -> list[str]:
        """Snapshot question ids without an answer, in snapshot order."""
        answered = set(answered)
        return [qid for qid in self.question_ids if qid not in answered]

    def to_json(self) -> str:
        return json.dumps(
            {"audience": self.audience, "questions": [q.to_dict() for q in self.questions]},
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, raw: str) -> "QuestionSnapshot":
        data = json.loads(raw)
        return cls(
            audience=data["audience"],
            questions=tuple(Question.from_dict(q) for q in data["questions"]),
        )
