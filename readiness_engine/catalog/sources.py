"""
Question sources — where the catalog reads its questions from.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from ..errors import InvalidQuestionDefinition, StorageUnavailable
from .models import Question
from .seed import SEED_QUESTIONS

logger = logging.getLogger("readiness_engine.catalog.sources")


class QuestionSource(ABC):
    """Returns the full question list; filtering happens in the catalog."""

    name: str = "base"

    @abstractmethod
    def load(self, audience: str) -> list[Question]:
        """Return candidate questions for ``audience`` (may include inactive ones)."""
        raise NotImplementedError


class StaticQuestionSource(QuestionSource):
    """In-memory list; the built-in seed when constructed without arguments."""

    name = "static"

    def __init__(self, questions: Iterable[Question] = SEED_QUESTIONS):
        self._questions = list(questions)

    def load(self, audience: str) -> list[Question]:
        return list(self._questions)

    def replace(self, questions: Iterable[Question]) -> None:
        """Swap the catalog contents; existing snapshots are unaffected."""
        self._questions = list(questions)


class FileQuestionSource(QuestionSource):
    """
    JSON file holding either a list of question objects or
    ``{"questions": [...]}``. Re-read on every load so edits are picked up.
    """

    name = "file"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self, audience: str) -> list[Question]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise StorageUnavailable("question catalog read", e) from e
        records = data.get("questions", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise InvalidQuestionDefinition(str(self.path), "expected a list of questions")
        questions = [Question.from_dict(r) for r in records]
        logger.debug(f"Loaded {len(questions)} questions from {self.path}")
        return questions
