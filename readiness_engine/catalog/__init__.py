"""Catalog package — questions, snapshots and question sources."""

from .catalog import QuestionCatalog, build_source
from .models import AnswerOption, Question, QuestionSnapshot
from .seed import SEED_QUESTIONS
from .sources import FileQuestionSource, QuestionSource, StaticQuestionSource

__all__ = [
    "QuestionCatalog",
    "build_source",
    "AnswerOption",
    "Question",
    "QuestionSnapshot",
    "SEED_QUESTIONS",
    "QuestionSource",
    "StaticQuestionSource",
    "FileQuestionSource",
]
