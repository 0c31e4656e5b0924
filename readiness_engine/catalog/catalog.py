"""
Question catalog — filters a question source down to the active, ordered
question set for an audience and freezes it into a snapshot.
"""

from __future__ import annotations

import logging

from ..config import AUDIENCES, QuestionSourceConfig
from ..errors import InvalidQuestionDefinition, NoQuestionsAvailable
from .models import QuestionSnapshot
from .sources import FileQuestionSource, QuestionSource, StaticQuestionSource

logger = logging.getLogger("readiness_engine.catalog")


class QuestionCatalog:
    """
    Supplies the active questions applicable to an audience.

    No caching: every call reads the source, so a new attempt always sees
    the catalog as it is at the moment the attempt starts.
    """

    def __init__(self, source: QuestionSource):
        self.source = source

    def active_questions(self, audience: str) -> QuestionSnapshot:
        """
        Return the active questions for ``audience`` ordered by identifier.
        Raises NoQuestionsAvailable if the filtered set is empty.
        """
        if audience not in AUDIENCES:
            raise NoQuestionsAvailable(audience)

        candidates = [q for q in self.source.load(audience) if q.applies_to(audience)]
        candidates.sort(key=lambda q: q.id)

        seen: set[str] = set()
        for q in candidates:
            if q.id in seen:
                raise InvalidQuestionDefinition(q.id, "duplicate question id in catalog")
            seen.add(q.id)

        if not candidates:
            logger.warning(f"No active questions for audience '{audience}' from {self.source.name} source")
            raise NoQuestionsAvailable(audience)

        logger.debug(f"Catalog snapshot for '{audience}': {len(candidates)} questions")
        return QuestionSnapshot(audience=audience, questions=tuple(candidates))


def build_source(config: QuestionSourceConfig) -> QuestionSource:
    """Instantiate the question source named by the configuration."""
    if config.kind == "file":
        return FileQuestionSource(config.path)
    if config.kind == "http":
        from .http_source import HttpQuestionSource
        return HttpQuestionSource(
            config.url,
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
    if config.kind == "seed":
        return StaticQuestionSource()
    raise ValueError(f"Unknown question source kind: {config.kind!r}")
