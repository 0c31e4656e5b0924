"""
HTTP question source — reads the active catalog from a remote question service
with throttling-aware retry.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from ..config import (
    QUESTION_SERVICE_BACKOFF_MULTIPLIER,
    QUESTION_SERVICE_INITIAL_BACKOFF_SECONDS,
    QUESTION_SERVICE_MAX_BACKOFF_SECONDS,
    QUESTION_SERVICE_MAX_RETRIES,
    QUESTION_SERVICE_TIMEOUT_SECONDS,
)
from ..errors import InvalidQuestionDefinition, StorageUnavailable
from .models import Question
from .sources import QuestionSource

logger = logging.getLogger("readiness_engine.catalog.http")

RETRYABLE_STATUS = (429, 503, 504)


class QuestionServiceError(Exception):
    """Raised when the question service returns a non-recoverable response."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Question service error {status_code} for {url}: {message}")


def _retry_after_seconds(response: httpx.Response, default: float) -> float:
    """Delay from a numeric Retry-After header; HTTP-date or garbage values use ``default``."""
    try:
        return float(response.headers.get("Retry-After", default))
    except (TypeError, ValueError):
        return default


class HttpQuestionSource(QuestionSource):
    """
    Fetches ``GET {base_url}/questions?audience=<audience>``.

    The service answers with a JSON list of question objects, or an object
    with the list under ``"questions"`` / ``"value"``. Features:
      - Exponential backoff on 429/503/504, honouring Retry-After
      - Retry on timeouts and connection errors
      - Failures surface as StorageUnavailable once retries are spent
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = QUESTION_SERVICE_TIMEOUT_SECONDS,
        max_retries: int = QUESTION_SERVICE_MAX_RETRIES,
        initial_backoff: float = QUESTION_SERVICE_INITIAL_BACKOFF_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self._request_count = 0
        self._throttle_count = 0
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            headers=headers,
        )
        self._owns_client = client is None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self._owns_client:
            self._client.close()

    def load(self, audience: str) -> list[Question]:
        url = f"{self.base_url}/questions"
        try:
            data = self._get_with_retry(url, params={"audience": audience})
        except (httpx.HTTPError, QuestionServiceError, ValueError) as e:
            raise StorageUnavailable("question catalog fetch", e) from e

        if isinstance(data, dict):
            records = data.get("questions", data.get("value", []))
        else:
            records = data
        if not isinstance(records, list):
            raise InvalidQuestionDefinition(url, "response is not a list of questions")

        questions = [Question.from_dict(r) for r in records]
        logger.info(f"Fetched {len(questions)} questions from {url} (audience={audience})")
        return questions

    def _get_with_retry(self, url: str, params: Optional[dict] = None):
        """Execute GET with exponential backoff on throttling."""
        backoff = self.initial_backoff

        for attempt in range(self.max_retries + 1):
            try:
                response = self._client.get(url, params=params)
                self._request_count += 1

                if response.status_code == 200:
                    if not response.content or not response.content.strip():
                        return []
                    return response.json()

                if response.status_code in RETRYABLE_STATUS and attempt < self.max_retries:
                    self._throttle_count += 1
                    retry_after = _retry_after_seconds(response, backoff)
                    wait_time = min(max(retry_after, backoff), QUESTION_SERVICE_MAX_BACKOFF_SECONDS)
                    logger.warning(
                        f"Throttled ({response.status_code}) on {url}. "
                        f"Retry {attempt + 1}/{self.max_retries} in {wait_time:.1f}s"
                    )
                    time.sleep(wait_time)
                    backoff = min(
                        backoff * QUESTION_SERVICE_BACKOFF_MULTIPLIER,
                        QUESTION_SERVICE_MAX_BACKOFF_SECONDS,
                    )
                    continue

                raise QuestionServiceError(response.status_code, response.text[:200], url)

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                logger.warning(f"{type(e).__name__} on {url}, attempt {attempt + 1}/{self.max_retries}")
                if attempt == self.max_retries:
                    raise
                time.sleep(backoff)
                backoff = min(
                    backoff * QUESTION_SERVICE_BACKOFF_MULTIPLIER,
                    QUESTION_SERVICE_MAX_BACKOFF_SECONDS,
                )

        raise QuestionServiceError(0, "retries exhausted", url)

    def get_stats(self) -> dict:
        return {
            "total_requests": self._request_count,
            "throttle_events": self._throttle_count,
        }
