"""Tests for the question catalog, question sources and snapshots."""

import json

import httpx
import pytest

from readiness_engine.catalog import (
    AnswerOption,
    FileQuestionSource,
    Question,
    QuestionCatalog,
    QuestionSnapshot,
    SEED_QUESTIONS,
    StaticQuestionSource,
    build_source,
)
from readiness_engine.catalog.http_source import HttpQuestionSource
from readiness_engine.config import QuestionSourceConfig
from readiness_engine.errors import (
    InvalidOptionLabel,
    InvalidQuestionDefinition,
    NoQuestionsAvailable,
    StorageUnavailable,
    UnknownQuestion,
)
from readiness_engine.results import Err, Ok
from readiness_engine.service import AssessmentService


# ==============================================================================
# Question validation
# ==============================================================================

class TestQuestion:

    def test_max_contribution_is_weight_times_hundred(self, make_question):
        assert make_question("Q1", weight=8).max_contribution == 800

    @pytest.mark.parametrize("weight", [0, -3, 2.5, True, None])
    def test_rejects_non_positive_integer_weight(self, make_question, weight):
        with pytest.raises(InvalidQuestionDefinition):
            make_question("Q1", weight=weight)

    @pytest.mark.parametrize("option_weight", [-1, 101])
    def test_rejects_option_weight_outside_range(self, make_question, option_weight):
        with pytest.raises(InvalidQuestionDefinition):
            make_question("Q1", option_weights=(100, option_weight))

    def test_rejects_duplicate_option_labels(self):
        with pytest.raises(InvalidQuestionDefinition, match="duplicate option"):
            Question(
                id="Q1",
                category="Authentication",
                weight=5,
                options=(AnswerOption("A", 100), AnswerOption("A", 0)),
            )

    def test_rejects_empty_options_and_unknown_audience(self, make_question):
        with pytest.raises(InvalidQuestionDefinition):
            Question(id="Q1", category="Authentication", weight=5)
        with pytest.raises(InvalidQuestionDefinition):
            make_question("Q1", audience="everyone")

    def test_option_lookup(self, make_question):
        q = make_question("Q1")
        assert q.option("B").weight == 70
        with pytest.raises(InvalidOptionLabel) as exc_info:
            q.option("Z")
        assert exc_info.value.option_label == "Z"
        assert exc_info.value.question_id == "Q1"

    def test_from_dict_wraps_malformed_records(self):
        with pytest.raises(InvalidQuestionDefinition):
            Question.from_dict({"id": "Q1", "category": "X", "weight": 3, "options": [{"text": "no label"}]})


# ==============================================================================
# Catalog filtering and ordering
# ==============================================================================

class TestQuestionCatalog:

    def test_seed_catalog_ordered_by_id(self, catalog):
        snapshot = catalog.active_questions("individual")
        assert snapshot.question_ids == sorted(q.id for q in SEED_QUESTIONS)
        assert len(snapshot) == 10

    def test_audience_filter(self, make_question):
        source = StaticQuestionSource([
            make_question("B-1", audience="organization"),
            make_question("A-1", audience="individual"),
            make_question("C-1", audience="both"),
            make_question("D-1", audience="individual", is_active=False),
        ])
        catalog = QuestionCatalog(source)
        assert catalog.active_questions("individual").question_ids == ["A-1", "C-1"]
        assert catalog.active_questions("organization").question_ids == ["B-1", "C-1"]

    def test_no_questions_available(self, make_question):
        catalog = QuestionCatalog(StaticQuestionSource([make_question("Q1", audience="organization")]))
        with pytest.raises(NoQuestionsAvailable) as exc_info:
            catalog.active_questions("individual")
        assert exc_info.value.audience == "individual"

    def test_unknown_audience_has_no_questions(self, catalog):
        with pytest.raises(NoQuestionsAvailable):
            catalog.active_questions("robots")

    def test_duplicate_ids_rejected(self, make_question):
        catalog = QuestionCatalog(StaticQuestionSource([make_question("Q1"), make_question("Q1")]))
        with pytest.raises(InvalidQuestionDefinition):
            catalog.active_questions("individual")

    def test_snapshot_unaffected_by_catalog_edits(self, seed_source, catalog, make_question):
        before = catalog.active_questions("individual")
        seed_source.replace([make_question("NEW-1")])
        after = catalog.active_questions("individual")

        assert len(before) == 10
        assert after.question_ids == ["NEW-1"]


# ==============================================================================
# Snapshots
# ==============================================================================

class TestQuestionSnapshot:

    def test_get_unknown_question(self, catalog):
        snapshot = catalog.active_questions("individual")
        with pytest.raises(UnknownQuestion) as exc_info:
            snapshot.get("NOPE-999", attempt_number=3)
        assert exc_info.value.question_id == "NOPE-999"
        assert exc_info.value.attempt_number == 3

    def test_missing_preserves_snapshot_order(self, make_question):
        snapshot = QuestionSnapshot("individual", (make_question("A"), make_question("B"), make_question("C")))
        assert snapshot.missing({"B": "A"}) == ["A", "C"]

    def test_json_reload_is_equal(self, catalog):
        snapshot = catalog.active_questions("organization")
        assert QuestionSnapshot.from_json(snapshot.to_json()) == snapshot

    def test_categories(self, catalog):
        assert catalog.active_questions("individual").categories == [
            "Authentication",
            "Data Protection",
            "Device Security",
            "Network Security",
            "Password Management",
        ]


# ==============================================================================
# Sources
# ==============================================================================

class TestFileQuestionSource:

    def test_reads_wrapped_list_and_picks_up_edits(self, tmp_path, make_question):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps({"questions": [make_question("Q1").to_dict()]}), encoding="utf-8")
        catalog = QuestionCatalog(FileQuestionSource(path))
        assert catalog.active_questions("individual").question_ids == ["Q1"]

        path.write_text(json.dumps([make_question("Q2").to_dict(), make_question("Q1").to_dict()]),
                        encoding="utf-8")
        assert catalog.active_questions("individual").question_ids == ["Q1", "Q2"]

    def test_invalid_record_rejected(self, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps([{"id": "Q1", "category": "X", "weight": 0,
                                     "options": [{"label": "A", "weight": 100}]}]),
                        encoding="utf-8")
        with pytest.raises(InvalidQuestionDefinition):
            FileQuestionSource(path).load("individual")

    def test_missing_file_surfaces_as_storage_unavailable(self, tmp_path):
        with pytest.raises(StorageUnavailable, match="question catalog read"):
            FileQuestionSource(tmp_path / "absent.json").load("individual")

    def test_malformed_json_surfaces_as_storage_unavailable(self, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageUnavailable):
            FileQuestionSource(path).load("individual")

    @pytest.mark.parametrize("contents", [None, "{not json"])
    def test_unreadable_catalog_fails_start_attempt_as_err(self, tmp_path, store, contents):
        path = tmp_path / "questions.json"
        if contents is not None:
            path.write_text(contents, encoding="utf-8")
        service = AssessmentService(store, QuestionCatalog(FileQuestionSource(path)))
        assert isinstance(service.register_subject("alice"), Ok)

        result = service.start_attempt("alice")

        assert isinstance(result, Err)
        assert result.error.kind == "StorageUnavailable"
        assert store.open_attempt("alice") is None


class TestHttpQuestionSource:

    def _source(self, handler, **kwargs):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return HttpQuestionSource("https://questions.example.test/api/", client=client,
                                  initial_backoff=0, **kwargs)

    def test_fetches_questions_for_audience(self, make_question):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"questions": [make_question("Q1").to_dict()]})

        source = self._source(handler)
        questions = source.load("organization")

        assert [q.id for q in questions] == ["Q1"]
        assert seen["url"] == "https://questions.example.test/api/questions?audience=organization"

    def test_retries_throttled_requests(self, make_question):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503, headers={"Retry-After": "0"})
            return httpx.Response(200, json=[make_question("Q1").to_dict()])

        source = self._source(handler, max_retries=3)
        assert len(source.load("individual")) == 1
        assert source.get_stats() == {"total_requests": 3, "throttle_events": 2}

    def test_http_date_retry_after_falls_back_to_backoff(self, make_question):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
            return httpx.Response(200, json=[make_question("Q1").to_dict()])

        source = self._source(handler, max_retries=2)
        assert [q.id for q in source.load("individual")] == ["Q1"]
        assert source.get_stats() == {"total_requests": 2, "throttle_events": 1}

    def test_server_error_surfaces_as_storage_unavailable(self):
        source = self._source(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(StorageUnavailable):
            source.load("individual")

    def test_empty_response_yields_no_questions(self):
        source = self._source(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(NoQuestionsAvailable):
            QuestionCatalog(source).active_questions("individual")


class TestBuildSource:

    def test_kinds(self, tmp_path):
        assert isinstance(build_source(QuestionSourceConfig()), StaticQuestionSource)
        file_source = build_source(QuestionSourceConfig(kind="file", path=str(tmp_path / "q.json")))
        assert isinstance(file_source, FileQuestionSource)
        http_source = build_source(QuestionSourceConfig(kind="http", url="https://example.test"))
        assert isinstance(http_source, HttpQuestionSource)
        http_source.close()

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_source(QuestionSourceConfig(kind="ldap"))
