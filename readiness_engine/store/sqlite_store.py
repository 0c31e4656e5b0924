"""
SQLite-backed attempt store.
Keeps subjects, attempts with their question snapshots, answers and the
append-only result history in one database file.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar

from ..catalog.models import QuestionSnapshot
from ..config import (
    STORAGE_BACKOFF_MULTIPLIER,
    STORAGE_BUSY_TIMEOUT_SECONDS,
    STORAGE_INITIAL_BACKOFF_SECONDS,
    STORAGE_MAX_BACKOFF_SECONDS,
    STORAGE_MAX_RETRIES,
    StorageConfig,
)
from ..errors import (
    AttemptInProgress,
    AttemptLimitExceeded,
    AttemptNotFound,
    StorageUnavailable,
    SubjectNotFound,
)
from ..scoring.models import AttemptResult
from .base import AttemptStore, Scorer
from .models import FINALIZED, IN_PROGRESS, Attempt, Subject

logger = logging.getLogger("readiness_engine.store")

T = TypeVar("T")

SUBJECT_COLUMNS = "subject_id, display_name, audience, organization, department, created_at"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqliteAttemptStore(AttemptStore):
    """
    Persistent attempt store backed by SQLite.
    Features:
      - Connection-per-call, safe to share across threads
      - Attempt allocation and finalization as single conditional writes
      - Bounded retry with backoff on locked/busy database
      - Snapshots and results stored as JSON
    """

    def __init__(
        self,
        db_path: str | Path,
        busy_timeout: float = STORAGE_BUSY_TIMEOUT_SECONDS,
        max_retries: int = STORAGE_MAX_RETRIES,
        initial_backoff: float = STORAGE_INITIAL_BACKOFF_SECONDS,
        max_backoff: float = STORAGE_MAX_BACKOFF_SECONDS,
        backoff_multiplier: float = STORAGE_BACKOFF_MULTIPLIER,
    ):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.busy_timeout = busy_timeout
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.backoff_multiplier = backoff_multiplier
        self._retry("schema init", self._init_db)

    @classmethod
    def from_config(cls, config: StorageConfig, db_path: Optional[str | Path] = None) -> "SqliteAttemptStore":
        return cls(
            db_path or config.database_path,
            busy_timeout=config.busy_timeout,
            max_retries=config.max_retries,
            initial_backoff=config.initial_backoff,
            max_backoff=config.max_backoff,
            backoff_multiplier=config.backoff_multiplier,
        )

    # ------------------------------------------------------------------
    # Connection plumbing
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly below
        conn = sqlite3.connect(str(self.db_path), timeout=self.busy_timeout, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _retry(self, operation: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` retrying locked/busy failures, then raise StorageUnavailable."""
        backoff = self.initial_backoff
        for attempt in range(self.max_retries + 1):
            try:
                return fn()
            except sqlite3.OperationalError as e:
                if attempt == self.max_retries:
                    logger.error(f"{operation} failed after {attempt + 1} tries: {e}")
                    raise StorageUnavailable(operation, e) from e
                logger.warning(
                    f"{operation} hit {e}; retry {attempt + 1}/{self.max_retries} in {backoff:.2f}s"
                )
                time.sleep(backoff)
                backoff = min(backoff * self.backoff_multiplier, self.max_backoff)
        raise StorageUnavailable(operation)

    def _init_db(self):
        """Initialize the database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subjects (
                    subject_id TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL DEFAULT '',
                    audience TEXT NOT NULL,
                    organization TEXT,
                    department TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._add_column_if_missing(conn, "subjects", "department", "TEXT")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS attempts (
                    subject_id TEXT NOT NULL REFERENCES subjects(subject_id),
                    attempt_number INTEGER NOT NULL,
                    state TEXT NOT NULL,
                    snapshot TEXT NOT NULL,
                    started_at TEXT NOT NULL,
                    finalized_at TEXT,
                    PRIMARY KEY (subject_id, attempt_number)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS answers (
                    subject_id TEXT NOT NULL,
                    attempt_number INTEGER NOT NULL,
                    question_id TEXT NOT NULL,
                    option_label TEXT NOT NULL,
                    answered_at TEXT NOT NULL,
                    PRIMARY KEY (subject_id, attempt_number, question_id),
                    FOREIGN KEY (subject_id, attempt_number)
                        REFERENCES attempts(subject_id, attempt_number)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS attempt_results (
                    subject_id TEXT NOT NULL,
                    attempt_number INTEGER NOT NULL,
                    overall_percentage REAL NOT NULL,
                    completed_at TEXT NOT NULL,
                    result TEXT NOT NULL,
                    PRIMARY KEY (subject_id, attempt_number),
                    FOREIGN KEY (subject_id, attempt_number)
                        REFERENCES attempts(subject_id, attempt_number)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_subjects_organization
                ON subjects(organization)
            """)

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def upsert_subject(self, subject: Subject) -> Subject:
        def _op():
            now = _now().isoformat()
            with self._transaction(immediate=True) as conn:
                conn.execute(
                    f"""
                    INSERT INTO subjects ({SUBJECT_COLUMNS}, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(subject_id) DO UPDATE SET
                        display_name = excluded.display_name,
                        audience = excluded.audience,
                        organization = excluded.organization,
                        department = excluded.department,
                        updated_at = excluded.updated_at
                    """,
                    (subject.subject_id, subject.display_name, subject.audience,
                     subject.organization, subject.department, now, now),
                )
                return self._read_subject(conn, subject.subject_id)

        saved = self._retry("upsert subject", _op)
        logger.debug(f"Saved subject {saved.subject_id} ({saved.audience})")
        return saved

    def get_subject(self, subject_id: str) -> Subject:
        def _op():
            with self._transaction() as conn:
                return self._read_subject(conn, subject_id)
        return self._retry("get subject", _op)

    def list_subjects(self, organization: Optional[str] = None) -> list[Subject]:
        def _op():
            with self._transaction() as conn:
                if organization is None:
                    rows = conn.execute(
                        f"SELECT {SUBJECT_COLUMNS} FROM subjects ORDER BY subject_id"
                    ).fetchall()
                else:
                    rows = conn.execute(
                        f"SELECT {SUBJECT_COLUMNS} FROM subjects WHERE organization = ? ORDER BY subject_id",
                        (organization,),
                    ).fetchall()
            return [self._subject_from_row(r) for r in rows]
        return self._retry("list subjects", _op)

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def create_attempt(
        self,
        subject_id: str,
        snapshot: QuestionSnapshot,
        max_attempts: int,
    ) -> Attempt:
        def _op():
            started_at = _now()
            with self._transaction(immediate=True) as conn:
                self._read_subject(conn, subject_id)
                # Next number = attempts so far + 1, only while none is open
                # and the cap is not reached.
                cur = conn.execute(
                    """
                    INSERT INTO attempts (subject_id, attempt_number, state, snapshot, started_at)
                    SELECT ?, n + 1, ?, ?, ?
                    FROM (
                        SELECT COUNT(*) AS n,
                               COALESCE(SUM(state = ?), 0) AS open_count
                        FROM attempts WHERE subject_id = ?
                    )
                    WHERE n < ? AND open_count = 0
                    """,
                    (subject_id, IN_PROGRESS, snapshot.to_json(), started_at.isoformat(),
                     IN_PROGRESS, subject_id, max_attempts),
                )
                if cur.rowcount != 1:
                    open_row = conn.execute(
                        "SELECT attempt_number FROM attempts WHERE subject_id = ? AND state = ?",
                        (subject_id, IN_PROGRESS),
                    ).fetchone()
                    if open_row:
                        raise AttemptInProgress(subject_id, open_row[0])
                    raise AttemptLimitExceeded(subject_id, max_attempts)
                row = conn.execute(
                    "SELECT MAX(attempt_number) FROM attempts WHERE subject_id = ?",
                    (subject_id,),
                ).fetchone()
            return Attempt(
                subject_id=subject_id,
                attempt_number=row[0],
                state=IN_PROGRESS,
                snapshot=snapshot,
                started_at=started_at,
            )

        return self._retry("create attempt", _op)

    def get_attempt(self, subject_id: str, attempt_number: int) -> Attempt:
        def _op():
            with self._transaction() as conn:
                return self._read_attempt(conn, subject_id, attempt_number)
        return self._retry("get attempt", _op)

    def open_attempt(self, subject_id: str) -> Optional[Attempt]:
        def _op():
            with self._transaction() as conn:
                self._read_subject(conn, subject_id)
                row = conn.execute(
                    "SELECT attempt_number FROM attempts WHERE subject_id = ? AND state = ?",
                    (subject_id, IN_PROGRESS),
                ).fetchone()
                if row is None:
                    return None
                return self._read_attempt(conn, subject_id, row[0])
        return self._retry("open attempt", _op)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def record_answer(
        self,
        subject_id: str,
        attempt_number: int,
        question_id: str,
        option_label: str,
    ) -> bool:
        def _op():
            with self._transaction(immediate=True) as conn:
                cur = conn.execute(
                    """
                    INSERT INTO answers (subject_id, attempt_number, question_id, option_label, answered_at)
                    SELECT ?, ?, ?, ?, ?
                    WHERE EXISTS (
                        SELECT 1 FROM attempts
                        WHERE subject_id = ? AND attempt_number = ? AND state = ?
                    )
                    ON CONFLICT(subject_id, attempt_number, question_id) DO UPDATE SET
                        option_label = excluded.option_label,
                        answered_at = excluded.answered_at
                    """,
                    (subject_id, attempt_number, question_id, option_label, _now().isoformat(),
                     subject_id, attempt_number, IN_PROGRESS),
                )
                return cur.rowcount == 1

        applied = self._retry("record answer", _op)
        if applied:
            logger.debug(f"Recorded {subject_id}#{attempt_number} {question_id}={option_label}")
        return applied

    def get_answers(self, subject_id: str, attempt_number: int) -> dict[str, str]:
        def _op():
            with self._transaction() as conn:
                return self._read_answers(conn, subject_id, attempt_number)
        return self._retry("get answers", _op)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def finalize_attempt(
        self,
        subject_id: str,
        attempt_number: int,
        scorer: Scorer,
    ) -> tuple[AttemptResult, bool]:
        def _op():
            with self._transaction(immediate=True) as conn:
                attempt = self._read_attempt(conn, subject_id, attempt_number)
                if attempt.is_finalized:
                    stored = self._read_result(conn, subject_id, attempt_number)
                    if stored is None:
                        raise StorageUnavailable(
                            f"finalize {subject_id}#{attempt_number}: result row missing"
                        )
                    return stored, False

                answers = self._read_answers(conn, subject_id, attempt_number)
                result = scorer(attempt.snapshot, answers)

                conn.execute(
                    """
                    INSERT INTO attempt_results (subject_id, attempt_number, overall_percentage, completed_at, result)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (subject_id, attempt_number, result.overall_percentage,
                     result.completed_at.isoformat(), result.to_json()),
                )
                conn.execute(
                    """
                    UPDATE attempts SET state = ?, finalized_at = ?
                    WHERE subject_id = ? AND attempt_number = ? AND state = ?
                    """,
                    (FINALIZED, result.completed_at.isoformat(),
                     subject_id, attempt_number, IN_PROGRESS),
                )
            return result, True

        return self._retry("finalize attempt", _op)

    def get_result(self, subject_id: str, attempt_number: int) -> Optional[AttemptResult]:
        def _op():
            with self._transaction() as conn:
                return self._read_result(conn, subject_id, attempt_number)
        return self._retry("get result", _op)

    def list_results(self, subject_id: str) -> list[AttemptResult]:
        def _op():
            with self._transaction() as conn:
                self._read_subject(conn, subject_id)
                rows = conn.execute(
                    "SELECT result FROM attempt_results WHERE subject_id = ? ORDER BY attempt_number",
                    (subject_id,),
                ).fetchall()
            return [AttemptResult.from_json(r[0]) for r in rows]
        return self._retry("list results", _op)

    def count_finalized(self, subject_id: str) -> int:
        def _op():
            with self._transaction() as conn:
                self._read_subject(conn, subject_id)
                return conn.execute(
                    "SELECT COUNT(*) FROM attempts WHERE subject_id = ? AND state = ?",
                    (subject_id, FINALIZED),
                ).fetchone()[0]
        return self._retry("count finalized", _op)

    # ------------------------------------------------------------------
    # Row readers (run inside an open transaction)
    # ------------------------------------------------------------------

    @staticmethod
    def _add_column_if_missing(conn: sqlite3.Connection, table: str, column: str, definition: str):
        """Bring databases created before ``column`` existed up to date."""
        existing = {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}
        if column not in existing:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
            logger.info(f"Added column {table}.{column}")

    @staticmethod
    def _subject_from_row(row: tuple[Any, ...]) -> Subject:
        return Subject(
            subject_id=row[0],
            display_name=row[1],
            audience=row[2],
            organization=row[3],
            department=row[4],
            created_at=_parse_ts(row[5]),
        )

    def _read_subject(self, conn: sqlite3.Connection, subject_id: str) -> Subject:
        row = conn.execute(
            f"SELECT {SUBJECT_COLUMNS} FROM subjects WHERE subject_id = ?",
            (subject_id,),
        ).fetchone()
        if row is None:
            raise SubjectNotFound(subject_id)
        return self._subject_from_row(row)

    def _read_attempt(self, conn: sqlite3.Connection, subject_id: str, attempt_number: int) -> Attempt:
        row = conn.execute(
            """
            SELECT state, snapshot, started_at, finalized_at FROM attempts
            WHERE subject_id = ? AND attempt_number = ?
            """,
            (subject_id, attempt_number),
        ).fetchone()
        if row is None:
            self._read_subject(conn, subject_id)
            raise AttemptNotFound(subject_id, attempt_number)
        state, snapshot_json, started_at, finalized_at = row
        return Attempt(
            subject_id=subject_id,
            attempt_number=attempt_number,
            state=state,
            snapshot=QuestionSnapshot.from_json(snapshot_json),
            started_at=_parse_ts(started_at),
            finalized_at=_parse_ts(finalized_at),
        )

    @staticmethod
    def _read_answers(conn: sqlite3.Connection, subject_id: str, attempt_number: int) -> dict[str, str]:
        rows = conn.execute(
            """
            SELECT question_id, option_label FROM answers
            WHERE subject_id = ? AND attempt_number = ?
            ORDER BY question_id
            """,
            (subject_id, attempt_number),
        ).fetchall()
        return {qid: label for qid, label in rows}

    @staticmethod
    def _read_result(conn: sqlite3.Connection, subject_id: str, attempt_number: int) -> Optional[AttemptResult]:
        row = conn.execute(
            "SELECT result FROM attempt_results WHERE subject_id = ? AND attempt_number = ?",
            (subject_id, attempt_number),
        ).fetchone()
        return AttemptResult.from_json(row[0]) if row else None
