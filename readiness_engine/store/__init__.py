"""Store package — persistence contract and SQLite implementation."""

from .base import AttemptStore
from .models import FINALIZED, IN_PROGRESS, Attempt, Subject
from .sqlite_store import SqliteAttemptStore

__all__ = [
    "AttemptStore",
    "SqliteAttemptStore",
    "Attempt",
    "Subject",
    "IN_PROGRESS",
    "FINALIZED",
]
