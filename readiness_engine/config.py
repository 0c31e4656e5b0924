"""
Configuration module for the Security Readiness Engine.
Defines attempt policy, scoring tiers, storage and question-source settings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# ─── Attempt Policy ─────────────────────────────────────────────────────────

MAX_ATTEMPTS = 10                 # Finalized attempts allowed per subject
RECOMMENDATION_LIMIT = 5          # Lowest-scoring categories surfaced

AUDIENCES = ("individual", "organization")
AUDIENCE_BOTH = "both"            # Question tag matching every audience


# ─── Scoring Tiers ──────────────────────────────────────────────────────────

# (exclusive upper bound, label) checked in order; fallback is the last label
PRIORITY_THRESHOLDS = [
    (50, "High"),
    (70, "Medium"),
]
PRIORITY_FALLBACK = "Low"

# (inclusive lower bound, label) checked in order
RANK_THRESHOLDS = [
    (90, "Gold"),
    (70, "Silver"),
]
RANK_FALLBACK = "Bronze"
RANK_UNRANKED = "Unranked"

# Organization roll-up
ORG_RISK_THRESHOLDS = [
    (60, "High"),
    (80, "Medium"),
]
ORG_RISK_FALLBACK = "Low"

MEMBER_STATUS_THRESHOLDS = [
    (85, "compliant"),
    (70, "needs-attention"),
]
MEMBER_STATUS_FALLBACK = "at-risk"
MEMBER_NOT_ASSESSED = "not-assessed"

WEAK_AREA_THRESHOLD = 70
WEAK_AREA_LIMIT = 3
LEADERBOARD_SIZE = 10
DEPARTMENT_UNASSIGNED = "Unassigned"    # Bucket for members without a department

# Externally supplied comparison figures, never computed by the engine
DEFAULT_BENCHMARKS = {
    "industry": 75.0,
    "peers": 68.0,
    "top_performers": 92.0,
}


# ─── Storage Settings ───────────────────────────────────────────────────────

DEFAULT_DATABASE_PATH = "./readiness.db"
STORAGE_BUSY_TIMEOUT_SECONDS = 5.0    # sqlite3 lock wait per statement
STORAGE_MAX_RETRIES = 3               # Retries on locked/busy database
STORAGE_INITIAL_BACKOFF_SECONDS = 0.05
STORAGE_MAX_BACKOFF_SECONDS = 1.0
STORAGE_BACKOFF_MULTIPLIER = 2.0


# ─── Question Service Settings ──────────────────────────────────────────────

QUESTION_SERVICE_TIMEOUT_SECONDS = 15.0
QUESTION_SERVICE_MAX_RETRIES = 3
QUESTION_SERVICE_INITIAL_BACKOFF_SECONDS = 1.0
QUESTION_SERVICE_MAX_BACKOFF_SECONDS = 30.0
QUESTION_SERVICE_BACKOFF_MULTIPLIER = 2.0


@dataclass
class StorageConfig:
    """SQLite persistence settings."""
    database_path: str = DEFAULT_DATABASE_PATH
    busy_timeout: float = STORAGE_BUSY_TIMEOUT_SECONDS
    max_retries: int = STORAGE_MAX_RETRIES
    initial_backoff: float = STORAGE_INITIAL_BACKOFF_SECONDS
    max_backoff: float = STORAGE_MAX_BACKOFF_SECONDS
    backoff_multiplier: float = STORAGE_BACKOFF_MULTIPLIER


@dataclass
class QuestionSourceConfig:
    """Where the active question catalog comes from."""
    kind: str = "seed"                 # "seed", "file" or "http"
    path: str = ""                     # JSON file for kind="file"
    url: str = ""                      # Base URL for kind="http"
    api_key: str = ""                  # Optional bearer token for kind="http"
    timeout: float = QUESTION_SERVICE_TIMEOUT_SECONDS
    max_retries: int = QUESTION_SERVICE_MAX_RETRIES


@dataclass
class ScoringPolicy:
    """Attempt cap, recommendation cap and benchmark inputs."""
    max_attempts: int = MAX_ATTEMPTS
    recommendation_limit: int = RECOMMENDATION_LIMIT
    benchmarks: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_BENCHMARKS)
    )


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class EngineConfig:
    """Top-level configuration for the engine."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    questions: QuestionSourceConfig = field(default_factory=QuestionSourceConfig)
    policy: ScoringPolicy = field(default_factory=ScoringPolicy)
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "EngineConfig":
        """Load configuration from a JSON file. Unknown keys are ignored."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = cls()
        for section in ("storage", "questions", "policy"):
            if section not in data:
                continue
            target = getattr(config, section)
            for k, v in data[section].items():
                if hasattr(target, k):
                    setattr(target, k, v)
        if "benchmarks" in data.get("policy", {}):
            merged = dict(DEFAULT_BENCHMARKS)
            merged.update(data["policy"]["benchmarks"])
            config.policy.benchmarks = merged
        config.verbose = data.get("verbose", False)
        return config


def tier_below(value: float, thresholds: list[tuple[float, str]], fallback: str) -> str:
    """First label whose bound is strictly above ``value``."""
    for bound, label in thresholds:
        if value < bound:
            return label
    return fallback


def tier_at_least(value: float, thresholds: list[tuple[float, str]], fallback: str) -> str:
    """First label whose bound ``value`` reaches."""
    for bound, label in thresholds:
        if value >= bound:
            return label
    return fallback


def resolve_database_path(config: EngineConfig, override: Optional[str] = None) -> Path:
    p = Path(override or config.storage.database_path).expanduser()
    if not p.is_absolute():
        p = Path.cwd() / p
    return p
