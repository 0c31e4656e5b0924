"""
JSON exporter — writes a subject report or organization summary to disk.
Percentages are rounded here and nowhere earlier.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .. import __version__

PERCENT_KEYS = {
    "overall_score", "previous_score", "overall_percentage", "accuracy_change",
    "percentage", "average_score", "score",
}


def round_percentages(payload: Any, precision: int = 2) -> Any:
    """Round every percentage-valued field in a nested to_dict() payload."""
    if isinstance(payload, dict):
        out = {}
        for key, value in payload.items():
            if key in PERCENT_KEYS and isinstance(value, float):
                out[key] = round(value, precision)
            elif key == "category_scores" and isinstance(value, dict):
                out[key] = {k: round(v, precision) for k, v in value.items()}
            else:
                out[key] = round_percentages(value, precision)
        return out
    if isinstance(payload, list):
        return [round_percentages(v, precision) for v in payload]
    return payload


def _write(payload: dict, filepath: Path) -> Path:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, default=str, ensure_ascii=False)
    return filepath


def _metadata() -> dict:
    return {
        "engine": "Security Readiness Engine",
        "version": __version__,
        "generated_utc": datetime.now(timezone.utc).isoformat(),
    }


def export_report_json(report: Any, output_dir: Path, precision: int = 2) -> Path:
    """
    Write a SubjectReport to ``readiness_report_<subject>.json``.

    Returns:
        Path to the created JSON file.
    """
    payload = {
        "metadata": _metadata(),
        "report": round_percentages(report.to_dict(), precision),
    }
    return _write(payload, output_dir / f"readiness_report_{report.subject_id}.json")


def export_organization_json(summary: Any, output_dir: Path, precision: int = 2) -> Path:
    """Write an OrganizationSummary to ``organization_<code>.json``."""
    payload = {
        "metadata": _metadata(),
        "organization": round_percentages(summary.to_dict(), precision),
    }
    return _write(payload, output_dir / f"organization_{summary.organization}.json")
