"""
CSV exporter — Produces flat CSV views of a subject report.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any


def export_report_csv(report: Any, output_dir: Path, precision: int = 2) -> list[Path]:
    """
    Write CSV files for the attempt trend, latest category scores and
    recommendations.

    Returns:
        List of created CSV file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    created = []
    sid = report.subject_id

    # --- Attempts CSV ---
    attempts_path = output_dir / f"attempts_{sid}.csv"
    ATTEMPT_FIELDS = ["attempt_number", "overall_percentage", "accuracy_change", "completed_at"]

    with open(attempts_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=ATTEMPT_FIELDS)
        writer.writeheader()
        for entry in report.attempts:
            writer.writerow({
                "attempt_number": entry.attempt_number,
                "overall_percentage": round(entry.overall_percentage, precision),
                "accuracy_change": round(entry.accuracy_change, precision) if entry.has_prior else "",
                "completed_at": entry.completed_at.isoformat(),
            })
    created.append(attempts_path)

    # --- Category Scores CSV ---
    categories_path = output_dir / f"category_scores_{sid}.csv"
    with open(categories_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.writer(fh)
        writer.writerow(["category", "percentage_score"])
        for category, pct in sorted(report.category_scores.items()):
            writer.writerow([category, round(pct, precision)])
    created.append(categories_path)

    # --- Recommendations CSV ---
    recs_path = output_dir / f"recommendations_{sid}.csv"
    REC_FIELDS = ["priority", "category", "percentage", "issue", "action"]

    with open(recs_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=REC_FIELDS)
        writer.writeheader()
        for rec in report.recommendations:
            writer.writerow({
                "priority": rec.priority,
                "category": rec.category,
                "percentage": round(rec.percentage, precision),
                "issue": rec.issue,
                "action": rec.action,
            })
    created.append(recs_path)

    return created
