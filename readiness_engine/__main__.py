"""
Security Readiness Engine — command line front end

Usage:
    python -m readiness_engine subject add alice --name "Alice" --organization ACME --department IT
    python -m readiness_engine subject show alice
    python -m readiness_engine questions list --audience organization
    python -m readiness_engine start alice
    python -m readiness_engine answer alice 1 PWD-001 A
    python -m readiness_engine finalize alice 1
    python -m readiness_engine history alice
    python -m readiness_engine recommendations alice
    python -m readiness_engine report alice
    python -m readiness_engine org ACME
    python -m readiness_engine org ACME --status at-risk --department IT
    python -m readiness_engine export alice --formats json csv -o ./out

Global options:
    --config config.json    JSON configuration file
    --db ./readiness.db     SQLite database (overrides config)
    --verbose               DEBUG logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import AUDIENCES, EngineConfig, resolve_database_path
from .reporting import export_organization_json, export_report_csv, export_report_json
from .results import Err
from .service import AssessmentService


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _fail(result: Err) -> int:
    error = result.error
    print(f"  ❌ {error.kind}: {error}")
    return 1


def _rule(title: str):
    print("\n" + "=" * 70)
    print(f" {title}")
    print("=" * 70)


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------

def _cmd_subject(service: AssessmentService, args: argparse.Namespace) -> int:
    if args.subject_action == "add":
        result = service.register_subject(
            args.subject_id,
            display_name=args.name or "",
            audience=args.audience,
            organization=args.organization,
            department=args.department,
        )
        if isinstance(result, Err):
            return _fail(result)
        subject = result.value
        org = f", organization {subject.organization}" if subject.organization else ""
        dept = f", department {subject.department}" if subject.department else ""
        print(f"  ✅ Subject '{subject.subject_id}' saved ({subject.audience}{org}{dept}).")
        return 0

    result = service.get_subject(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    subject = result.value
    print(f"\n  Subject:      {subject.subject_id}")
    print(f"  Name:         {subject.display_name or '-'}")
    print(f"  Audience:     {subject.audience}")
    print(f"  Organization: {subject.organization or '-'}")
    print(f"  Department:   {subject.department or '-'}")
    open_result = service.get_open_attempt(subject.subject_id)
    if isinstance(open_result, Err):
        return _fail(open_result)
    attempt = open_result.value
    if attempt is not None:
        progress = service.get_progress(subject.subject_id, attempt.attempt_number)
        if isinstance(progress, Err):
            return _fail(progress)
        answered, total = progress.value
        print(f"  Open attempt: #{attempt.attempt_number} ({answered}/{total} answered)")
    remaining = service.remaining_attempts(subject.subject_id)
    if isinstance(remaining, Err):
        return _fail(remaining)
    print(f"  Remaining:    {remaining.value} attempts")
    return 0


def _cmd_questions(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.active_questions(args.audience)
    if isinstance(result, Err):
        return _fail(result)
    snapshot = result.value
    print(f"\n  {len(snapshot)} active questions for '{snapshot.audience}'\n")
    for q in snapshot:
        print(f"  {q.id:<10s} [{q.category}] weight {q.weight}")
        if q.text:
            print(f"      {q.text}")
        for opt in q.options:
            print(f"        {opt.label}) {opt.text}  ({opt.weight:g})")
    return 0


def _cmd_start(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.start_attempt(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    print(f"  ✅ Started attempt #{result.value} for '{args.subject_id}'.")
    return 0


def _cmd_answer(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.record_answer(args.subject_id, args.attempt, args.question_id, args.option)
    if isinstance(result, Err):
        return _fail(result)
    progress = service.get_progress(args.subject_id, args.attempt)
    if isinstance(progress, Err):
        return _fail(progress)
    answered, total = progress.value
    print(f"  ✅ {args.question_id} = {args.option}  ({answered}/{total} answered)")
    return 0


def _cmd_finalize(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.finalize(args.subject_id, args.attempt)
    if isinstance(result, Err):
        return _fail(result)
    attempt_result = result.value
    _rule(f"ATTEMPT #{attempt_result.attempt_number} — {attempt_result.subject_id}")
    print(f"\n  Overall Score:  {attempt_result.overall_percentage:.1f}%")
    print(f"  Points:         {attempt_result.total_scored:g}/{attempt_result.total_weighted:g}\n")
    for cs in attempt_result.category_scores:
        print(f"    {cs.category:30s} {cs.percentage_score:5.1f}%  "
              f"({cs.questions_answered} questions)")
    print()
    return 0


def _cmd_history(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.get_trend(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    entries = result.value
    if not entries:
        print(f"  No finalized attempts for '{args.subject_id}'.")
        return 0
    print(f"\n  {'#':>3s}  {'Score':>7s}  {'Change':>8s}  Completed")
    print(f"  {'─'*3}  {'─'*7}  {'─'*8}  {'─'*25}")
    for e in entries:
        change = f"{e.accuracy_change:+.1f}" if e.has_prior else "-"
        print(f"  {e.attempt_number:>3d}  {e.overall_percentage:6.1f}%  {change:>8s}  "
              f"{e.completed_at.isoformat()}")
    print()
    return 0


def _cmd_recommendations(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.get_recommendations(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    recs = result.value
    if not recs:
        print(f"  No finalized attempts for '{args.subject_id}'.")
        return 0
    for rec in recs:
        print(f"  [{rec.priority:<6s}] {rec.category:30s} {rec.percentage:5.1f}%")
        print(f"           {rec.action}")
    return 0


def _cmd_report(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.get_report(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    report = result.value
    _rule(f"READINESS REPORT — {report.display_name or report.subject_id}")
    print(f"\n  Overall Score:   {report.overall_score:.1f}%  ({report.rank})")
    print(f"  Previous Score:  {report.previous_score:.1f}%")
    print(f"  Assessments:     {report.total_assessments} "
          f"({report.remaining_attempts} remaining)")
    for name, value in report.benchmarks.items():
        print(f"  Benchmark {name:<16s} {value:.1f}%")
    if report.category_scores:
        print()
        for category, pct in sorted(report.category_scores.items()):
            print(f"    {category:30s} {pct:5.1f}%")
    if report.recommendations:
        print("\n  Recommendations:")
        for rec in report.recommendations:
            print(f"    [{rec.priority}] {rec.issue}")
    print()
    return 0


def _cmd_org(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.get_organization_summary(args.organization)
    if isinstance(result, Err):
        return _fail(result)
    summary = result.value
    _rule(f"ORGANIZATION — {summary.organization}")
    print(f"\n  Overall Score:  {summary.overall_score:.1f}%")
    print(f"  Risk Level:     {summary.risk_level}")
    print(f"  Members:        {summary.assessed_members}/{summary.total_members} assessed\n")
    for cat in summary.categories:
        print(f"    {cat.category:30s} {cat.average_score:5.1f}%")
    if summary.departments:
        print("\n  Departments:")
        for dept in summary.departments:
            print(f"    {dept.department:30s} {dept.average_score:5.1f}%  "
                  f"({dept.assessed}/{dept.members} assessed)")
    if summary.leaderboard:
        print("\n  Leaderboard:")
        for m in summary.leaderboard:
            print(f"    {m.rank:>2d}. {m.display_name or m.subject_id:<24s} {m.score:5.1f}%  {m.status}")
    if args.status or args.department:
        members = summary.filter_members(status=args.status, department=args.department)
        print(f"\n  Members ({len(members)} matching):")
        for m in members:
            score = f"{m.score:5.1f}%" if m.score is not None else "    -"
            print(f"    {m.display_name or m.subject_id:<24s} {m.department:<16s} {score}  {m.status}")
    print()
    return 0


def _cmd_export(service: AssessmentService, args: argparse.Namespace) -> int:
    result = service.get_report(args.subject_id)
    if isinstance(result, Err):
        return _fail(result)
    report = result.value
    created = []
    if "json" in args.formats:
        path = export_report_json(report, args.output_dir)
        created.append(path)
        print(f"  📄 JSON:  {path}")
    if "csv" in args.formats:
        paths = export_report_csv(report, args.output_dir)
        created.extend(paths)
        for p in paths:
            print(f"  📊 CSV:   {p}")
    if args.organization:
        org_result = service.get_organization_summary(args.organization)
        if isinstance(org_result, Err):
            return _fail(org_result)
        path = export_organization_json(org_result.value, args.output_dir)
        created.append(path)
        print(f"  🏢 Org:   {path}")
    print(f"\n  Files: {len(created)} written to {args.output_dir.resolve()}")
    return 0


COMMANDS = {
    "subject": _cmd_subject,
    "questions": _cmd_questions,
    "start": _cmd_start,
    "answer": _cmd_answer,
    "finalize": _cmd_finalize,
    "history": _cmd_history,
    "recommendations": _cmd_recommendations,
    "report": _cmd_report,
    "org": _cmd_org,
    "export": _cmd_export,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="readiness_engine",
        description="Security Readiness Assessment Engine",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLite database path (overrides config; default: ./readiness.db)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # subject add|show
    subj_parser = subparsers.add_parser("subject", help="Manage assessed subjects")
    subj_sub = subj_parser.add_subparsers(dest="subject_action", help="Subject actions")
    add_p = subj_sub.add_parser("add", help="Add or update a subject")
    add_p.add_argument("subject_id", help="Stable subject identifier")
    add_p.add_argument("--name", help="Display name for reports")
    add_p.add_argument("--audience", choices=list(AUDIENCES), default="individual",
                       help="Question audience (default: individual)")
    add_p.add_argument("--organization", help="Organization code for roll-ups")
    add_p.add_argument("--department", help="Department within the organization")
    show_p = subj_sub.add_parser("show", help="Show a subject and its open attempt")
    show_p.add_argument("subject_id")

    # questions list
    q_parser = subparsers.add_parser("questions", help="Inspect the active catalog")
    q_sub = q_parser.add_subparsers(dest="questions_action", help="Catalog actions")
    list_p = q_sub.add_parser("list", help="List active questions for an audience")
    list_p.add_argument("--audience", choices=list(AUDIENCES), default="individual")

    start_p = subparsers.add_parser("start", help="Start the next attempt")
    start_p.add_argument("subject_id")

    ans_p = subparsers.add_parser("answer", help="Record or replace an answer")
    ans_p.add_argument("subject_id")
    ans_p.add_argument("attempt", type=int, help="Attempt number")
    ans_p.add_argument("question_id")
    ans_p.add_argument("option", help="Option label, e.g. A")

    fin_p = subparsers.add_parser("finalize", help="Score and close an attempt")
    fin_p.add_argument("subject_id")
    fin_p.add_argument("attempt", type=int, help="Attempt number")

    for name, help_text in (
        ("history", "Attempt trend with accuracy change"),
        ("recommendations", "Lowest-scoring categories of the latest attempt"),
        ("report", "Full subject report"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("subject_id")

    org_p = subparsers.add_parser("org", help="Organization roll-up")
    org_p.add_argument("organization", help="Organization code")
    org_p.add_argument("--status", help="List members with this status ('all' for every member)")
    org_p.add_argument("--department", help="List members of this department ('all' for every member)")

    exp_p = subparsers.add_parser("export", help="Export a subject report")
    exp_p.add_argument("subject_id")
    exp_p.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=Path("./readiness_output"),
        help="Output directory (default: ./readiness_output)",
    )
    exp_p.add_argument(
        "--formats",
        nargs="+",
        choices=["json", "csv"],
        default=["json", "csv"],
        help="Output formats to generate",
    )
    exp_p.add_argument("--organization", help="Also export this organization's roll-up")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Build engine configuration from the config file and CLI overrides."""
    if args.config and args.config.exists():
        config = EngineConfig.from_file(args.config)
    else:
        config = EngineConfig()
    if args.verbose:
        config.verbose = True
    config.storage.database_path = str(resolve_database_path(config, args.db))
    return config


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = build_config(args)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    if not args.command:
        print("Usage: python -m readiness_engine {" + "|".join(COMMANDS) + "} ...")
        return 0
    if args.command == "subject" and not args.subject_action:
        print("Usage: python -m readiness_engine subject {add|show}")
        return 0
    if args.command == "questions" and not args.questions_action:
        print("Usage: python -m readiness_engine questions list")
        return 0

    service = AssessmentService.from_config(config)
    return COMMANDS[args.command](service, args)


if __name__ == "__main__":
    sys.exit(main())
