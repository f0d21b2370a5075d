"""CLI entrypoint for director-ops.

Each command loads the document it needs, applies one operation, saves the
document and prints a short summary. Core operations never print.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from director_ops import __version__
from director_ops.core.config import DirectorOpsSettings
from director_ops.core.context import DirectorOpsContext
from director_ops.core.errors import DirectorOpsError, OrderViolation
from director_ops.features.models import (
    FEATURE_STATUSES,
    GATE_COUNT,
    PRIORITIES,
    UPDATABLE_STATUSES,
)
from director_ops.features.pipeline import FeatureFilter, FeatureUpdate
from director_ops.hive.coordination import ConsensusOptions, DirectorSync
from director_ops.logging import configure_logging
from director_ops.progress.log import LOG_ENTRY_TYPES

logger = logging.getLogger(__name__)


def _parse_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",")]
    items = [p for p in parts if p]
    return items or None


def _add_list_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--list",
        dest="list_name",
        default=None,
        help="Feature list name (defaults to DIRECTOR_OPS_FEATURE_LIST or 'active')",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="director-ops",
        description="Director-based feature tracking and hive coordination",
    )
    parser.add_argument("--version", action="version", version=f"director-ops {__version__}")

    groups = parser.add_subparsers(dest="group", required=True)

    # feature
    feature = groups.add_parser("feature", help="Feature lifecycle with the 7-gate pipeline")
    feature_cmds = feature.add_subparsers(dest="command", required=True)

    add = feature_cmds.add_parser("add", help="Add a feature")
    add.add_argument("name", help="Feature name")
    add.add_argument("--description", default="", help="Feature description")
    add.add_argument("--director", default=None, help="Assigned director")
    add.add_argument("--priority", default="normal", choices=PRIORITIES)
    add.add_argument("--dependencies", default=None, help="Comma-separated feature ids")
    _add_list_option(add)

    update = feature_cmds.add_parser("update", help="Update a feature")
    update.add_argument("feature_id", help="Feature id or unique prefix")
    update.add_argument(
        "--status",
        default=None,
        choices=UPDATABLE_STATUSES,
        help="New status (use `feature complete` to complete)",
    )
    update.add_argument("--description", default=None)
    update.add_argument("--director", default=None)
    update.add_argument("--priority", default=None, choices=PRIORITIES)
    update.add_argument("--notes", default=None, help="Append a note to the progress log")
    _add_list_option(update)

    list_cmd = feature_cmds.add_parser("list", help="List features by priority")
    list_cmd.add_argument("--status", default=None, choices=FEATURE_STATUSES)
    list_cmd.add_argument("--director", default=None)
    _add_list_option(list_cmd)

    show = feature_cmds.add_parser("show", help="Show feature details")
    show.add_argument("feature_id")
    show.add_argument("-v", "--verbose", action="store_true", help="Include progress history")
    _add_list_option(show)

    validate = feature_cmds.add_parser(
        "validate", help="Record a gate result, or show gate status when no gate is given"
    )
    validate.add_argument("feature_id")
    validate.add_argument("--gate", default=None, help="Gate ordinal (1-7) or name")
    validate.add_argument("--result", default="passed", help="passed | failed | skipped")
    validate.add_argument("--validator", default="cli", help="Identity of the validator")
    validate.add_argument("--notes", default="")
    _add_list_option(validate)

    complete = feature_cmds.add_parser("complete", help="Complete a feature")
    complete.add_argument("feature_id")
    complete.add_argument(
        "--force",
        action="store_true",
        help="Complete without all gates passed (recorded as a constitutional violation)",
    )
    complete.add_argument("--notes", default=None)
    _add_list_option(complete)

    # hive
    hive = groups.add_parser("hive", help="Cross-director coordination")
    hive_cmds = hive.add_subparsers(dest="command", required=True)

    init = hive_cmds.add_parser("init", help="Reset all directors to idle")
    init.add_argument("--clear-all", action="store_true", help="Also clear logs and requests")

    status = hive_cmds.add_parser("status", help="Show director status")
    status.add_argument("-v", "--verbose", action="store_true", help="Show blockers")

    sync = hive_cmds.add_parser("sync", help="Sync one director, or all when none is given")
    sync.add_argument("director", nargs="?", default=None)
    sync.add_argument("--status", default="active", choices=("active", "idle", "blocked", "waiting"))
    sync.add_argument("--task", default=None)
    sync.add_argument("--blocker", default=None)
    sync.add_argument("--clear-blockers", action="store_true")

    broadcast = hive_cmds.add_parser("broadcast", help="Broadcast a message")
    broadcast.add_argument("message")
    broadcast.add_argument("--from", dest="sender", default="system")
    broadcast.add_argument("--priority", default="normal")
    broadcast.add_argument("--targets", default=None, help="Comma-separated directors")

    consensus = hive_cmds.add_parser("consensus", help="Open a consensus request")
    consensus.add_argument("topic")
    consensus.add_argument("--description", default="")
    consensus.add_argument("--options", default=None, help="Comma-separated choices")
    consensus.add_argument("--threshold", type=int, default=None, help="Required votes")
    consensus.add_argument("--deadline", default=None, help="Advisory deadline")

    vote = hive_cmds.add_parser("vote", help="Vote on a consensus request")
    vote.add_argument("request_id")
    vote.add_argument("choice")
    vote.add_argument("--director", dest="voter", default="anonymous")
    vote.add_argument("--notes", default="")

    hive_cmds.add_parser("metrics", help="Show hive metrics")

    handoff = hive_cmds.add_parser("handoff", help="Create a director handoff")
    handoff.add_argument("from_director")
    handoff.add_argument("to_director")
    handoff.add_argument("context")
    handoff.add_argument("--priority", default="normal", choices=("low", "normal", "high"))

    ack = hive_cmds.add_parser("ack", help="Acknowledge a handoff")
    ack.add_argument("handoff_id")

    # session
    session = groups.add_parser("session", help="Session checkpoints and resume")
    session_cmds = session.add_subparsers(dest="command", required=True)

    start = session_cmds.add_parser("start", help="Start a session")
    start.add_argument("--type", dest="session_type", default="general")
    start.add_argument("--director", default=None)
    start.add_argument("--feature", default=None)

    session_list = session_cmds.add_parser("list", help="List sessions")
    session_list.add_argument("--status", default=None)
    session_list.add_argument("--director", default=None)

    resume = session_cmds.add_parser("resume", help="Resume a session")
    resume.add_argument("session_id")
    resume.add_argument("--checkpoint", default=None, help="Checkpoint id to restore")

    checkpoint = session_cmds.add_parser("checkpoint", help="Checkpoint a session")
    checkpoint.add_argument("session_id")
    checkpoint.add_argument("--name", default=None)
    checkpoint.add_argument("--notes", default="")

    done = session_cmds.add_parser("complete", help="Complete a session")
    done.add_argument("session_id")

    # progress
    progress = groups.add_parser("progress", help="Daily progress log")
    progress_cmds = progress.add_subparsers(dest="command", required=True)

    log_cmd = progress_cmds.add_parser("log", help="Append an entry to today's log")
    log_cmd.add_argument("message")
    log_cmd.add_argument("--type", dest="entry_type", default="progress", choices=LOG_ENTRY_TYPES)
    log_cmd.add_argument("--feature", default=None)
    log_cmd.add_argument("--director", default=None)
    log_cmd.add_argument("--session", default=None)
    log_cmd.add_argument("--tags", default=None, help="Comma-separated tags")

    view = progress_cmds.add_parser("view", help="Show one day's log")
    view.add_argument("--date", default=None, help="YYYY-MM-DD (defaults to today)")

    search = progress_cmds.add_parser("search", help="Search all logs, newest first")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=20)

    summary = progress_cmds.add_parser("summary", help="Summarize recent logs")
    summary.add_argument("--days", type=int, default=7)

    # validate
    checks = groups.add_parser("validate", help="Memory-bank structure checks")
    check_cmds = checks.add_subparsers(dest="command", required=True)
    check_cmds.add_parser("daily", help="Check constitution, policy, directors and teams")
    check_cmds.add_parser("compliance", help="Report which expected files exist")

    return parser


def _run_feature(ctx: DirectorOpsContext, args: argparse.Namespace) -> int:
    if args.command == "add":
        with ctx.features(args.list_name) as pipeline:
            feature = pipeline.add_feature(
                args.name,
                description=args.description,
                director=args.director,
                priority=args.priority,
                dependencies=_parse_csv(args.dependencies),
            )
        print(f"Feature added: {feature.id}")
        print(f"Name: {feature.name}  Priority: {feature.priority}  Director: {feature.director or 'unassigned'}")
        return 0

    if args.command == "update":
        with ctx.features(args.list_name) as pipeline:
            feature = pipeline.update_feature(
                args.feature_id,
                FeatureUpdate(
                    status=args.status,
                    description=args.description,
                    director=args.director,
                    priority=args.priority,
                    notes=args.notes,
                ),
            )
        print(f"Feature updated: {feature.name} [{feature.status}]")
        return 0

    if args.command == "list":
        pipeline = ctx.load_features(args.list_name)
        features = pipeline.list_features(FeatureFilter(status=args.status, director=args.director))
        if not features:
            print("No features found")
            return 0
        for f in features:
            print(f"{f.id[:8]} [{f.status}] ({f.priority}) [{f.passed_gates}/{GATE_COUNT}] {f.name}")
        counts = " | ".join(f"{s}: {c}" for s, c in pipeline.summary().items())
        print(f"Total: {len(pipeline.feature_list.features)}  {counts}")
        return 0

    if args.command == "show":
        feature = ctx.load_features(args.list_name).show_feature(args.feature_id)
        print(f"Feature: {feature.name}")
        print(f"ID: {feature.id}")
        print(f"Status: {feature.status}  Priority: {feature.priority}")
        print(f"Director: {feature.director or 'unassigned'}")
        for dep in feature.dependencies:
            print(f"  depends on {dep}")
        for gate in feature.gates:
            mark = "x" if gate.status == "passed" else " "
            print(f"  [{mark}] {gate.id} {gate.name} ({gate.status})")
        if args.verbose:
            for entry in feature.progress[-10:]:
                print(f"  [{entry.timestamp}] {entry.type}: {entry.content or entry.gate or ''}")
        return 0

    if args.command == "validate":
        if args.gate is None:
            report = ctx.load_features(args.list_name).gate_report(args.feature_id)
            for gate in report.gates:
                print(f"Gate {gate.id}: {gate.name} [{gate.status}] - {gate.description}")
            print(f"Progress: {report.passed}/{report.total} gates passed")
            if report.next_gate:
                print(f"Next gate: {report.next_gate}")
            return 0
        try:
            with ctx.features(args.list_name) as pipeline:
                gate = pipeline.validate_gate(
                    args.feature_id,
                    args.gate,
                    result=args.result,
                    validator_id=args.validator,
                    notes=args.notes,
                )
        except OrderViolation as e:
            print("Previous gates not passed. Must pass gates in order:", file=sys.stderr)
            for gate_id, name in e.unmet:
                print(f"  - Gate {gate_id}: {name}", file=sys.stderr)
            return e.exit_code
        print(f"Gate {gate.id} ({gate.name}): {gate.status}")
        return 0

    if args.command == "complete":
        with ctx.features(args.list_name) as pipeline:
            feature = pipeline.complete_feature(args.feature_id, force=args.force, notes=args.notes)
        if any(p.type == "violation" for p in feature.progress):
            print("CONSTITUTIONAL VIOLATION: completed without full validation", file=sys.stderr)
        print(f"Feature completed: {feature.name} ({feature.passed_gates}/{GATE_COUNT} gates passed)")
        return 0

    raise AssertionError(f"unhandled feature command {args.command}")


def _run_hive(ctx: DirectorOpsContext, args: argparse.Namespace) -> int:
    if args.command == "init":
        with ctx.hive() as hive:
            hive.initialize(clear_all=args.clear_all)
        print("Hive initialized: all directors set to idle")
        return 0

    if args.command == "status":
        report = ctx.load_hive().status()
        for row in report.directors:
            print(f"{row.director:<15} [{row.status}] {row.current_task or ''}")
            if args.verbose:
                for blocker in row.blockers:
                    print(f"    blocker: {blocker}")
        if report.active_coordination:
            coordination = report.active_coordination
            print(f"Active coordination: {coordination.type} ({', '.join(coordination.participants)})")
        for h in report.pending_handoffs[:5]:
            print(f"Handoff {h.id[:8]}: {h.from_director} -> {h.to_director}: {h.context[:40]}")
        print(
            f"Summary: {report.active} active, {report.idle} idle, "
            f"{report.blocked} blocked, {report.waiting} waiting"
        )
        return 0

    if args.command == "sync":
        with ctx.hive() as hive:
            if args.director is None:
                hive.sync_all()
            else:
                hive.sync_director(
                    args.director,
                    DirectorSync(
                        status=args.status,
                        task=args.task,
                        blocker=args.blocker,
                        clear_blockers=args.clear_blockers,
                    ),
                )
        print(f"Synced: {args.director or 'all directors'}")
        return 0

    if args.command == "broadcast":
        with ctx.hive() as hive:
            entry = hive.broadcast(
                args.message,
                sender=args.sender,
                priority=args.priority,
                targets=_parse_csv(args.targets),
            )
        print(f"Broadcast {entry.id[:8]} sent to {', '.join(entry.targets)}")
        return 0

    if args.command == "consensus":
        choices = _parse_csv(args.options)
        extra = {"options": tuple(choices)} if choices else {}
        options = ConsensusOptions(
            description=args.description,
            required_votes=args.threshold,
            deadline=args.deadline,
            **extra,
        )
        with ctx.hive() as hive:
            request = hive.request_consensus(args.topic, options)
        print(f"Consensus request {request.id[:8]}: {request.topic}")
        print(f"Options: {', '.join(request.options)}  Required votes: {request.required_votes}")
        return 0

    if args.command == "vote":
        with ctx.hive() as hive:
            outcome = hive.cast_vote(args.request_id, args.voter, args.choice, notes=args.notes)
        tally = ", ".join(f"{c}={n}" for c, n in outcome.tally.items())
        print(f"Vote recorded: {args.voter} -> {args.choice} ({tally})")
        if outcome.resolved:
            print(f"Consensus reached: {outcome.request.outcome}")
        return 0

    if args.command == "metrics":
        print(ctx.load_hive().metrics().model_dump_json(indent=2))
        return 0

    if args.command == "handoff":
        with ctx.hive() as hive:
            handoff = hive.create_handoff(
                args.from_director, args.to_director, args.context, priority=args.priority
            )
        print(f"Handoff created: {handoff.id[:8]} ({handoff.from_director} -> {handoff.to_director})")
        return 0

    if args.command == "ack":
        with ctx.hive() as hive:
            handoff = hive.acknowledge_handoff(args.handoff_id)
        print(f"Handoff acknowledged: {handoff.id[:8]}")
        return 0

    raise AssertionError(f"unhandled hive command {args.command}")


def _run_session(ctx: DirectorOpsContext, args: argparse.Namespace) -> int:
    sessions = ctx.sessions

    if args.command == "start":
        session = sessions.create(type=args.session_type, director=args.director, feature=args.feature)
        print(f"Session started: {session.id}")
        return 0

    if args.command == "list":
        for s in sessions.list(status=args.status, director=args.director):
            print(f"{s.id[:8]} [{s.status}] {s.type} {s.director or ''}")
        return 0

    if args.command == "resume":
        session = sessions.resume(args.session_id)
        if args.checkpoint:
            sessions.restore(args.checkpoint)
        print(f"Session resumed: {session.id}")
        return 0

    if args.command == "checkpoint":
        sessions.attach(args.session_id)
        checkpoint = sessions.checkpoint(args.name, notes=args.notes)
        print(f"Checkpoint created: {checkpoint.name} ({checkpoint.id})")
        return 0

    if args.command == "complete":
        sessions.attach(args.session_id)
        session = sessions.complete()
        print(json.dumps({"id": session.id, "status": session.status}))
        return 0

    raise AssertionError(f"unhandled session command {args.command}")


def _run_progress(ctx: DirectorOpsContext, args: argparse.Namespace) -> int:
    log = ctx.progress

    if args.command == "log":
        entry = log.log(
            args.message,
            type=args.entry_type,
            feature=args.feature,
            director=args.director,
            session=args.session,
            tags=_parse_csv(args.tags),
        )
        print(f"Logged {entry.type}: {entry.message}")
        return 0

    if args.command == "view":
        day = log.view(args.date)
        print(f"Progress log: {day.day}")
        for entry in day.entries:
            print(f"[{entry.timestamp}] {entry.type}: {entry.message}")
            for label, value in (("feature", entry.feature), ("director", entry.director)):
                if value:
                    print(f"    {label}: {value}")
        return 0

    if args.command == "search":
        matches = log.search(args.query, limit=args.limit)
        for entry in matches:
            print(f"[{entry.timestamp}] {entry.type}: {entry.message}")
        print(f"Found {len(matches)} matching entries")
        return 0

    if args.command == "summary":
        report = log.summary(days=args.days)
        print(f"Last {report.days} days: {report.total} entries in {len(report.dates)} logs")
        for entry_type, count in report.by_type.items():
            print(f"  {entry_type:<10} {count}")
        for director, count in report.by_director.items():
            print(f"  director {director}: {count}")
        for feature, count in report.top_features:
            print(f"  feature {feature}: {count}")
        return 0

    raise AssertionError(f"unhandled progress command {args.command}")


def _run_validate(ctx: DirectorOpsContext, args: argparse.Namespace) -> int:
    if args.command == "daily":
        report = ctx.daily_check()
        for label, items in (("PASS", report.passed), ("WARN", report.warnings), ("FAIL", report.failed)):
            for item in items:
                print(f"{label} {item}")
        print(
            f"Summary: {len(report.passed)} passed, {len(report.warnings)} warnings, "
            f"{len(report.failed)} failed"
        )
        return 0 if report.ok else 1

    if args.command == "compliance":
        report = ctx.compliance_report()
        for check in report.checks:
            print(f"{'x' if check.passed else ' '} {check.name}")
        print(f"Compliance score: {report.percentage}% ({report.passed}/{len(report.checks)})")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")
        return 0

    raise AssertionError(f"unhandled validate command {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = DirectorOpsSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)
    ctx = DirectorOpsContext.from_settings(settings)

    try:
        if args.group == "feature":
            return _run_feature(ctx, args)
        if args.group == "hive":
            return _run_hive(ctx, args)
        if args.group == "session":
            return _run_session(ctx, args)
        if args.group == "progress":
            return _run_progress(ctx, args)
        if args.group == "validate":
            return _run_validate(ctx, args)

        logger.error("Unknown command", extra={"command": args.group})
        return 2

    except DirectorOpsError as e:
        logger.warning(str(e), extra={"error": e.kind})
        print(f"{e.kind}: {e}", file=sys.stderr)
        return e.exit_code

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
