"""Command-line interface for ralph-gate."""

import argparse
import sys
from pathlib import Path
from typing import Optional

import lmdb

from .common import default_output_path
from .config import ConfigError, GateConfig, load_config
from .errors import (
    config_invalid,
    gate_not_found,
    history_not_found,
    internal_error,
    invalid_argument,
    print_error,
    results_write_failed,
)
from .gates import ExecutionContext, GateSpec, RunSummary, StreamSink, run_gates
from .history import RunHistory, record_run
from .hook import HookResponse, block_response, generate_hook_response, output_hook_response
from .logging_config import configure_logging
from .store import empty_summary, write_results_file
from .ui import ColorMode, Column, format_console_output, render_json, render_table

COMMANDS = ("run", "history")

HISTORY_COLUMNS = [
    Column(name="timestamp", header="TIMESTAMP"),
    Column(name="status", header="STATUS"),
    Column(name="gates", header="GATES", align="right"),
    Column(name="skipped", header="SKIPPED", align="right"),
    Column(name="first_failure", header="FIRST FAILURE"),
    Column(name="warnings", header="WARNINGS"),
    Column(name="duration", header="DURATION", align="right"),
]


def format_dry_run(gates: list[GateSpec], shell: str) -> str:
    """List the gates that would run, without running them."""
    lines = [f"SHELL: {shell}"]
    if not gates:
        lines.append("No gates to run.")
    for gate in gates:
        lines.append(f"- {gate.name} (order {gate.order}): {gate.command}")
    return "\n".join(lines)


def _persist(summary: RunSummary, output_path: Path, history_dir: Optional[str]) -> int:
    """Write the results file (and history entry); return an exit code."""
    try:
        write_results_file(summary, output_path)
    except OSError as e:
        print_error(results_write_failed(str(output_path), str(e)))
        return 2

    if history_dir:
        try:
            record_run(Path(history_dir), summary)
        except (lmdb.Error, OSError) as e:
            print_error(results_write_failed(history_dir, str(e)))
            return 2

    return 0


def _select_gates(config: GateConfig, only: Optional[str]) -> Optional[list[GateSpec]]:
    """Apply --only; None means the requested gate does not exist."""
    if not only:
        return list(config.gates)
    gate = config.find_gate(only)
    return [gate] if gate else None


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the run command."""
    configure_logging(verbose=args.verbose)
    color_mode = ColorMode.NEVER if args.no_color else ColorMode.AUTO
    cwd = Path.cwd()

    try:
        config = load_config(cwd)
    except ConfigError as e:
        code = _persist(empty_summary(False), cwd / default_output_path(), args.history_dir)
        if code:
            return code
        if args.hook:
            output_hook_response(block_response(str(e)))
            return 0
        path = str(e.path) if e.path else None
        print_error(config_invalid(str(e), path), json_mode=args.json)
        return 1

    # Hook mode keeps stdout for the decision message only.
    context = ExecutionContext.from_environ(cwd=cwd, stream=args.verbose and not args.hook)

    if config is None:
        if args.dry_run:
            print(format_dry_run([], context.shell))
        elif args.hook:
            output_hook_response(HookResponse())
        else:
            print("No gate config found (gate.config.json, .gaterc.json, .gaterc).")
        return 0

    if args.dry_run:
        print(format_dry_run(config.gates, context.shell))
        return 0

    gates = _select_gates(config, args.only)
    if gates is None:
        print_error(
            gate_not_found(args.only, [g.name for g in config.gates]),
            json_mode=args.json,
        )
        return 1

    output_path = cwd / (config.output_path or default_output_path())

    if not gates:
        summary = empty_summary(True)
    else:
        sink = StreamSink(out=sys.stderr) if args.verbose and args.hook else None
        summary = run_gates(gates, fail_fast=config.fail_fast, context=context, sink=sink)

    code = _persist(summary, output_path, args.history_dir)
    if code:
        return code

    if args.hook:
        output_hook_response(generate_hook_response(summary))
        return 0

    if args.json:
        print(render_json(summary))
    else:
        print(format_console_output(summary, color_mode))

    return 0 if summary.passed else 1


def _history_row(summary: RunSummary) -> dict:
    return {
        "timestamp": summary.timestamp,
        "status": "passed" if summary.passed else "failed",
        "gates": len(summary.results),
        "skipped": summary.skipped_count,
        "first_failure": summary.first_failure.name if summary.first_failure else "-",
        "warnings": ", ".join(summary.warnings) or "-",
        "duration": f"{summary.total_duration_ms}ms",
    }


def cmd_history(args: argparse.Namespace) -> int:
    """Handle the history command."""
    configure_logging()

    if args.limit is not None and args.limit < 1:
        print_error(
            invalid_argument("--limit", str(args.limit), "must be at least 1"),
            json_mode=args.json,
        )
        return 1

    try:
        with RunHistory(Path(args.history_dir)) as history:
            runs = history.list_runs(args.limit)
    except FileNotFoundError:
        print_error(history_not_found(args.history_dir), json_mode=args.json)
        return 1
    except lmdb.Error as e:
        print_error(
            internal_error(f"unreadable history: {e}", {"path": args.history_dir}),
            json_mode=args.json,
        )
        return 1

    if args.json:
        print(render_json([r.to_dict() for r in runs]))
        return 0

    if not runs:
        print("No runs recorded.")
        return 0

    color_mode = ColorMode.NEVER if args.no_color else ColorMode.AUTO
    rows = [_history_row(r) for r in runs]
    print(render_table(rows, HISTORY_COLUMNS, color_mode=color_mode))
    print(f"\nTotal: {len(runs)} runs")
    return 0


def _normalize_argv(argv: list[str]) -> list[str]:
    """Treat a bare invocation (e.g. `ralph-gate --hook`) as `run`."""
    if argv and (argv[0] in COMMANDS or argv[0] in ("-h", "--help", "--version")):
        return argv
    return ["run", *argv]


def main(argv: list[str] = None) -> int:
    """Main entry point."""
    argv = _normalize_argv(list(sys.argv[1:] if argv is None else argv))

    parser = argparse.ArgumentParser(
        prog="ralph-gate",
        description="Run verification gates before an agent may finish",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run the configured gates (default)")
    run_parser.add_argument(
        "--hook", action="store_true", help="Emit a JSON decision for the agent stop hook"
    )
    run_parser.add_argument(
        "--dry-run", action="store_true", help="List gates without running them"
    )
    run_parser.add_argument("--only", metavar="NAME", help="Run a single gate by name")
    run_parser.add_argument(
        "--verbose", action="store_true", help="Stream gate output while it runs"
    )
    run_parser.add_argument("--json", action="store_true", help="Output as JSON")
    run_parser.add_argument("--no-color", action="store_true", help="Disable color")
    run_parser.add_argument(
        "--history-dir", metavar="DIR", help="Also record the run in this history"
    )
    run_parser.set_defaults(func=cmd_run)

    # history command
    history_parser = subparsers.add_parser("history", help="List recorded runs")
    history_parser.add_argument(
        "--history-dir", metavar="DIR", required=True, help="History directory"
    )
    history_parser.add_argument("--limit", type=int, help="Show at most N runs")
    history_parser.add_argument("--json", action="store_true", help="Output as JSON")
    history_parser.add_argument("--no-color", action="store_true", help="Disable color")
    history_parser.set_defaults(func=cmd_history)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)
