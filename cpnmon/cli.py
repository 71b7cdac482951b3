"""
Command-line interface for the CPNMON protocol monitor.

Replays recorded event traces through a Colored Petri Net monitor.
Every trace file is one independent execution: the marking is reset
before it and its final marking is recorded for coverage afterwards.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import cpnmon
from cpnmon.core.config import MonitorConfig
from cpnmon.core.hooks import MonitorHook, ProtocolViolationError
from cpnmon.core.runtime import MonitorRuntime
from cpnmon.utils.logger import LogLevel, MonitorLogger
from cpnmon.utils.trace_reader import TraceReader
from cpnmon.utils.visualization import NetVisualizer


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CPNMON CLI."""
    parser = argparse.ArgumentParser(
        prog="cpnmon",
        description=(
            "CPNMON: Colored Petri Net protocol monitor - "
            "replay concurrency event traces against a CPN protocol"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-n",
        "--net",
        type=Path,
        required=True,
        help="Path to the net definition (.json)",
    )
    required.add_argument(
        "-t",
        "--trace",
        type=Path,
        nargs="+",
        required=True,
        help="Trace file(s) (.trace text notation or .ndjson); one execution each",
    )

    parser.add_argument(
        "-l",
        "--log",
        type=Path,
        default=None,
        help="Write an execution log (one JSON record per fired event)",
    )
    parser.add_argument(
        "--continue",
        dest="keep_going",
        action="store_true",
        help="Report violations and continue instead of stopping at the first",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3; 1+ prints the marking hash after every event (default: 0)",
    )
    parser.add_argument(
        "--visualize",
        nargs="?",
        const="__stdout__",
        default=None,
        metavar="FILE",
        help="Write the net with its final marking as DOT (optionally to FILE)",
    )
    parser.add_argument(
        "--visualize-ascii",
        action="store_true",
        help="Print the final marking as an ASCII table",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after monitoring",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cpnmon {cpnmon.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 2:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def main() -> None:
    """Entry point for the ``cpnmon`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _run(args: argparse.Namespace) -> None:
    """Execute the monitoring pipeline."""
    # Validate input files exist
    if not args.net.exists():
        print(f"Error: Net definition not found: {args.net}", file=sys.stderr)
        sys.exit(2)

    for trace in args.trace:
        if not trace.exists():
            print(f"Error: Trace file not found: {trace}", file=sys.stderr)
            sys.exit(2)

    log_level = _resolve_log_level(args.output, args.debug)
    logger = MonitorLogger(level=log_level, stream=sys.stdout)

    config = MonitorConfig(
        net_path=args.net,
        log_path=args.log,
        fail_fast=not args.keep_going,
        debug=args.debug >= 1,
    )

    with MonitorRuntime.load(config, logger=logger) as runtime:
        hook = MonitorHook(runtime)
        aborted = False

        for trace in args.trace:
            runtime.reset()
            logger.info(f"Replaying {trace}")
            try:
                for entry in TraceReader(trace).iter_entries():
                    hook.emit(entry.event, entry.location)
            except ProtocolViolationError as exc:
                logger.violation(str(exc))
                aborted = True
                break

            marking_hash, is_new = runtime.record_execution_end()
            logger.execution_end(str(trace), marking_hash, is_new)

        _visualize(args, runtime)

        if hook.violations:
            logger.verdict_violated(len(hook.violations))
        else:
            logger.verdict_ok()
        if aborted:
            logger.info("Stopped at the first violation (fail-fast)")

        stats = runtime.statistics
        logger.statistics(stats)

        # Statistics (skip if verbose already printed them)
        if args.stats and log_level.value < LogLevel.VERBOSE.value:
            print()
            print("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                print(f"  {label}: {value}")

    sys.exit(1 if hook.violations else 0)


def _visualize(args: argparse.Namespace, runtime: MonitorRuntime) -> None:
    """Render the net with its final marking as requested."""
    viz = NetVisualizer(runtime.net, runtime.marking)

    if args.visualize_ascii:
        print()
        print(viz.to_ascii())

    if args.visualize is None:
        return
    if args.visualize == "__stdout__":
        print(viz.to_dot())
        return

    filepath = Path(args.visualize)
    if filepath.suffix.lower() in (".png", ".pdf", ".svg"):
        try:
            viz.save_png(filepath)
        except RuntimeError as e:
            print(f"Warning: {e}", file=sys.stderr)
            viz.save_dot(filepath.with_suffix(".dot"))
    else:
        viz.save_dot(filepath)
