"""
vgreport CLI - run a Rust crate target under valgrind and summarise the result.

Usage:
    vgreport                          # the crate's only binary, debug build
    vgreport --release --bin server   # a named binary, release build
    vgreport --example demo -- --flag # forward arguments to the program
    vgreport --xml memcheck.xml       # summarise an existing XML report
    valgrind --xml=yes --xml-fd=3 ./a.out 3>&1 1>/dev/null | vgreport --xml -

Exit codes:
    0  no errors detected
    1  valgrind reported errors or leaks
    2  inconclusive: valgrind's output could not be understood
    3  usage, cargo or valgrind launch failure
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vgreport.core.constants import EXIT_CLEAN, EXIT_DEFECTS, EXIT_FAILURE, EXIT_INCONCLUSIVE
from vgreport.core.errors import CargoError, ReportParseError, TruncatedReportError, ValgrindLaunchError
from vgreport.core.report_renderer import RenderStyle, Verbosity, render, status_line
from vgreport.executor.cargo_targets import Build, TargetKind, build_target, find_target, targets
from vgreport.executor.valgrind_runner import run_valgrind
from vgreport.parser.classification import known_tags
from vgreport.parser.report_parser import parse
from vgreport.services.aggregator import aggregate
from vgreport.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser"""
    parser = argparse.ArgumentParser(
        prog="vgreport",
        description="Run a crate target under valgrind and summarise memory errors",
        epilog="Recognised memcheck kinds: " + ", ".join(known_tags())
        + ". Other kinds are reported as-is.",
    )

    build = parser.add_argument_group("target selection")
    build.add_argument(
        "--release",
        action="store_true",
        help="Build and run artifacts in release mode, with optimizations",
    )
    selector = build.add_mutually_exclusive_group()
    selector.add_argument("--bin", metavar="NAME", help="Build and run the specified binary")
    selector.add_argument("--example", metavar="NAME", help="Build and run the specified example")
    selector.add_argument("--bench", metavar="NAME", help="Build and run the specified bench")
    build.add_argument(
        "--manifest-path",
        metavar="PATH",
        default="Cargo.toml",
        help="Path to Cargo.toml (default: ./Cargo.toml)",
    )

    parser.add_argument(
        "--xml",
        metavar="FILE",
        help="Summarise an existing memcheck XML report instead of running valgrind ('-' for stdin)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="One line per finding, without stack traces",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    return parser


def specified_target(args: argparse.Namespace) -> Optional[tuple[TargetKind, str]]:
    """Query the target requested on the command line, if any."""
    if args.bin:
        return TargetKind.BINARY, args.bin
    if args.example:
        return TargetKind.EXAMPLE, args.example
    if args.bench:
        return TargetKind.BENCH, args.bench
    return None


def _read_xml(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def collect_xml(args: argparse.Namespace, program_args: List[str], style: RenderStyle) -> bytes:
    """Return the raw XML report: from --xml, or by building and running the target."""
    if args.xml:
        return _read_xml(args.xml)

    manifest = Path(args.manifest_path).resolve()
    build = Build.RELEASE if args.release else Build.DEBUG
    available = targets(manifest, build)
    target = find_target(specified_target(args), available)
    build_target(manifest, build, target)

    try:
        shown = target.path.relative_to(manifest.parent)
    except ValueError:
        shown = target.path
    print(status_line("Analyzing", f"`{shown}`", style))

    result = run_valgrind(target.path, program_args)
    logger.info(
        "`%s` exited with code %d after %.2fs under valgrind",
        shown, result.exit_code, result.execution_time_seconds,
    )
    if result.stderr.strip():
        logger.info("Program stderr:\n%s", result.stderr.rstrip())
    return result.xml


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    argv = sys.argv[1:] if argv is None else list(argv)

    # Everything after "--" belongs to the analysed program
    program_args: List[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, program_args = argv[:split], argv[split + 1:]

    args = create_parser().parse_args(argv)
    setup_logging(
        level={0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG),
        use_color=not args.no_color and sys.stderr.isatty(),
    )
    style = RenderStyle(
        colorize=not args.no_color and sys.stdout.isatty(),
        verbosity=Verbosity.SUMMARY if args.summary else Verbosity.FULL,
    )

    try:
        raw = collect_xml(args, program_args, style)
    except (CargoError, ValgrindLaunchError, OSError) as e:
        print(status_line("error:", str(e), style, error=True), file=sys.stderr)
        return EXIT_FAILURE

    try:
        records = parse(raw)
    except ReportParseError as e:
        reason = (
            "valgrind's output ended early (did the tool crash?)"
            if isinstance(e, TruncatedReportError)
            else "could not understand valgrind's output"
        )
        print(
            status_line("error:", f"{reason}; the run is inconclusive: {e}", style, error=True),
            file=sys.stderr,
        )
        return EXIT_INCONCLUSIVE

    report = aggregate(records)
    print(render(report, style))
    return EXIT_CLEAN if report.clean else EXIT_DEFECTS


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
