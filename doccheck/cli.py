"""CLI entrypoint for doccheck."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .checks import available_checks
from .config import CONFIG_FILENAME, REPORT_FORMATS, ConfigError, DocCheckConfig, load_config
from .logging import configure_logging, get_logger
from .models import Report
from .report import render_report, summarize
from .validator import Validator

EXIT_CLEAN = 0
EXIT_ISSUES = 1
EXIT_FATAL = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doccheck",
        description="Check markdown documents for broken links and untagged code blocks.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        help="Directory containing the markdown documents to check.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to a configuration file (defaults to <directory>/{CONFIG_FILENAME}).",
    )
    parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default=None,
        help="Report format (defaults to the configured format, or text).",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Skip paths matching this gitignore-style pattern (repeatable).",
    )
    parser.add_argument(
        "--check",
        action="append",
        default=None,
        metavar="NAME",
        dest="checks",
        help="Run only this check (repeatable; overrides the configured list).",
    )
    parser.add_argument(
        "--list-checks",
        action="store_true",
        help="List the available checks and exit.",
    )
    parser.add_argument(
        "--no-anchors",
        action="store_true",
        help="Do not verify #fragment anchors.",
    )
    parser.add_argument(
        "--errors-only",
        action="store_true",
        help="Only error-severity issues make the exit status non-zero.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.list_checks:
        for name, origin in available_checks():
            sys.stdout.write(f"{name}\t{origin}\n")
        return EXIT_CLEAN
    if args.directory is None:
        parser.error("the following arguments are required: directory")
    if args.verbose and args.quiet:
        parser.error("--verbose and --quiet are mutually exclusive")

    try:
        configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)
    except OSError as exc:
        parser.exit(EXIT_FATAL, f"doccheck: cannot open log file {args.log_file}: {exc.strerror or exc}\n")
    logger = get_logger("cli")

    directory = Path(args.directory)
    if not directory.exists():
        parser.exit(EXIT_FATAL, f"doccheck: directory not found: {directory}\n")
    if not directory.is_dir():
        parser.exit(EXIT_FATAL, f"doccheck: not a directory: {directory}\n")

    try:
        config = _load_config(args, directory)
        validator = Validator(config, extra_excludes=args.exclude)
        report = validator.validate(directory)
    except (ConfigError, ValueError) as exc:
        parser.exit(EXIT_FATAL, f"doccheck: configuration error: {exc}\n")
    except OSError as exc:
        parser.exit(EXIT_FATAL, f"doccheck: {exc}\n")

    rendered = render_report(
        report,
        args.format or config.report.format,
        templates_dir=config.report.templates_dir,
    )
    if args.output is not None:
        try:
            args.output.write_text(rendered, encoding="utf-8")
        except OSError as exc:
            parser.exit(EXIT_FATAL, f"doccheck: cannot write report to {args.output}: {exc.strerror or exc}\n")
        logger.info("Report written to %s", _relativize(args.output))
    else:
        sys.stdout.write(rendered)
    logger.info(summarize(report))

    return _exit_status(report, errors_only=bool(args.errors_only))


def _load_config(args: argparse.Namespace, directory: Path) -> DocCheckConfig:
    config = load_config(args.config if args.config is not None else directory)
    if args.checks:
        config.checks.enabled = list(args.checks)
    if args.no_anchors:
        config.checks.check_anchors = False
    return config


def _exit_status(report: Report, *, errors_only: bool) -> int:
    if errors_only:
        return EXIT_ISSUES if report.error_count else EXIT_CLEAN
    return EXIT_CLEAN if report.is_empty else EXIT_ISSUES


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
