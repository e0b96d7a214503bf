from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from i18n_lint.config import ConfigError, apply_overrides, load_config, split_csv
from i18n_lint.models import LintSettings
from i18n_lint.pipeline import InputPathError, run_lint
from i18n_lint.reporting import EXIT_FATAL, FORMATS, Report, exit_status, write_report_files

logger = logging.getLogger("i18n_lint")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lint-i18n",
        description="Detect internationalization anti-patterns in translation function calls",
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="Files or directories to lint")
    parser.add_argument(
        "--function-name",
        action="append",
        dest="function_names",
        default=None,
        help="Translation function name, e.g. i18n, _, this.$t (repeatable; default: i18n)",
    )
    parser.add_argument(
        "--context-threshold",
        type=int,
        default=None,
        help="Message ids with fewer words than this need a context when reused (default: 3)",
    )
    parser.add_argument("--config", default=None, help="JSON config file")
    parser.add_argument("--format", choices=FORMATS, default="text")
    parser.add_argument("--output", default=None, help="Write the report to this file instead of stdout")
    parser.add_argument("--output-dir", default=None, help="Also write summary.json and CSV files here")
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument(
        "--include-exts",
        default=None,
        help="Comma-separated extensions to include, e.g. .py,.js,.ts",
    )
    parser.add_argument(
        "--exclude-dirs",
        default=None,
        help="Comma-separated directory names to skip",
    )
    parser.add_argument("--disable", action="append", default=None, metavar="RULE_ID")
    parser.add_argument("--max-file-size-bytes", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("-q", "--quiet", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    try:
        settings = load_config(args.config) if args.config else LintSettings()
        settings = apply_overrides(
            settings,
            function_names=args.function_names,
            context_threshold=args.context_threshold,
            include_exts=split_csv(args.include_exts),
            exclude_dirs=split_csv(args.exclude_dirs),
            max_file_size_bytes=args.max_file_size_bytes,
            workers=args.workers,
            disabled_rules=args.disable,
        )
    except ConfigError as exc:
        parser.error(str(exc))
        return EXIT_FATAL

    try:
        result = run_lint(args.paths, settings)
    except InputPathError as exc:
        print(f"lint-i18n: {exc}", file=sys.stderr)
        return EXIT_FATAL

    report = Report.from_result(result)
    rendered = report.render(args.format)
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered + "\n" if rendered else "", encoding="utf-8")
    elif rendered:
        print(rendered)

    if args.output_dir:
        files = write_report_files(report, args.output_dir)
        logger.info("Report files written: %s", ", ".join(files.values()))

    return exit_status(report)


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
