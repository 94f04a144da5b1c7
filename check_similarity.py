#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import os
import sys

from simcheck.classroom import display_names, find_classroom_file, load_classroom
from simcheck.explorer import DiffExplorer
from simcheck.models import ORDER_BY_ASSIGNMENT, ORDER_BY_CHOICES, Config, ConfigurationError
from simcheck.reporting import build_report, render, render_empty, render_header, summarize, write_report
from simcheck.scanner import normalize_extensions, split_names
from simcheck.service import ComparisonService


def build_argparser() -> argparse.ArgumentParser:
    defaults = Config()
    p = argparse.ArgumentParser(
        description="Compare student submissions assignment by assignment and flag near-duplicate files.",
        epilog="Files are compared after removing blank lines and comments and collapsing whitespace, "
               "using line-set Jaccard similarity (0% = nothing shared, 100% = identical).",
    )
    p.add_argument("root", nargs="?", default=".", help="Folder holding one subfolder per student (default: .)")

    # Selection
    p.add_argument("-e", "--extension", action="append", dest="extensions",
                   help="File extensions to compare, repeatable or comma separated (default: %s)" % ",".join(defaults.extensions))
    p.add_argument("-i", "--ignore", action="append", default=[],
                   help="File names without extension to skip, e.g. reset,normalize")
    p.add_argument("-s", "--starter-folder", help="Starter code folder to exclude (default: classroom name, if known)")
    p.add_argument("--assignments-dir", default=defaults.assignments_dirname,
                   help="Per-student folder holding the assignments (default: %(default)s)")

    # Reporting
    p.add_argument("-t", "--threshold", type=float, default=defaults.threshold,
                   help="Similarity percentage at which a pair is flagged (default: %(default).0f)")
    p.add_argument("-o", "--order-by", default=ORDER_BY_ASSIGNMENT,
                   help="Group results by %s (default: %%(default)s)" % " or ".join(ORDER_BY_CHOICES))
    p.add_argument("-u", "--student", help="Only show pairs involving this student")
    p.add_argument("-n", "--assignment", help="Only show this assignment")
    p.add_argument("--names", help="JSON file with display names (classroom.json or {id: name})")
    p.add_argument("--report", dest="report_path", help="Also write the flagged pairs to this JSON file")
    p.add_argument("--no-color", action="store_true", help="Disable ANSI colours")

    # Interaction / diagnostics
    p.add_argument("-d", "--diff", action="store_true", help="Interactive mode to show diffs for selected cases")
    p.add_argument("-j", "--workers", type=int, default=defaults.workers,
                   help="Parallel comparison workers (default: %(default)s)")
    p.add_argument("--processes", action="store_true",
                   help="Score in worker processes instead of threads (uses every CPU for large classrooms)")
    p.add_argument("-v", "--verbose", action="store_true", help="Show progress details and warnings")
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level (default: INFO with -v, otherwise ERROR)")
    return p


def log_level(args: argparse.Namespace) -> int:
    """Explicit --log-level wins; otherwise warnings only surface with -v."""
    if args.log_level:
        return getattr(logging, args.log_level)
    return logging.INFO if args.verbose else logging.ERROR


def main() -> None:
    try:
        parser = build_argparser()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    args = parser.parse_args()

    logging.basicConfig(level=log_level(args), format="%(asctime)s [%(levelname)s] %(message)s", force=True)

    names_path = args.names or find_classroom_file(args.root)
    classroom = load_classroom(names_path)

    cfg = Config(
        root=args.root,
        extensions=normalize_extensions(args.extensions or Config().extensions),
        threshold=args.threshold,
        starter_folder=args.starter_folder or classroom.name,
        ignore=split_names(args.ignore),
        assignments_dirname=args.assignments_dir,
        order_by=args.order_by,
        filter_student=args.student,
        filter_assignment=args.assignment,
        report_path=args.report_path,
        names_path=names_path,
        color=Config().color and not args.no_color and sys.stdout.isatty(),
        show_diff=args.diff,
        verbose=args.verbose,
        workers=args.workers,
        processes=args.processes,
    )

    try:
        cfg.validate()
        logging.info("Search path: %s, starter folder: %s", os.path.abspath(cfg.root), cfg.starter_folder)
        matrix = ComparisonService(cfg).run()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    display = display_names(classroom.names)
    title = classroom.name or os.path.basename(os.path.abspath(cfg.root))
    print(render_header(cfg, title, matrix.assignments))

    pairs = summarize(matrix, cfg.threshold, cfg.filter_student, cfg.filter_assignment)
    if pairs:
        print(render(pairs, cfg.threshold, cfg.order_by, matrix.assignments, display, cfg.color))
    else:
        print(render_empty(cfg))

    if matrix.warnings:
        print(f"Note: {matrix.warnings} folder(s) or file pair(s) could not be read and were skipped"
              f"{'' if cfg.verbose else ' (rerun with -v for details)'}.")

    if cfg.report_path:
        try:
            write_report(cfg.report_path, build_report(cfg, matrix, pairs, display))
            print(f"Report saved to {cfg.report_path}")
        except OSError as e:
            print(f"[ERROR] Failed to write report: {e}", file=sys.stderr)
            sys.exit(1)

    if cfg.show_diff and pairs:
        DiffExplorer(pairs, cfg.threshold, cfg.order_by, display, cfg.color).run()

    sys.exit(0)


if __name__ == "__main__":
    main()
