"""
Command-line maintenance for an ExamDesk data directory.

    examdesk [--data-dir DIR] [--verbose] init [--force]
    examdesk validate
    examdesk repair
    examdesk info
    examdesk draw PROJECT_ID [--count N] [--seed S]
    examdesk import-candidates FILE [--project NAME]

Results are printed as JSON; the exit code is 0 on success and 1 otherwise.
"""
from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any, List, Optional

from examdesk import __version__
from examdesk.config import StoreConfig
from examdesk.logging_utils import configure_logging
from examdesk.managers import CandidateImportError
from examdesk.service import ExamDeskService

logger = logging.getLogger(__name__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="examdesk", description="ExamDesk data store maintenance")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", type=Path, help="Data root (default: $EXAMDESK_DATA_DIR or ./data)")
    parser.add_argument("--strict", action="store_true", help="Validate envelopes against the JSON schema")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Create missing data files, regenerate invalid ones")
    init.add_argument("--force", action="store_true", help="Back up and regenerate every data file")

    sub.add_parser("validate", help="Check all data files without changing them")
    sub.add_parser("repair", help="Regenerate data files that fail validation")
    sub.add_parser("info", help="Show data file locations, sizes and timestamps")

    draw = sub.add_parser("draw", help="Draw questions for a project")
    draw.add_argument("project_id")
    draw.add_argument("--count", type=int, help="Number of questions (default: admin setting)")
    draw.add_argument("--seed", type=int, help="Random seed for a reproducible draw")

    imp = sub.add_parser("import-candidates", help="Register candidates from an .xlsx file")
    imp.add_argument("file", type=Path)
    imp.add_argument("--project", help="Project name for rows without one")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if args.data_dir is not None:
        config = StoreConfig(args.data_dir, strict_validation=args.strict)
    else:
        config = StoreConfig.from_env(strict_validation=args.strict)

    rng = random.Random(args.seed) if getattr(args, "seed", None) is not None else None
    # Maintenance commands inspect files as they are; only data commands verify on touch
    maintenance = args.command in ("init", "validate", "repair", "info")
    service = ExamDeskService(config, verify_on_first_touch=not maintenance, rng=rng)

    if args.command == "init":
        result = service.bootstrap(force=args.force)
        _print_json(result.to_dict())
        return 0 if result.success else 1

    if args.command == "validate":
        report = service.validate()
        _print_json(report.to_dict())
        return 0 if report.success else 1

    if args.command == "repair":
        repaired = service.repair()
        _print_json(repaired.to_dict())
        return 0 if repaired.success else 1

    if args.command == "info":
        _print_json(service.report())
        return 0

    if args.command == "draw":
        if args.count is not None and args.count < 0:
            logger.error("--count must be non-negative")
            return 1
        if service.get_project(args.project_id) is None:
            logger.error(f"Unknown project: {args.project_id}")
            return 1
        drawn = service.draw_questions(args.project_id, args.count)
        _print_json([question.to_dict() for question in drawn])
        return 0

    if args.command == "import-candidates":
        try:
            imported = service.import_candidates(args.file, args.project)
        except CandidateImportError as e:
            logger.error(str(e))
            return 1
        _print_json(imported.to_dict())
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
