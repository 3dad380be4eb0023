#!/usr/bin/env python3
"""
CrossDoc - cross-document consistency checks for clinical regulatory documents.

Validates a bundle of normalized IB, Protocol, ICF, SAP and CSR documents and
optionally produces auto-fix patches for selected issues.

Usage:
    python main.py validate bundle.json [--output-dir out/]
    python main.py autofix bundle.json --issue PRIMARY_ENDPOINT_DRIFT --strategy align_to_protocol
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
load_dotenv()

from core.logging_config import configure_logging

# Logging is configured in main() after arg parsing.
logger = logging.getLogger(__name__)

from autofix import AutoFixRequest, FixStrategy, apply_autofixes, ensure_suggestions, save_autofix_report
from changelog import describe_changes
from core.config import load_config
from core.errors import CrossDocError
from documents.loader import load_bundle
from pipeline import CrossDocEngine, save_validation_report
from rules.base import Severity


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check IB, Protocol, ICF, SAP and CSR documents against each other",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py validate bundle.json
    python main.py validate bundle.yaml --output-dir reports/
    python main.py autofix bundle.json --issue PRIMARY_ENDPOINT_DRIFT
    python main.py autofix bundle.json --issue TEST_MISMATCH --issue IB_PROTOCOL_DOSE_INCONSISTENT
        """
    )
    parser.add_argument("--config", "-c", metavar="PATH", help="Engine config file (YAML or JSON)")
    parser.add_argument("--output-dir", "-o", metavar="DIR", help="Write JSON reports to this directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    log_group = parser.add_argument_group('Logging')
    log_group.add_argument("--json-log", action="store_true", help="Emit structured JSON log lines to stderr")
    log_group.add_argument("--log-file", type=str, metavar="PATH", help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Run every cross-document rule")
    validate.add_argument("bundle_path", help="Normalized document bundle (JSON or YAML)")

    autofix = subparsers.add_parser("autofix", help="Generate patches for selected issues")
    autofix.add_argument("bundle_path", help="Normalized document bundle (JSON or YAML)")
    autofix.add_argument(
        "--issue", "-i", dest="issues", action="append", required=True, metavar="CODE",
        help="Issue code to fix (repeatable)",
    )
    autofix.add_argument(
        "--strategy", "-s", default=FixStrategy.ALIGN_TO_PROTOCOL.value,
        choices=[s.value for s in FixStrategy],
        help=f"Source-of-truth strategy (default: {FixStrategy.ALIGN_TO_PROTOCOL.value})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging (must happen before any log output)
    configure_logging(
        json_mode=args.json_log,
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        config = load_config(args.config)
        bundle = load_bundle(args.bundle_path)
    except CrossDocError as e:
        logger.error(f"{e}")
        return 1

    engine = CrossDocEngine.create_default(config)
    result = engine.run_sync(bundle)

    if args.command == "validate":
        _print_issues(result.issues)
        if args.output_dir:
            save_validation_report(result, args.output_dir)
        return 1 if result.has_critical else 0

    issues = ensure_suggestions(result.issues, bundle, codes=args.issues)
    fix_result = apply_autofixes(issues, bundle, AutoFixRequest(args.issues, args.strategy))
    print(describe_changes(fix_result.changelog))
    if fix_result.rejected_patches:
        logger.warning(f"{fix_result.rejected_patches} patch(es) rejected")
    if args.output_dir:
        save_autofix_report(fix_result, args.output_dir)

    remaining_critical = [i for i in fix_result.remaining_issues if i.severity == Severity.CRITICAL]
    return 1 if remaining_critical else 0


def _print_issues(issues) -> None:
    """Print one line per issue, most severe first."""
    if not issues:
        print("No cross-document issues found.")
        return
    order = {severity: rank for rank, severity in enumerate(Severity)}
    for issue in sorted(issues, key=lambda i: order[Severity(i.severity)]):
        category = issue.category.value if issue.category else "-"
        print(f"[{Severity(issue.severity).value.upper()}] {category} {issue.code}: {issue.message}")


if __name__ == "__main__":
    sys.exit(main())
