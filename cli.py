#!/usr/bin/env python3
"""
Roster Quality CLI

Command-line interface for checking student upload batches.
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

# Load environment
load_dotenv()

from roster_quality.audit import HttpAuditLogger, JsonlAuditLogger
from roster_quality.config import load_config
from roster_quality.core.records import load_records
from roster_quality.quality import Action, QualityAggregator, find_internal_duplicates
from roster_quality.registry import HttpRegistry, InMemoryRegistry, RepositoryDuplicateDetector

EXIT_BLOCKED = 2


def _audit_logger(config):
    if config.audit_url:
        return HttpAuditLogger(config.audit_url, token=config.audit_token)
    if config.audit_dir:
        return JsonlAuditLogger(config.audit_dir)
    return None


def cmd_check(args):
    """Run field and in-batch duplicate checks."""
    config = load_config()
    records = load_records(args.input)
    aggregator = QualityAggregator.from_config(config, audit_logger=_audit_logger(config))

    if args.caller_id:
        result = aggregator.check_data_quality_with_logging(
            records, args.caller_id, args.caller_label or args.caller_id
        )
    else:
        result = aggregator.check_data_quality(records)

    print("\n" + result.summary_text() + "\n")

    if args.output:
        result.save(args.output)
        print(f"Saved report to {args.output}")

    if result.recommended_action == Action.BLOCK:
        return EXIT_BLOCKED


def cmd_internal(args):
    """List duplicates inside the batch only."""
    records = load_records(args.input)
    duplicates = find_internal_duplicates(records)

    print(f"\nFound {len(duplicates)} duplicate group(s):\n")
    for dup in duplicates:
        print(f"  {dup}")


def cmd_registry(args):
    """Check the batch against the student registry."""
    config = load_config()
    records = load_records(args.input)

    if args.registry_file:
        registry = InMemoryRegistry.from_json(args.registry_file)
    elif config.registry_url:
        registry = HttpRegistry(
            config.registry_url,
            token=config.registry_token,
            timeout=config.registry_timeout,
        )
    else:
        print("No registry configured: pass --registry-file or set REGISTRY_URL")
        return 1

    with registry:
        detector = RepositoryDuplicateDetector.from_config(registry, config)
        result = detector.detect(records)

    print(f"\n{result.duplicate_count}/{result.total_records} records already registered:\n")
    for dup in result.potential_duplicates:
        print(f"  {dup}")
    if result.lookup_failures:
        print(f"\nWarning: {result.lookup_failures} registry lookup(s) failed and were skipped")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
        print(f"\nSaved to {args.output}")


def main():
    parser = argparse.ArgumentParser(
        description="Roster Quality CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py check --input upload.json
  python cli.py check --input upload.jsonl --caller-id admin-7 --caller-label ops@school.test
  python cli.py internal --input upload.json
  python cli.py registry --input upload.json --registry-file students.json
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Check
    sub = subparsers.add_parser("check", help="Field and in-batch duplicate checks")
    sub.add_argument("--input", "-i", required=True, help="JSON or JSONL rows")
    sub.add_argument("--caller-id", help="Record the check in the audit trail as this user")
    sub.add_argument("--caller-label", help="Display label for the caller")
    sub.add_argument("--output", "-o", help="Save the JSON report here")
    sub.set_defaults(func=cmd_check)

    # Internal
    sub = subparsers.add_parser("internal", help="In-batch duplicates only")
    sub.add_argument("--input", "-i", required=True, help="JSON or JSONL rows")
    sub.set_defaults(func=cmd_internal)

    # Registry
    sub = subparsers.add_parser("registry", help="Check rows against the registry")
    sub.add_argument("--input", "-i", required=True, help="JSON or JSONL rows")
    sub.add_argument("--registry-file", help="JSON snapshot of stored students")
    sub.add_argument("--output", "-o", help="Save the JSON result here")
    sub.set_defaults(func=cmd_registry)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
