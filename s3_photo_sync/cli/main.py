"""
Command-line entry point for syncing photos and videos to an S3 bucket.
"""
import argparse
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from s3_photo_sync.config import SyncAppConfig
from s3_photo_sync.exceptions import ConfigurationError
from s3_photo_sync.orchestrator import failed_references
from s3_photo_sync.reporting.report_generator import ReportGenerator
from s3_photo_sync.reporting.reporter import LoggingReporter, TqdmReporter
from s3_photo_sync.service import SyncService
from s3_photo_sync.utils.health_check import HealthChecker
from s3_photo_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_ABORTED = 2


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='s3-photo-sync',
        description='Upload photos and videos to an S3-compatible bucket'
    )
    parser.add_argument(
        'references',
        nargs='*',
        help='Files or file:// URIs to upload (manual selection)'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--media-dir',
        type=str,
        help='Directory to search when selecting by date range'
    )
    parser.add_argument(
        '--from',
        dest='from_date',
        type=_parse_date,
        help='First day of the date range (YYYY-MM-DD)'
    )
    parser.add_argument(
        '--to',
        dest='to_date',
        type=_parse_date,
        help='Last day of the date range, inclusive (YYYY-MM-DD)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        help='Uploads in flight at once (overrides sync.max_workers)'
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Run preflight checks (staging directory, credentials, bucket) and exit'
    )
    parser.add_argument(
        '--report',
        type=str,
        help='Write a batch report to this path'
    )
    parser.add_argument(
        '--report-format',
        choices=['text', 'json'],
        default='text',
        help='Report format (default: text)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        help='Logging level (overrides logging.level)'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        config = SyncAppConfig.from_yaml(args.config)
        if args.workers is not None:
            config.sync = replace(config.sync, max_workers=args.workers)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ABORTED

    setup_logging(
        log_file=config.logging.file,
        level=args.log_level or config.logging.level,
        enable_json=args.json_logs or config.logging.json,
    )

    service = SyncService(config)

    if args.check:
        checker = HealthChecker(config.staging.cache_path, service.client_factory)
        all_passed, _ = checker.check_all()
        checker.print_results()
        return EXIT_OK if all_passed else EXIT_ABORTED

    by_date = args.from_date is not None or args.to_date is not None
    if by_date:
        if not (args.from_date and args.to_date and args.media_dir):
            parser.error('--from, --to and --media-dir must be given together')
        if args.references:
            parser.error('give either a date range or a list of files, not both')

    with service.event_bus.subscribe(TqdmReporter()), service.event_bus.subscribe(LoggingReporter()):
        try:
            if by_date:
                handle = service.sync_date_range(args.media_dir, args.from_date, args.to_date)
            else:
                handle = service.sync_selection(args.references)
        except ValueError as e:
            logger.error(str(e))
            return EXIT_ABORTED
        batch = handle.wait()

    if batch.total == 0:
        print("No media found for the selected dates." if by_date else "No files selected.")
        return EXIT_OK

    print(batch.summary())
    for reference in failed_references(batch):
        print(f"  failed: {reference}")

    if args.report:
        report_path = ReportGenerator(batch, config.object_store.bucket).save_report(
            Path(args.report), format=args.report_format
        )
        logger.info(f"Report saved to {report_path}")

    if batch.aborted:
        return EXIT_ABORTED
    return EXIT_PARTIAL_FAILURE if batch.failed_count else EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
