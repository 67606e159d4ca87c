"""
Command line entry point: sync a local folder tree into Google Photos albums.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from photos_folder_sync.client.auth import build_session
from photos_folder_sync.config import AppConfig
from photos_folder_sync.engine import SyncEngine
from photos_folder_sync.exceptions import ConfigurationError, SyncError
from photos_folder_sync.reporting.report_generator import ReportGenerator
from photos_folder_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Sync a local folder tree into Google Photos: one album per top-level folder'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--root',
        type=str,
        help='Local folder to sync (overrides sync.root_dir)'
    )
    parser.add_argument(
        '--directory-workers',
        type=_positive_int,
        help='Folders synced concurrently (overrides sync.directory_workers)'
    )
    parser.add_argument(
        '--upload-workers',
        type=_positive_int,
        help='Concurrent uploads per folder (overrides sync.upload_workers)'
    )
    parser.add_argument(
        '--report',
        type=str,
        help='Also write the run report to this file'
    )
    parser.add_argument(
        '--report-format',
        choices=['text', 'json'],
        default='text',
        help='Format of the --report file (default: text)'
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    overrides = {
        'sync': {
            'root_dir': args.root,
            'directory_workers': args.directory_workers,
            'upload_workers': args.upload_workers,
        }
    }
    try:
        return AppConfig.from_yaml(args.config, validate=True, overrides=overrides)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(str(e)) from e


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(
        log_file=config.logging.file,
        level=config.logging.level,
        enable_json=config.logging.enable_json,
    )

    try:
        session = build_session(config.google_photos)
        engine = SyncEngine.from_config(config, session, show_progress=not args.no_progress)
        summary = engine.run(config.sync.root_path)
    except SyncError as e:
        logger.error(f"Sync aborted: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Sync interrupted before any directory was processed")
        return EXIT_CANCELLED

    report = ReportGenerator(summary, log_file=Path(config.logging.file))
    print(report.generate_text_report())
    if args.report:
        path = report.save_report(Path(args.report), format=args.report_format)
        logger.info(f"Report saved to: {path.absolute()}")

    return EXIT_CANCELLED if summary.cancelled else EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
