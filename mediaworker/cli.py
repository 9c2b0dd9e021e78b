"""
Command Line Interface for the media worker.
"""

import argparse
import logging
import signal
import threading
from typing import List, Optional

from .config import WorkerConfig
from .quality import ladder_height, tiers_for_height
from .service import MediaWorker


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('sh').setLevel(logging.WARNING)

    return logging.getLogger('mediaworker')


def get_config(args: argparse.Namespace) -> WorkerConfig:
    """Get worker configuration from environment and CLI overrides."""
    config = WorkerConfig.from_env()

    if getattr(args, 'coordinator_url', None):
        config.coordinator_url = args.coordinator_url
    if getattr(args, 'batch_size', None):
        config.batch_size = args.batch_size
    if getattr(args, 'poll_interval', None) is not None:
        config.poll_interval = args.poll_interval
    if getattr(args, 'temp_dir', None):
        config.temp_dir = args.temp_dir
    if getattr(args, 'report_failures', False):
        config.report_failures = True

    return config


def build_worker(args: argparse.Namespace, logger: logging.Logger) -> Optional[MediaWorker]:
    """Validate configuration and create the worker, or log why not."""
    config = get_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return None

    logger.info(f"Coordinator: {config.coordinator_url}")
    logger.info(f"Batch size: {config.batch_size}")
    logger.info(f"Poll interval: {config.poll_interval}s")
    if config.report_failures:
        logger.info("Unsupported files will be reported as invalid-file")
    return MediaWorker(config, logger=logger)


def add_worker_arguments(parser: argparse.ArgumentParser) -> None:
    """Add worker configuration overrides to a parser."""
    group = parser.add_argument_group('Worker')
    group.add_argument('--coordinator-url', help='Override COORDINATOR_URL')
    group.add_argument('-b', '--batch-size', type=int, help='Override WORKER_BATCH_SIZE')
    group.add_argument('--temp-dir', help='Override WORKER_TEMP_DIR')
    group.add_argument('--report-failures', action='store_true',
                       help='Report unsupported files to the coordinator as invalid-file')
    group.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command: poll until interrupted."""
    logger = setup_logging(args.verbose)

    worker = build_worker(args, logger)
    if worker is None:
        return 1

    stop = threading.Event()

    def request_stop(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        stop.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    worker.start()
    try:
        while not stop.wait(1.0):
            pass
    finally:
        worker.shutdown(timeout=args.shutdown_timeout)
        status = worker.get_status()
        logger.info(
            f"Finished: {status['finished']}, failed: {status['failed']}, "
            f"invalid: {status['invalid']}, previews: {status['derivatives_uploaded']}"
        )
    return 0


def cmd_once(args: argparse.Namespace) -> int:
    """Execute once command: a single fetch/process cycle."""
    logger = setup_logging(args.verbose)

    worker = build_worker(args, logger)
    if worker is None:
        return 1

    try:
        succeeded = worker.run_once()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    finally:
        worker.shutdown()

    status = worker.get_status()
    print(f"Finished: {status['finished']}")
    print(f"Failed: {status['failed']}")
    print(f"Invalid: {status['invalid']}")
    return 0 if succeeded else 1


def cmd_ladder(args: argparse.Namespace) -> int:
    """Execute ladder command: show the tiers a source would get."""
    resolution = ladder_height(args.width, args.height)
    tiers = tiers_for_height(resolution)
    if tiers:
        print(f"{args.width}x{args.height}: " + ', '.join(f"{t.label}p" for t in tiers))
    else:
        print(f"{args.width}x{args.height}: no previews")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='mediaworker',
        description='Derivative generation worker for storage shards',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run     Poll the coordinator until interrupted
  once    Run a single poll cycle and exit
  ladder  Show which previews a WIDTH x HEIGHT source gets

Configuration comes from COORDINATOR_URL, COORDINATOR_API_KEY and
COORDINATOR_SERVER_ID (plus optional WORKER_* variables).
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    run_parser = subparsers.add_parser('run', help='Poll the coordinator until interrupted')
    run_parser.add_argument('-i', '--poll-interval', type=float,
                            help='Override WORKER_POLL_INTERVAL (seconds)')
    run_parser.add_argument('--shutdown-timeout', type=float, default=60.0,
                            help='Seconds to wait for running jobs on shutdown (default: 60)')
    add_worker_arguments(run_parser)

    once_parser = subparsers.add_parser('once', help='Run a single poll cycle')
    add_worker_arguments(once_parser)

    ladder_parser = subparsers.add_parser('ladder', help='Show previews for a source size')
    ladder_parser.add_argument('width', type=int)
    ladder_parser.add_argument('height', type=int)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return cmd_run(parsed_args)
    elif parsed_args.command == 'once':
        return cmd_once(parsed_args)
    elif parsed_args.command == 'ladder':
        return cmd_ladder(parsed_args)

    return 1
