"""Command-line interface for Personal Ledger."""

import argparse
import signal
import sys
from datetime import UTC, datetime
from pathlib import Path
from types import FrameType

from dateutil.parser import isoparse

from personal_ledger import __version__
from personal_ledger.config import DatabaseType, Settings, get_settings
from personal_ledger.container import Container
from personal_ledger.domain.value_objects import RecurrenceType
from personal_ledger.exceptions import PersonalLedgerError
from personal_ledger.logging_config import configure_logging, get_logger
from personal_ledger.services.recurrence import calculate_next_due, validate_recurrence

logger = get_logger(__name__)


def parse_instant(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def build_settings(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if getattr(args, "database", None):
        settings = settings.model_copy(
            update={
                "database_type": DatabaseType.SQLITE,
                "sqlite_path": Path(args.database),
            }
        )
    return settings


def cmd_init(args: argparse.Namespace) -> int:
    """Create the database schema."""
    settings = build_settings(args)

    if settings.database_type == DatabaseType.SQLITE:
        db_path = Path(settings.sqlite_path)
        if db_path.exists() and args.force:
            db_path.unlink()
            for suffix in ("-wal", "-shm"):
                Path(f"{db_path}{suffix}").unlink(missing_ok=True)
        db_path.parent.mkdir(parents=True, exist_ok=True)

    with Container(settings) as container:
        container.database.initialize()
    print(f"Initialized {settings.database_type.value} database")
    return 0


def cmd_process_due(args: argparse.Namespace) -> int:
    """Run a single due-transaction tick."""
    settings = build_settings(args)
    now = parse_instant(args.now) if args.now else None

    with Container(settings) as container:
        report = container.recurrence_processor.process_due_transactions(
            now, timeout=settings.tick_timeout
        )

    print(
        f"due={report.due} posted={report.posted} skipped={report.skipped} "
        f"completed={report.completed} failed={report.failed}"
        + (" (cancelled)" if report.cancelled else "")
    )
    return 1 if report.failed else 0


def cmd_run_scheduler(args: argparse.Namespace) -> int:
    """Run the periodic scheduler until SIGINT or SIGTERM."""
    settings = build_settings(args)
    if args.interval:
        settings = settings.model_copy(update={"scheduler_interval_seconds": args.interval})

    with Container(settings) as container:
        scheduler = container.scheduler

        def handle_signal(signum: int, frame: FrameType | None) -> None:
            logger.info("shutdown_signal_received", signal=signal.Signals(signum).name)
            scheduler.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        scheduler.start()
        scheduler.wait()
    return 0


def cmd_next_due(args: argparse.Namespace) -> int:
    """Preview upcoming occurrences of a schedule."""
    try:
        recur_type = RecurrenceType(args.type)
        validate_recurrence(
            args.frequency, args.day_of_week, args.day_of_month, args.month_of_year
        )
    except (ValueError, PersonalLedgerError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    start = parse_instant(args.start)
    reference = parse_instant(args.reference) if args.reference else datetime.now(UTC)

    next_due = calculate_next_due(
        reference,
        start,
        recur_type,
        args.frequency,
        args.day_of_week,
        args.day_of_month,
        args.month_of_year,
    )
    for _ in range(args.count):
        print(next_due.isoformat())
        next_due = calculate_next_due(
            next_due,
            next_due,
            recur_type,
            args.frequency,
            args.day_of_week,
            args.day_of_month,
            args.month_of_year,
        )
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"Personal Ledger v{__version__}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="personal-ledger",
        description="Personal Ledger - ledger entries and recurring transactions",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file (overrides PL_DATABASE_TYPE)",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize the database schema")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Delete an existing SQLite file first (WARNING: deletes data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # process-due command
    process_parser = subparsers.add_parser(
        "process-due", help="Post every due recurring transaction once"
    )
    process_parser.add_argument(
        "--now", help="Tick instant as ISO 8601 (default: current time)", default=None
    )
    process_parser.set_defaults(func=cmd_process_due)

    # run-scheduler command
    scheduler_parser = subparsers.add_parser(
        "run-scheduler", help="Process due transactions periodically"
    )
    scheduler_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between ticks (default: PL_SCHEDULER_INTERVAL_SECONDS)",
    )
    scheduler_parser.set_defaults(func=cmd_run_scheduler)

    # next-due command
    next_due_parser = subparsers.add_parser(
        "next-due", help="Preview the next occurrences of a schedule"
    )
    next_due_parser.add_argument("--start", required=True, help="Schedule start (ISO 8601)")
    next_due_parser.add_argument(
        "--type",
        required=True,
        choices=[t.value for t in RecurrenceType],
        help="Recurrence type",
    )
    next_due_parser.add_argument("--frequency", type=int, default=1)
    next_due_parser.add_argument(
        "--day-of-week", type=int, default=None, help="0 = Sunday .. 6 = Saturday"
    )
    next_due_parser.add_argument("--day-of-month", type=int, default=None)
    next_due_parser.add_argument("--month-of-year", type=int, default=None)
    next_due_parser.add_argument(
        "--reference", default=None, help="Compute from this instant (default: now)"
    )
    next_due_parser.add_argument(
        "--count", type=int, default=1, help="Number of occurrences to show"
    )
    next_due_parser.set_defaults(func=cmd_next_due)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(build_settings(args))

    try:
        result: int = args.func(args)
    except PersonalLedgerError as exc:
        logger.error(
            "command_failed",
            command=args.command,
            error_code=exc.error_code,
            context=exc.context,
        )
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
