#!/usr/bin/env python3
"""
CLI for running the status-change notifier locally.

Provides commands to run one poll cycle, list the current candidates
without sending anything, and send an SMTP test email.
"""

import argparse
import asyncio
import sys

from src.config import settings
from src.exceptions import RelayError
from src.logging.config import configure_logging
from src.repositories.record_repository import RecordRepository
from src.services.email_service import EmailService
from src.services.notifier_service import NotifierService


async def cmd_run(dry_run: bool) -> None:
    """
    Run one poll cycle, or only list candidates when dry_run is set.

    Args:
        dry_run: List candidate records without emailing or flagging them
    """
    if dry_run:
        records = await RecordRepository().query_notifiable()
        if not records:
            print("No candidate records.")
            return

        print(f"{'Record ID':<38} {'Status':<14} {'Email':<32} {'Received'}")
        print("-" * 100)
        for record in records:
            print(
                f"{record.id:<38} {record.status or '-':<14} "
                f"{record.contact_email or '-':<32} {record.date_received or '-'}"
            )
        print(f"\n{len(records)} candidate record(s); nothing was sent.")
        return

    summary = await NotifierService().poll_and_notify()
    print("✓ Poll cycle complete")
    print(f"  Records found: {summary.records_found}")
    print(f"  Emails sent:   {summary.emails_sent}")
    print(f"  Errors:        {summary.errors}")
    print(f"  Skipped:       {summary.skipped}")
    print(f"  Duration:      {summary.duration_ms:.0f}ms")


async def cmd_test_email() -> None:
    """Send the SMTP self-test message."""
    sent_to = await EmailService().send_test()
    print(f"✓ Test email sent to {sent_to}")


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Run the Service Request Relay status notifier",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    run_parser = subparsers.add_parser("run", help="Run one poll cycle")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List candidate records without sending email",
    )

    subparsers.add_parser("test-email", help="Send an SMTP test email")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging()

    try:
        if args.command == "run":
            if not settings.notion_configured:
                print("✗ NOTION_API_KEY and NOTION_DATABASE_ID must be set")
                sys.exit(1)
            asyncio.run(cmd_run(args.dry_run))
        elif args.command == "test-email":
            asyncio.run(cmd_test_email())
    except RelayError as e:
        print(f"✗ {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
