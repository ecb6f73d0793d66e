"""Status-change notifier: emails each notifiable record at most once.

The only coordination between poll cycles is the record's "Email Sent"
checkbox in Notion. Within one record, dispatch strictly precedes the
flag write; a failed dispatch leaves the flag untouched so the next tick
retries. If the flag write fails after a successful dispatch the email
still counts as sent, and the next tick may send a duplicate.
"""

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from src.config import settings
from src.logging.config import get_logger
from src.models.record import Record
from src.repositories.record_repository import RecordRepository
from src.services.email_service import EmailService
from src.services.email_templates import NotificationContentBuilder

logger = get_logger(__name__)


class NotificationOutcome(str, Enum):
    """Result of evaluating one record."""

    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PollSummary:
    """Counts for one poll cycle."""

    records_found: int = 0
    emails_sent: int = 0
    errors: int = 0
    skipped: int = 0
    duration_ms: float = 0.0

    def record(self, outcome: NotificationOutcome) -> None:
        if outcome is NotificationOutcome.SENT:
            self.emails_sent += 1
        elif outcome is NotificationOutcome.FAILED:
            self.errors += 1
        else:
            self.skipped += 1


class NotifierService:
    """
    Orchestrates one poll-and-notify cycle.

    Records are processed concurrently, at most max_concurrency at a
    time so a backlog does not open a burst of SMTP sessions. They share
    no mutable state besides the summary, which is only touched from the
    event loop.
    """

    def __init__(
        self,
        repository: RecordRepository | None = None,
        email_service: EmailService | None = None,
        content_builder: NotificationContentBuilder | None = None,
        notifiable_statuses: Iterable[str] | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        """
        Initialize NotifierService.

        Args:
            repository: RecordRepository instance (creates new if None)
            email_service: EmailService instance (creates new if None)
            content_builder: Template renderer (default content if None)
            notifiable_statuses: Statuses that trigger an email
                (defaults to settings)
            max_concurrency: Records processed at once (defaults to settings)
        """
        self.notifiable_statuses = frozenset(
            notifiable_statuses
            if notifiable_statuses is not None
            else settings.notifiable_status_set
        )
        self.repository = repository or RecordRepository(
            notifiable_statuses=self.notifiable_statuses
        )
        self.email_service = email_service or EmailService()
        self.content_builder = content_builder or NotificationContentBuilder()
        self.max_concurrency = max(1, max_concurrency or settings.smtp_max_concurrency)

    async def poll_and_notify(self) -> PollSummary:
        """
        Run one full poll cycle.

        Returns:
            PollSummary with records found, emails sent and errors

        Raises:
            RecordStoreError: If the candidate query fails; no email is
                sent in that case
        """
        start_time = time.time()
        summary = PollSummary()

        records = await self.repository.query_notifiable()
        summary.records_found = len(records)
        logger.info(
            "Poll cycle started",
            extra={"context": {"records_found": summary.records_found}},
        )

        limit = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._check_isolated(record, limit) for record in records)
        )
        for outcome in outcomes:
            summary.record(outcome)

        summary.duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Poll cycle completed",
            extra={
                "context": {
                    "records_found": summary.records_found,
                    "emails_sent": summary.emails_sent,
                    "errors": summary.errors,
                    "skipped": summary.skipped,
                    "duration_ms": round(summary.duration_ms, 2),
                }
            },
        )
        return summary

    async def _check_isolated(
        self, record: Record, limit: asyncio.Semaphore
    ) -> NotificationOutcome:
        # One record's failure must never abort the batch
        try:
            async with limit:
                return await self.check_record(record)
        except Exception as exc:
            logger.error(
                f"Error processing record {record.id}: {exc}",
                exc_info=exc,
                extra={"context": {"record_id": record.id}},
            )
            return NotificationOutcome.FAILED

    async def evaluate_and_notify(self, record: Record) -> bool:
        """
        Send the status email for a record if it is a candidate.

        Args:
            record: Record fetched in this poll cycle

        Returns:
            True if an email was sent
        """
        return await self.check_record(record) is NotificationOutcome.SENT

    async def check_record(self, record: Record) -> NotificationOutcome:
        """
        Evaluate one record and notify its contact when it qualifies.

        Skips, in order: records without email or status, records whose
        flag is already set, and records in a non-notifiable status.
        On successful dispatch the flag is written back and the local
        record is updated to match.

        Args:
            record: Record fetched in this poll cycle

        Returns:
            SENT, SKIPPED, or FAILED when the email could not be sent
        """
        if not record.contact_email.strip() or not record.status:
            logger.info(
                f"Skipping record {record.id}: missing email or status",
                extra={"context": {"record_id": record.id}},
            )
            return NotificationOutcome.SKIPPED

        if record.notification_sent:
            logger.info(
                f"Skipping record {record.id}: email already sent",
                extra={
                    "context": {
                        "record_id": record.id,
                        "status": record.status,
                        "sent_at": record.notification_sent_at,
                    }
                },
            )
            return NotificationOutcome.SKIPPED

        if record.status not in self.notifiable_statuses:
            logger.debug(
                f"Skipping record {record.id}: status not notifiable",
                extra={"context": {"record_id": record.id, "status": record.status}},
            )
            return NotificationOutcome.SKIPPED

        subject, body = self.content_builder.build(record)
        sent = await self.email_service.send(record.contact_email, subject, body)
        if not sent:
            logger.warning(
                f"Failed to send email for record {record.id}; will retry next tick",
                extra={"context": {"record_id": record.id, "status": record.status}},
            )
            return NotificationOutcome.FAILED

        try:
            flagged = await self.repository.mark_notified(record.id)
        except Exception as exc:
            logger.warning(
                f"Flag update raised for record {record.id}: {exc}",
                extra={"context": {"record_id": record.id}},
            )
            flagged = False

        if not flagged:
            logger.warning(
                f"Email sent but failed to update record {record.id}; "
                "it may be notified again on the next tick",
                extra={"context": {"record_id": record.id, "status": record.status}},
            )

        record.notification_sent = True
        record.notification_sent_at = datetime.now(UTC).isoformat()

        logger.info(
            "Notification sent",
            extra={
                "context": {
                    "record_id": record.id,
                    "status": record.status,
                    "flag_written": flagged,
                }
            },
        )
        return NotificationOutcome.SENT
