"""API routes for the scheduled status-change check and SMTP self-test."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, status

from src.auth.trigger import require_scheduled_trigger
from src.config import settings
from src.exceptions import ConfigurationError
from src.logging.config import get_logger
from src.schemas.notification import PollResponse, SmtpTestResponse
from src.services.email_service import EmailService
from src.services.notifier_service import NotifierService

logger = get_logger(__name__)

router = APIRouter(tags=["Notifications"])


async def run_poll_cycle(trigger: str) -> PollResponse:
    """
    Run one notifier cycle and build the wire summary.

    Shared by the HTTP route and the EventBridge entry point.

    Raises:
        ConfigurationError: If the Notion key or database id is missing
        RecordStoreError: If the candidate query fails
    """
    if not settings.notion_configured:
        raise ConfigurationError(message="Notion configuration missing")

    summary = await NotifierService().poll_and_notify()
    return PollResponse(
        records_found=summary.records_found,
        emails_sent=summary.emails_sent,
        errors=summary.errors,
        skipped=summary.skipped,
        duration_ms=round(summary.duration_ms, 2),
        timestamp=datetime.now(UTC).isoformat(),
        trigger=trigger,
    )


@router.api_route(
    "/check-status-changes",
    methods=["GET", "POST"],
    response_model=PollResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    responses={
        403: {
            "description": "Not a scheduled or manual-test invocation",
            "content": {
                "application/json": {
                    "example": {
                        "error": "This function can only be triggered by scheduled events or manual testing",
                        "message": "Use ?cron=true for manual testing",
                    }
                }
            },
        },
        500: {"description": "Notion configuration missing or Notion unreachable"},
    },
)
async def check_status_changes(
    request: Request,
    trigger: str = Depends(require_scheduled_trigger),
) -> PollResponse:
    """
    Email every record whose status became notifiable since the last tick.

    Each record is emailed at most once; the "Email Sent" checkbox on the
    record is the only state kept between ticks.
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.info(
        "Status check triggered",
        extra={"correlation_id": correlation_id, "context": {"trigger": trigger}},
    )
    return await run_poll_cycle(trigger)


@router.post(
    "/notifications/test-email",
    response_model=SmtpTestResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "SMTP credentials missing"},
        500: {"description": "SMTP connection or delivery failed"},
    },
)
async def send_test_email(
    trigger: str = Depends(require_scheduled_trigger),
) -> SmtpTestResponse:
    """Verify the SMTP settings by sending a plain message to the SMTP user."""
    sent_to = await EmailService().send_test()
    return SmtpTestResponse(sent_to=sent_to)
