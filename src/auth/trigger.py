"""FastAPI dependency restricting endpoints to scheduler invocations."""

import hmac
from collections.abc import Mapping

from fastapi import Request

from src.config import settings
from src.exceptions import ForbiddenError

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"

FORBIDDEN_MESSAGE = (
    "This function can only be triggered by scheduled events or manual testing"
)
FORBIDDEN_HINT = "Use ?cron=true for manual testing"


def _secret_matches(candidate: str | None, secret: str) -> bool:
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def identify_trigger(
    headers: Mapping[str, str],
    query_params: Mapping[str, str],
    secret: str | None = None,
) -> str | None:
    """
    Decide whether a request came from the scheduler or a manual test.

    When a secret is configured, a scheduler header must carry it as its
    value and a manual call must pass it as ?secret=.

    Args:
        headers: Request headers (case-insensitive mapping)
        query_params: Request query parameters
        secret: Shared secret, or None to accept any non-empty signal

    Returns:
        "scheduled", "manual", or None if neither signal is valid
    """
    for name in settings.trigger_header_names:
        value = headers.get(name)
        if not value:
            continue
        if secret is None or _secret_matches(value, secret):
            return TRIGGER_SCHEDULED

    flag = query_params.get(settings.manual_trigger_param, "")
    if flag.lower() == "true":
        if secret is None or _secret_matches(query_params.get("secret"), secret):
            return TRIGGER_MANUAL

    return None


async def require_scheduled_trigger(request: Request) -> str:
    """
    Reject requests that do not carry a scheduler or manual-test signal.

    Use as a route dependency; no work is done for rejected calls.

    Returns:
        How the request was triggered ("scheduled" or "manual")

    Raises:
        ForbiddenError: If no valid trigger signal is present
    """
    trigger = identify_trigger(
        request.headers, request.query_params, settings.cron_secret
    )
    if trigger is None:
        raise ForbiddenError(message=FORBIDDEN_MESSAGE, hint=FORBIDDEN_HINT)

    request.state.trigger = trigger
    return trigger
