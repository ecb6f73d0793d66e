"""AWS Lambda handler for the Service Request Relay.

API Gateway events are passed to the FastAPI app through Mangum.
EventBridge scheduled-rule events run one notifier cycle directly,
without going through HTTP.
"""

import asyncio
import json

from mangum import Mangum

from src.exceptions import RelayError
from src.logging.config import get_logger
from src.main import app
from src.routes.notifications import run_poll_cycle

logger = get_logger(__name__)

# Mangum converts API Gateway events to ASGI requests and back
handler = Mangum(app, lifespan="off")


def is_scheduled_event(event: dict) -> bool:
    """Whether the event was sent by an EventBridge scheduled rule."""
    return (
        isinstance(event, dict)
        and event.get("source") == "aws.events"
        and event.get("detail-type") == "Scheduled Event"
    )


def handle_scheduled_event(event: dict) -> dict:
    """
    Run one poll cycle for an EventBridge tick.

    Args:
        event: EventBridge scheduled event

    Returns:
        Dict with statusCode and a JSON body, like an HTTP invocation
    """
    logger.info(
        "Scheduled event received",
        extra={
            "context": {
                "event_id": event.get("id"),
                "rule": (event.get("resources") or [None])[0],
                "time": event.get("time"),
            }
        },
    )

    try:
        result = asyncio.run(run_poll_cycle("scheduled"))
    except RelayError as exc:
        logger.error(
            f"Scheduled poll cycle failed: {exc.message}",
            extra={"context": {"error_code": exc.error_code}},
        )
        return {
            "statusCode": exc.status_code,
            "body": json.dumps({"error": exc.message, "error_code": exc.error_code}),
        }
    except Exception as exc:
        logger.error(
            f"Scheduled poll cycle crashed: {type(exc).__name__}: {exc}",
            exc_info=exc,
        )
        return {
            "statusCode": 500,
            "body": json.dumps(
                {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}
            ),
        }

    return {
        "statusCode": 200,
        "body": result.model_dump_json(by_alias=True),
    }


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda function handler.

    Args:
        event: API Gateway or EventBridge event
        context: Lambda context object with runtime information

    Returns:
        Response dict with statusCode and body
    """
    if is_scheduled_event(event):
        return handle_scheduled_event(event)
    return handler(event, context)
