"""Health check endpoint."""

import time

from fastapi import APIRouter

from src.config import settings

# Process start, used for uptime reporting
_started_at = time.time()

router = APIRouter(tags=["Health"])


@router.get("/status")
async def get_status() -> dict:
    """
    Report liveness and which integrations are configured.

    Never calls Notion or SMTP, so it stays fast and works while either
    is down. Secrets are reported only as present or absent.
    """
    return {
        "status": "ok",
        "version": settings.api_version,
        "uptime_seconds": int(time.time() - _started_at),
        "notion_configured": settings.notion_configured,
        "smtp_configured": bool(settings.smtp_user and settings.smtp_pass),
    }
