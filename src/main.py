"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config import settings
from src.exceptions import RelayError
from src.handlers.exception_handler import (
    generic_exception_handler,
    http_exception_handler,
    relay_exception_handler,
    validation_exception_handler,
)
from src.logging.config import configure_logging
from src.middleware.logging import LoggingMiddleware
from src.middleware.request_validation import RequestSizeValidationMiddleware
from src.routes import issue_types, notifications, proxy, status, uploads

# Configure logging before creating the app
configure_logging()

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
## Service Request Relay

Serverless handlers behind the service-request form. Requests are stored
as pages in a Notion database; customers are emailed when their request
changes status.

### Endpoints

- **Status notifications**: `/check-status-changes` runs on a schedule and
  emails each record at most once per notifiable status change
- **Notion proxy**: `/notion?path=/v1/...` forwards form calls with the
  server-side token
- **Image staging**: `/uploads` keeps images for 24 hours behind a public
  `/files/{filename}` URL
- **Form metadata**: `/issue-types` lists the Issue Type options

### Triggering a check manually

```
GET /check-status-changes?cron=true
```

Add `&secret=...` when `CRON_SECRET` is configured.
""",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Register middleware (last added = outermost layer)
app.add_middleware(RequestSizeValidationMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Notion-Version",
        "Authorization",
        "X-Requested-With",
        "X-Request-ID",
    ],
    max_age=86400,
)

# Register exception handlers
app.add_exception_handler(RelayError, relay_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register routers
app.include_router(notifications.router)
app.include_router(proxy.router)
app.include_router(uploads.router)
app.include_router(issue_types.router)
app.include_router(status.router)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        Dict with welcome message and docs link
    """
    return {
        "message": f"Welcome to {settings.api_title}",
        "version": settings.api_version,
        "docs": "/docs",
        "health": "/status",
    }
