"""Record repository for service requests stored in a Notion database."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from src.config import settings
from src.exceptions import NotFoundError, RelayError
from src.logging.config import get_logger
from src.models.record import DEFAULT_SCHEMA, IssueTypeOption, Record, RecordSchema
from src.repositories.base import BaseRepository

logger = get_logger(__name__)

# Largest page size the Notion query endpoint accepts
PAGE_SIZE = 100


@dataclass
class UpstreamResponse:
    """Status, body and content type of a forwarded Notion response."""

    status_code: int
    body: bytes
    content_type: str = "application/json"


# Notion wording for a PATCH naming a property the database lacks
MISSING_PROPERTY_MARKERS = ("is not a property that exists", "could not find property")


def _is_missing_property(response: httpx.Response) -> bool:
    try:
        payload = response.json()
    except ValueError:
        return False
    if not isinstance(payload, dict):
        return False
    message = str(payload.get("message") or "").lower()
    return any(marker in message for marker in MISSING_PROPERTY_MARKERS)


class RecordRepository(BaseRepository):
    """
    Repository for service request records in Notion.

    Provides async methods for querying notification candidates,
    recording that a notification was sent, and reading database
    metadata.
    """

    def __init__(
        self,
        database_id: str | None = None,
        notifiable_statuses: Iterable[str] | None = None,
        schema: RecordSchema = DEFAULT_SCHEMA,
        **kwargs: Any,
    ) -> None:
        """
        Initialize RecordRepository.

        Args:
            database_id: Notion database id (defaults to settings)
            notifiable_statuses: Statuses to query for (defaults to settings)
            schema: Notion property names
            **kwargs: Passed through to BaseRepository
        """
        super().__init__(**kwargs)
        self.database_id = database_id or settings.notion_database_id
        statuses = (
            notifiable_statuses
            if notifiable_statuses is not None
            else settings.notifiable_status_set
        )
        self.notifiable_statuses = sorted(statuses)
        self.schema = schema

    def build_notifiable_filter(self) -> dict[str, Any]:
        """
        Build the query body selecting unsent records in a notifiable status.

        The filter runs upstream so only candidates cross the wire.

        Returns:
            Notion database query body (filter and sorts)
        """
        status_clauses = [
            {"property": self.schema.status, "status": {"equals": status}}
            for status in self.notifiable_statuses
        ]
        return {
            "filter": {
                "and": [
                    {"or": status_clauses},
                    {
                        "property": self.schema.notification_sent,
                        "checkbox": {"equals": False},
                    },
                ]
            },
            "sorts": [
                {"property": self.schema.date_received, "direction": "descending"}
            ],
            "page_size": PAGE_SIZE,
        }

    async def query_notifiable(self) -> list[Record]:
        """
        Fetch every record that may need a notification.

        Follows Notion's cursor pagination until has_more is false.
        Pages without an id are dropped with a warning.

        Returns:
            Parsed records; empty list when nothing matches

        Raises:
            RecordStoreError: If Notion is unreachable or rejects the query
        """
        if not self.notifiable_statuses:
            return []

        body = self.build_notifiable_filter()
        path = f"/v1/databases/{self.database_id}/query"
        records: list[Record] = []

        while True:
            data = await self.request_json("POST", path, json=body)
            for page in data.get("results") or []:
                record = Record.from_page(page, self.schema)
                if record is not None:
                    records.append(record)

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
            body = {**body, "start_cursor": cursor}

        logger.info(
            "Queried notifiable records",
            extra={
                "context": {
                    "count": len(records),
                    "statuses": self.notifiable_statuses,
                }
            },
        )
        return records

    async def mark_notified(self, record_id: str) -> bool:
        """
        Set the notification flag and timestamp on a record.

        A 400 whose message says the "Email Sent" property does not exist
        is logged and treated as success. Any other rejection is a failure.

        Args:
            record_id: Notion page id

        Returns:
            True if the flag was written (or the property is missing),
            False on any other failure
        """
        now = datetime.now(UTC).isoformat()
        body = {
            "properties": {
                self.schema.notification_sent: {"checkbox": True},
                self.schema.notification_sent_at: {"date": {"start": now}},
            }
        }

        try:
            response = await self.request("PATCH", f"/v1/pages/{record_id}", json=body)
        except RelayError as exc:
            logger.error(
                f"Failed to update page {record_id}: {exc}",
                extra={"context": {"record_id": record_id}},
            )
            return False

        if response.status_code == httpx.codes.BAD_REQUEST and _is_missing_property(
            response
        ):
            logger.warning(
                f'Notion rejected flag update for {record_id}; the "'
                f'{self.schema.notification_sent}" property may not exist yet',
                extra={
                    "context": {
                        "record_id": record_id,
                        "body": response.text[:500],
                    }
                },
            )
            return True

        if response.is_error:
            logger.warning(
                f"Failed to update page {record_id}: {response.status_code}",
                extra={
                    "context": {
                        "record_id": record_id,
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    }
                },
            )
            return False

        logger.info(
            "Record marked as notified",
            extra={"context": {"record_id": record_id, "sent_at": now}},
        )
        return True

    async def attach_image(self, record_id: str, url: str) -> None:
        """
        Point the record's image property at a public URL.

        Raises:
            RecordStoreError: If Notion rejects the update
        """
        body = {"properties": {self.schema.image_url: {"url": url}}}
        await self.request_json("PATCH", f"/v1/pages/{record_id}", json=body)
        logger.info(
            "Image attached to record",
            extra={"context": {"record_id": record_id, "url": url}},
        )

    async def get_issue_types(self) -> list[IssueTypeOption]:
        """
        Read the options of the database's "Issue Type" select property.

        Raises:
            NotFoundError: If the property is missing or not a select
            RecordStoreError: If Notion is unreachable or rejects the call
        """
        database = await self.request_json("GET", f"/v1/databases/{self.database_id}")
        prop = (database.get("properties") or {}).get(self.schema.issue_type)

        if not isinstance(prop, dict) or prop.get("type") != "select":
            raise NotFoundError(
                message=f"{self.schema.issue_type} property not found or not a select field",
                resource=self.schema.issue_type,
            )

        options = (prop.get("select") or {}).get("options") or []
        return [
            IssueTypeOption(name=option["name"], color=option.get("color"))
            for option in options
            if isinstance(option, dict) and option.get("name")
        ]

    async def forward(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: bytes | None = None,
        content_type: str = "application/json",
        version: str | None = None,
    ) -> UpstreamResponse:
        """
        Send a request to Notion unchanged and capture the raw response.

        Non-2xx responses are returned as-is for the caller to relay.

        Raises:
            ConfigurationError: If no API key is configured
            RecordStoreError: On transport failure or timeout
        """
        response = await self.request(
            method,
            path,
            content=body or None,
            params=params or None,
            version=version,
            content_type=content_type,
        )
        return UpstreamResponse(
            status_code=response.status_code,
            body=response.content,
            content_type=response.headers.get("content-type", "application/json"),
        )
