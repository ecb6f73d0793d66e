"""Service request record parsed from a Notion page."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.logging.config import get_logger

logger = get_logger(__name__)


class RecordSchema(BaseModel):
    """
    Notion property names for each record field.

    Kept separate from the parser so a renamed database column only needs
    a different schema instance.
    """

    model_config = ConfigDict(frozen=True)

    status: str = "Status"
    contact_email: str = "Email"
    notification_sent: str = "Email Sent"
    notification_sent_at: str = "Email Sent Date"
    client_name: str = "Full Name"
    product_name: str = "Product"
    serial_number: str = "Serial Number"
    purchase_date: str = "Purchase Date"
    issue_type: str = "Issue Type"
    issue_details: str = "Issue Details"
    engineer_date: str = "Engineer Date"
    image_url: str = "Image Upload"
    date_received: str = "Date Received"


DEFAULT_SCHEMA = RecordSchema()


def _prop(properties: dict[str, Any], name: str, kind: str) -> Any:
    """Return `properties[name][kind]`, or None when any level is missing."""
    value = properties.get(name)
    if not isinstance(value, dict):
        return None
    return value.get(kind)


def _plain_text(properties: dict[str, Any], name: str, kind: str) -> str:
    """Text of the first fragment of a title or rich_text property."""
    fragments = _prop(properties, name, kind)
    if not isinstance(fragments, list) or not fragments:
        return ""
    first = fragments[0]
    if not isinstance(first, dict):
        return ""
    text = first.get("text")
    if isinstance(text, dict) and isinstance(text.get("content"), str):
        return text["content"]
    plain = first.get("plain_text")
    return plain if isinstance(plain, str) else ""


def _date_start(properties: dict[str, Any], name: str) -> Optional[str]:
    date = _prop(properties, name, "date")
    if isinstance(date, dict) and isinstance(date.get("start"), str):
        return date["start"]
    return None


def _named_option(properties: dict[str, Any], name: str, kind: str) -> Optional[str]:
    """Name of a status or select option."""
    option = _prop(properties, name, kind)
    if isinstance(option, dict) and isinstance(option.get("name"), str):
        return option["name"]
    return None


def _string(properties: dict[str, Any], name: str, kind: str) -> str:
    value = _prop(properties, name, kind)
    return value.strip() if isinstance(value, str) else ""


class Record(BaseModel):
    """
    Transient view of one service request held in Notion.

    Attributes:
        id: Notion page id
        status: Lifecycle status name (None when unset)
        contact_email: Notification target, empty when unset
        notification_sent: "Email Sent" checkbox, gates at-most-once delivery
        notification_sent_at: ISO 8601 time the flag was set
        client_name .. date_received: display fields used for rendering only
    """

    id: str = Field(..., description="Notion page id")
    status: Optional[str] = Field(None, description="Status option name")
    contact_email: str = Field(default="", description="Contact email")
    notification_sent: bool = Field(default=False, description="Email Sent flag")
    notification_sent_at: Optional[str] = Field(
        None, description="ISO 8601 time the email was recorded as sent"
    )

    client_name: str = "Unknown"
    product_name: str = ""
    serial_number: str = ""
    purchase_date: str = ""
    issue_type: str = ""
    issue_details: str = ""
    engineer_date: str = ""
    image_url: str = ""
    date_received: Optional[str] = None

    @classmethod
    def from_page(
        cls, page: Any, schema: RecordSchema = DEFAULT_SCHEMA
    ) -> Optional["Record"]:
        """
        Parse a Notion page object into a Record.

        Missing or oddly shaped properties become defaults. Returns None
        only when the page has no id, which callers treat as malformed.

        Args:
            page: Page object as returned by the Notion API
            schema: Property names to read

        Returns:
            Record, or None if the page cannot be identified
        """
        if not isinstance(page, dict) or not page.get("id"):
            logger.warning(
                "Skipping page without id",
                extra={"context": {"page_type": type(page).__name__}},
            )
            return None

        properties = page.get("properties")
        if not isinstance(properties, dict):
            properties = {}

        sent = _prop(properties, schema.notification_sent, "checkbox")

        return cls(
            id=str(page["id"]),
            status=_named_option(properties, schema.status, "status")
            or _named_option(properties, schema.status, "select"),
            contact_email=_string(properties, schema.contact_email, "email"),
            notification_sent=sent is True,
            notification_sent_at=_date_start(properties, schema.notification_sent_at),
            client_name=_plain_text(properties, schema.client_name, "title")
            or "Unknown",
            product_name=_plain_text(properties, schema.product_name, "rich_text"),
            serial_number=_plain_text(properties, schema.serial_number, "rich_text"),
            purchase_date=_date_start(properties, schema.purchase_date) or "",
            issue_type=_named_option(properties, schema.issue_type, "select") or "",
            issue_details=_plain_text(properties, schema.issue_details, "rich_text"),
            engineer_date=_date_start(properties, schema.engineer_date) or "",
            image_url=_string(properties, schema.image_url, "url"),
            date_received=_date_start(properties, schema.date_received),
        )


class IssueTypeOption(BaseModel):
    """One option of the database's "Issue Type" select property."""

    name: str
    color: Optional[str] = None
