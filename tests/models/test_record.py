"""Tests for parsing Notion pages into Record."""

from src.models.record import Record, RecordSchema


def make_page(**overrides) -> dict:
    """Build a Notion page object with every property populated."""
    properties = {
        "Status": {"type": "status", "status": {"name": "Completed"}},
        "Email": {"type": "email", "email": "jane@example.com"},
        "Email Sent": {"type": "checkbox", "checkbox": False},
        "Email Sent Date": {"type": "date", "date": None},
        "Full Name": {"type": "title", "title": [{"text": {"content": "Jane Doe"}}]},
        "Product": {"type": "rich_text", "rich_text": [{"text": {"content": "Router X1"}}]},
        "Serial Number": {"type": "rich_text", "rich_text": [{"text": {"content": "SN-42"}}]},
        "Purchase Date": {"type": "date", "date": {"start": "2025-01-15"}},
        "Issue Type": {"type": "select", "select": {"name": "Hardware"}},
        "Issue Details": {"type": "rich_text", "rich_text": [{"text": {"content": "No power"}}]},
        "Engineer Date": {"type": "date", "date": {"start": "2025-02-01"}},
        "Image Upload": {"type": "url", "url": "https://cdn.example.com/x.png"},
        "Date Received": {"type": "date", "date": {"start": "2025-01-20T10:00:00.000Z"}},
    }
    properties.update(overrides)
    return {"object": "page", "id": "page-1", "properties": properties}


def test_from_page_reads_all_fields():
    """Every mapped property is read from its Notion shape."""
    record = Record.from_page(make_page())

    assert record.id == "page-1"
    assert record.status == "Completed"
    assert record.contact_email == "jane@example.com"
    assert record.notification_sent is False
    assert record.notification_sent_at is None
    assert record.client_name == "Jane Doe"
    assert record.product_name == "Router X1"
    assert record.serial_number == "SN-42"
    assert record.purchase_date == "2025-01-15"
    assert record.issue_type == "Hardware"
    assert record.issue_details == "No power"
    assert record.engineer_date == "2025-02-01"
    assert record.image_url == "https://cdn.example.com/x.png"
    assert record.date_received == "2025-01-20T10:00:00.000Z"


def test_from_page_reads_sent_flag_and_date():
    """A checked flag and its date are carried through."""
    record = Record.from_page(
        make_page(
            **{
                "Email Sent": {"checkbox": True},
                "Email Sent Date": {"date": {"start": "2025-03-01T09:00:00+00:00"}},
            }
        )
    )

    assert record.notification_sent is True
    assert record.notification_sent_at == "2025-03-01T09:00:00+00:00"


def test_from_page_accepts_select_status():
    """Databases using a select column for status parse the same way."""
    record = Record.from_page(make_page(Status={"select": {"name": "Approved"}}))

    assert record.status == "Approved"


def test_from_page_defaults_missing_properties():
    """A page with no properties parses to defaults instead of failing."""
    record = Record.from_page({"id": "page-2"})

    assert record.id == "page-2"
    assert record.status is None
    assert record.contact_email == ""
    assert record.notification_sent is False
    assert record.client_name == "Unknown"
    assert record.product_name == ""
    assert record.date_received is None


def test_from_page_tolerates_odd_shapes():
    """Nulls, empty lists and wrong types fall back to defaults."""
    record = Record.from_page(
        make_page(
            Status={"status": None},
            Email={"email": None},
            **{
                "Full Name": {"title": []},
                "Product": {"rich_text": "not-a-list"},
                "Email Sent": {"checkbox": "yes"},
                "Purchase Date": {"date": {"start": None}},
            },
        )
    )

    assert record.status is None
    assert record.contact_email == ""
    assert record.client_name == "Unknown"
    assert record.product_name == ""
    assert record.notification_sent is False
    assert record.purchase_date == ""


def test_from_page_falls_back_to_plain_text():
    """Rich text fragments without a text object use plain_text."""
    record = Record.from_page(
        make_page(Product={"rich_text": [{"plain_text": "Switch S2"}]})
    )

    assert record.product_name == "Switch S2"


def test_from_page_without_id_returns_none():
    """Only a page without an id is unparseable."""
    assert Record.from_page({"properties": {}}) is None
    assert Record.from_page({"id": ""}) is None
    assert Record.from_page("not-a-page") is None


def test_from_page_uses_custom_schema():
    """Renamed Notion columns are handled by a different schema."""
    schema = RecordSchema(status="Stage", contact_email="Customer Email")
    page = {
        "id": "page-3",
        "properties": {
            "Stage": {"status": {"name": "Rejected"}},
            "Customer Email": {"email": "bob@example.com"},
        },
    }

    record = Record.from_page(page, schema)

    assert record.status == "Rejected"
    assert record.contact_email == "bob@example.com"


def test_from_page_strips_blank_email():
    """A whitespace-only email parses as missing."""
    record = Record.from_page(make_page(Email={"type": "email", "email": "   "}))

    assert record.contact_email == ""
