"""Subject lines and HTML bodies for status notification emails."""

from html import escape

from pydantic import BaseModel, ConfigDict

from src.models.record import Record


class StatusMessage(BaseModel):
    """Copy shown for one status."""

    model_config = ConfigDict(frozen=True)

    title: str
    message: str
    follow_up: str


class StatusStyle(BaseModel):
    """Colours and icon used for one status."""

    model_config = ConfigDict(frozen=True)

    badge_color: str
    color: str
    border_color: str
    gradient: str
    icon: str


class EmailContentConfig(BaseModel):
    """
    Immutable text and styling for notification emails.

    Injected into NotificationContentBuilder; nothing in this module keeps
    process-wide mutable template state.
    """

    model_config = ConfigDict(frozen=True)

    default_subject: str = "Service Request Status Update"
    subjects: dict[str, str] = {
        "Completed": "Service Request Status Update: Completed",
        "In Progress": "Service Request Status Update: In Progress",
        "Approved": "Service Request Status Update: Approved",
        "Rejected": "Service Request Status Update: Rejected",
    }

    title: str = "Service Request Status Update"
    greeting: str = "Dear"
    status_update: str = "Your service request status has been updated to:"

    section_title: str = "Service Request Details:"
    labels: dict[str, str] = {
        "product_name": "Product:",
        "serial_number": "Serial Number:",
        "purchase_date": "Purchase Date:",
        "issue_type": "Issue Type:",
        "issue_details": "Issue Description & Details:",
        "engineer_date": "Preferred Engineer Date:",
        "image_url": "Product Reference Image:",
    }

    status_messages: dict[str, StatusMessage] = {
        "Completed": StatusMessage(
            title="Service Completed!",
            message=(
                "Your product has been successfully repaired. "
                "Thank you for choosing our services!"
            ),
            follow_up=(
                "If you have any questions about the service performed or need "
                "further assistance, please don't hesitate to reach out."
            ),
        ),
        "In Progress": StatusMessage(
            title="Service In Progress!",
            message="Our technicians are currently working on your product.",
            follow_up=(
                "We'll keep you updated on the progress and notify you when "
                "the service is complete."
            ),
        ),
        "Approved": StatusMessage(
            title="Service Request Approved!",
            message="We'll be in touch soon to schedule the service.",
            follow_up=(
                "Our team will contact you to confirm the service details "
                "and schedule."
            ),
        ),
        "Rejected": StatusMessage(
            title="Service Request Rejected",
            message=(
                "We regret to inform you that your service request has been "
                "rejected at this time."
            ),
            follow_up=(
                "If you'd like to discuss this decision or explore alternative "
                "options, please feel free to contact us."
            ),
        ),
    }

    status_styles: dict[str, StatusStyle] = {
        "Completed": StatusStyle(
            badge_color="#059669",
            color="#0f5132",
            border_color="#badbcc",
            gradient="linear-gradient(135deg, #d1e7dd 0%, #c3e6cb 100%)",
            icon="🎉",
        ),
        "In Progress": StatusStyle(
            badge_color="#d97706",
            color="#664d03",
            border_color="#ffecb5",
            gradient="linear-gradient(135deg, #fff3cd 0%, #ffeaa7 100%)",
            icon="🔧",
        ),
        "Approved": StatusStyle(
            badge_color="#0891b2",
            color="#055160",
            border_color="#b6effb",
            gradient="linear-gradient(135deg, #cff4fc 0%, #b6effb 100%)",
            icon="✅",
        ),
        "Rejected": StatusStyle(
            badge_color="#dc2626",
            color="#842029",
            border_color="#f5c2c7",
            gradient="linear-gradient(135deg, #f8d7da 0%, #f5c2c7 100%)",
            icon="❌",
        ),
    }
    fallback_badge_color: str = "#6b7280"

    regards: str = "Best regards,"
    team: str = "Service Team"
    website: str = "Stackseekers.com"
    website_url: str = "https://www.stackseekers.com"


DEFAULT_CONTENT = EmailContentConfig()

# Shared inline styles
_FONT = "'Segoe UI', Tahoma, Geneva, Verdana, sans-serif"
_PRIMARY = "#1a202c"
_SECONDARY = "#4a5568"
_CARD_BG = "#f7fafc"
_BORDER = "#e2e8f0"
_RADIUS = "12px"
_SHADOW = "0 4px 6px -1px rgba(0, 0, 0, 0.1), 0 2px 4px -1px rgba(0, 0, 0, 0.06)"
_LABEL_STYLE = (
    f"margin: 0 0 8px 0; color: {_PRIMARY}; font-size: 14px; font-weight: 600; "
    "text-transform: uppercase; letter-spacing: 0.05em;"
)
_VALUE_STYLE = f"margin: 0; color: {_SECONDARY}; font-size: 16px; font-weight: 500;"


class NotificationContentBuilder:
    """
    Renders the subject and HTML body of a status notification.

    Statuses without a configured template fall back to the default
    subject and a body without the status-specific panel.
    """

    def __init__(self, config: EmailContentConfig = DEFAULT_CONTENT) -> None:
        self.config = config

    def subject_for(self, status: str) -> str:
        return self.config.subjects.get(status, self.config.default_subject)

    def build(self, record: Record) -> tuple[str, str]:
        """
        Build the email for a record's current status.

        Args:
            record: Record with a non-empty status

        Returns:
            Tuple of (subject, html_body)
        """
        status = record.status or ""
        body = "".join(
            [
                self._header(record.client_name, status),
                self._details(record),
                self._status_panel(status),
                self._footer(),
            ]
        )
        return self.subject_for(status), body

    def _header(self, client_name: str, status: str) -> str:
        style = self.config.status_styles.get(status)
        badge = style.badge_color if style else self.config.fallback_badge_color
        return f"""
      <div style="font-family: {_FONT}; max-width: 650px; margin: 0 auto; background: #ffffff; border-radius: {_RADIUS}; box-shadow: {_SHADOW}; overflow: hidden;">
        <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 32px 24px; text-align: center;">
          <h1 style="color: #ffffff; margin: 0; font-size: 28px; font-weight: 600;">{escape(self.config.title)}</h1>
        </div>
        <div style="padding: 32px 24px;">
          <p style="color: {_SECONDARY}; font-size: 16px; margin: 0 0 16px 0; line-height: 1.6;">
            {escape(self.config.greeting)} <strong style="color: {_PRIMARY};">{escape(client_name)}</strong>,
          </p>
          <p style="color: {_SECONDARY}; font-size: 16px; margin: 0 0 24px 0; line-height: 1.6;">
            {escape(self.config.status_update)}
            <span style="display: inline-block; background: {badge}; color: white; padding: 6px 12px; border-radius: 20px; font-weight: 600; font-size: 14px; text-transform: uppercase;">{escape(status)}</span>
          </p>
    """

    def _field(self, key: str, value: str) -> str:
        label = escape(self.config.labels.get(key, key))
        return f"""
          <div style="background: white; padding: 16px;">
            <h4 style="{_LABEL_STYLE}">{label}</h4>
            <p style="{_VALUE_STYLE}">{escape(value)}</p>
          </div>"""

    def _details(self, record: Record) -> str:
        grid = "".join(
            self._field(key, getattr(record, key))
            for key in ("product_name", "serial_number", "purchase_date", "issue_type")
        )
        issue = f"""
        <div style="background: white; padding: 20px; margin-top: 20px; border-left: 4px solid #667eea;">
          <h4 style="{_LABEL_STYLE}">🔍 {escape(self.config.labels["issue_details"])}</h4>
          <p style="margin: 0; color: {_PRIMARY}; font-size: 16px; line-height: 1.7;">{escape(record.issue_details)}</p>
        </div>"""

        engineer = self._field("engineer_date", record.engineer_date) if record.engineer_date else ""

        image = ""
        if record.image_url:
            image = f"""
          <div style="background: white; padding: 16px; margin-top: 16px;">
            <h4 style="{_LABEL_STYLE}">{escape(self.config.labels["image_url"])}</h4>
            <div style="text-align: center;">
              <img src="{escape(record.image_url, quote=True)}" alt="Product Image" style="max-width: 100%; height: auto; border-radius: 8px; max-height: 300px;" />
            </div>
          </div>"""

        return f"""
      <div style="background: {_CARD_BG}; border: 1px solid {_BORDER}; border-radius: {_RADIUS}; padding: 24px; margin: 24px 0;">
        <h3 style="margin: 0 0 20px 0; color: {_PRIMARY}; font-size: 20px; font-weight: 600; border-bottom: 2px solid {_BORDER}; padding-bottom: 12px;">
          📋 {escape(self.config.section_title)}
        </h3>
        <div style="display: grid; grid-template-columns: 1fr 1fr; gap: 16px;">{grid}
        </div>{issue}{engineer}{image}
      </div>
    """

    def _status_panel(self, status: str) -> str:
        message = self.config.status_messages.get(status)
        style = self.config.status_styles.get(status)
        if message is None or style is None:
            return ""
        return f"""
      <div style="background: {style.gradient}; border: 1px solid {style.border_color}; border-radius: {_RADIUS}; padding: 24px; margin: 24px 0;">
        <h3 style="margin: 0 0 12px 0; color: {style.color}; font-size: 22px; font-weight: 700;">
          {style.icon} {escape(message.title)}
        </h3>
        <p style="margin: 0 0 16px 0; color: {style.color}; font-size: 16px; line-height: 1.6; font-weight: 500;">
          {escape(message.message)}
        </p>
      </div>
      <div style="background: white; border: 1px solid {_BORDER}; border-radius: {_RADIUS}; padding: 20px; margin: 16px 0;">
        <p style="margin: 0; color: {_SECONDARY}; font-size: 16px; line-height: 1.6; text-align: center; font-style: italic;">
          💡 {escape(message.follow_up)}
        </p>
      </div>
    """

    def _footer(self) -> str:
        return f"""
      <div style="background: {_CARD_BG}; border-top: 3px solid {_BORDER}; padding: 24px; margin: 24px 0 0 0; text-align: center;">
        <p style="margin: 0 0 16px 0; color: {_SECONDARY}; font-size: 16px; font-weight: 500;">{escape(self.config.regards)}</p>
        <p style="margin: 0 0 20px 0; color: {_PRIMARY}; font-size: 18px; font-weight: 600;">{escape(self.config.team)}</p>
        <a href="{escape(self.config.website_url, quote=True)}" style="color: #667eea; text-decoration: none; font-weight: 600; font-size: 16px;">
          🌐 {escape(self.config.website)}
        </a>
      </div>
        </div>
      </div>
    """
