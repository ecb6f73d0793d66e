"""SMTP email dispatcher for notification emails."""

import asyncio
import smtplib
import ssl
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from src.config import settings
from src.exceptions import BadRequestError, EmailDeliveryError
from src.logging.config import get_logger

logger = get_logger(__name__)


class EmailService:
    """
    Sends transactional email through an SMTP server.

    smtplib is blocking, so every exchange runs in a worker thread and
    the event loop stays free for the other records in a poll cycle.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_ssl: bool | None = None,
        from_email: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize EmailService.

        Args:
            host: SMTP server hostname
            port: SMTP server port
            username: Authentication username
            password: Authentication password
            use_ssl: Implicit TLS (port 465) instead of STARTTLS
            from_email: Sender address
            timeout: Socket timeout in seconds
        """
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username or settings.smtp_user
        self.password = password or settings.smtp_pass
        self.use_ssl = settings.smtp_secure if use_ssl is None else use_ssl
        self.from_email = from_email or settings.from_email
        self.timeout = timeout if timeout is not None else settings.smtp_timeout_seconds

    @property
    def has_credentials(self) -> bool:
        """Whether both SMTP username and password are configured."""
        return bool(self.username and self.password)

    def _connect(self) -> smtplib.SMTP:
        """Open an authenticated SMTP connection."""
        context = ssl.create_default_context()
        server: smtplib.SMTP
        if self.use_ssl:
            server = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if not self.use_ssl:
                server.starttls(context=context)
            if self.has_credentials:
                server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def _build_message(
        self, to: str, subject: str, html_body: str | None, text_body: str | None = None
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.from_email
        msg["To"] = to
        msg["Subject"] = subject
        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _deliver(self, msg: MIMEMultipart, to: str) -> None:
        with self._connect() as server:
            server.sendmail(self.from_email, [to], msg.as_string())

    async def send(self, to: str, subject: str, html_body: str) -> bool:
        """
        Send one HTML email.

        Provider and transport failures (authentication, refused
        recipient, quota, connection) are logged and reported as False.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: Rendered HTML body

        Returns:
            True if the SMTP server accepted the message
        """
        if not self.host:
            logger.error("Email transport not configured (missing SMTP host)")
            return False

        msg = self._build_message(to, subject, html_body)
        try:
            await asyncio.to_thread(self._deliver, msg, to)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(
                f"SMTP auth error: {e.smtp_code}",
                extra={"context": {"to": to, "smtp_host": self.host}},
            )
            return False
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(
                f"SMTP recipients refused: {list(e.recipients)}",
                extra={"context": {"to": to}},
            )
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"Failed to send email: {type(e).__name__}: {e}",
                extra={"context": {"to": to, "smtp_host": self.host}},
            )
            return False

        logger.info(
            "Email sent",
            extra={"context": {"to": to, "subject": subject}},
        )
        return True

    def _send_test_message(self) -> None:
        msg = self._build_message(
            self.username,
            "Test Email from Service Request Relay",
            html_body=None,
            text_body="This is a test email to verify SMTP configuration.",
        )
        with self._connect() as server:
            server.noop()
            server.sendmail(self.from_email, [self.username], msg.as_string())

    def _require_credentials(self) -> None:
        if not self.has_credentials:
            raise BadRequestError(
                message="Missing SMTP credentials",
                details={
                    "smtp_user_exists": bool(self.username),
                    "smtp_pass_exists": bool(self.password),
                },
            )

    async def _run_checked(self, func: Callable[[], None]) -> None:
        try:
            await asyncio.to_thread(func)
        except smtplib.SMTPResponseException as e:
            raise EmailDeliveryError(
                message=f"SMTP test failed: {e.smtp_error!r}",
                smtp_code=e.smtp_code,
            ) from e
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(
                message=f"SMTP test failed: {type(e).__name__}: {e}"
            ) from e

    async def send_test(self) -> str:
        """
        Verify the SMTP configuration by mailing the SMTP user.

        Returns:
            The address the test message was sent to

        Raises:
            BadRequestError: If SMTP credentials are not configured
            EmailDeliveryError: If the server cannot be reached, rejects
                the credentials or refuses the message
        """
        self._require_credentials()
        await self._run_checked(self._send_test_message)
        logger.info("SMTP test email sent", extra={"context": {"to": self.username}})
        return self.username
