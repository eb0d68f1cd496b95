"""Email delivery for price alerts."""
from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import partial

from config import settings
from services.errors import NotificationError

logger = logging.getLogger(__name__)


def compose_price_alert(hotel_name: str, hotel_url: str, current_price: int) -> tuple[str, str]:
    """Build the subject and plain-text body of a price alert."""
    subject = f"[Price alert] {hotel_name} is now at or below your target price"
    body = (
        f"The price of \"{hotel_name}\" has dropped to your target price!\n"
        "\n"
        f"Current price: {current_price}\n"
        f"Hotel URL: {hotel_url}\n"
        "\n"
        "This alert has now been retired. Register a new one to keep watching.\n"
    )
    return subject, body


class EmailNotifier:
    """Sends plain-text messages through an SMTP server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_tls: bool | None = None,
        timeout: float | None = None,
    ) -> None:
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME if username is None else username
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.sender = sender or settings.SMTP_SENDER
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.timeout = timeout or settings.REQUEST_TIMEOUT

    def _build_message(self, address: str, subject: str, body: str) -> MIMEMultipart:
        message = MIMEMultipart()
        message["From"] = self.sender
        message["To"] = address
        message["Subject"] = subject
        message.attach(MIMEText(body, "plain", "utf-8"))
        return message

    def _deliver(self, address: str, subject: str, body: str) -> None:
        message = self._build_message(address, subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [address], message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Failed to send email to {address}: {exc}") from exc

    async def send(self, address: str, subject: str, body: str) -> None:
        """Deliver one message; raises NotificationError on failure."""
        if not self.sender:
            raise NotificationError("Email sender is not configured")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._deliver, address, subject, body))
        logger.info("Notification email sent to %s", address)


__all__ = ["EmailNotifier", "compose_price_alert"]
