"""SMTP delivery of rendered notification emails."""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pinco.services.templates import RenderedEmail

logger = structlog.get_logger()


@dataclass
class EmailConfig:
    """SMTP server and sender settings."""

    smtp_host: str
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    from_email: str = "noreply@pinco.dev"
    from_name: str = "Pinco"
    use_tls: bool = True


class EmailNotifier:
    """Sends rendered emails, one recipient per message."""

    def __init__(self, config: EmailConfig):
        self.config = config

    def build_message(self, to: str, email: RenderedEmail) -> MIMEMultipart:
        """Wrap a rendered email in a text/HTML alternative message."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = formataddr((self.config.from_name, self.config.from_email))
        msg["To"] = to
        # Clients show the last part they support
        msg.attach(MIMEText(email.text, "plain", "utf-8"))
        msg.attach(MIMEText(email.html, "html", "utf-8"))
        return msg

    def send(self, to: str, email: RenderedEmail) -> bool:
        """Deliver an email. Blocking, so run it off the event loop.

        Returns:
            Whether the SMTP server accepted the message.
        """
        msg = self.build_message(to, email)
        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.smtp_user and self.config.smtp_password:
                    server.login(self.config.smtp_user, self.config.smtp_password)
                server.send_message(msg, from_addr=self.config.from_email, to_addrs=[to])
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_failed", to=to, subject=email.subject, error=str(e))
            return False

        logger.info("email_sent", to=to, subject=email.subject)
        return True
