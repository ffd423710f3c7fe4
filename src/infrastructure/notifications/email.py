# src/infrastructure/notifications/email.py

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src import config

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def _format_date(value) -> str:
    return value.strftime("%B %d, %Y") if value else ""


def _format_amount(value) -> str:
    return f"{value:,.2f}"


_environment.filters["date"] = _format_date
_environment.filters["amount"] = _format_amount


def render_template(name: str, **context) -> str:
    return _environment.get_template(name).render(frontend_url=config.FRONTEND_URL, **context)


@dataclass
class SmtpSettings:
    host: str
    port: int
    secure: bool
    username: str | None
    password: str | None
    from_address: str
    timeout: float = 30.0

    @classmethod
    def from_config(cls) -> "SmtpSettings":
        return cls(
            host=config.EMAIL_HOST,
            port=config.EMAIL_PORT,
            secure=config.EMAIL_SECURE,
            username=config.EMAIL_USER,
            password=config.EMAIL_PASSWORD,
            from_address=config.EMAIL_FROM,
            timeout=config.EMAIL_TIMEOUT_SECONDS,
        )


class SmtpEmailSender:
    """Sends one HTML message per SMTP connection."""

    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def send(self, to: str, subject: str, html: str) -> str:
        message = MIMEMultipart("alternative")
        message["From"] = self.settings.from_address
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.attach(MIMEText(html, "html"))

        logger.info("Sending email to %s with subject %r", to, subject)
        context = ssl.create_default_context()
        if self.settings.secure:
            server = smtplib.SMTP_SSL(
                self.settings.host,
                self.settings.port,
                context=context,
                timeout=self.settings.timeout,
            )
        else:
            server = smtplib.SMTP(self.settings.host, self.settings.port, timeout=self.settings.timeout)
            server.starttls(context=context)

        with server:
            if self.settings.username and self.settings.password:
                server.login(self.settings.username, self.settings.password)
            server.send_message(message)

        logger.info("Email sent to %s (message id %s)", to, message["Message-ID"])
        return message["Message-ID"]
