"""
Email service module for formatting and sending hackathon digest emails.

This module provides:
- format_digest_email, which turns the agent's items into a subject and a
  plain-text body
- render_html, the HTML alternative of a plain-text body
- the EmailService class, which delivers a message over SMTP
"""

import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
import html
import logging
import smtplib
from typing import List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from hackathon_digest.config import DEFAULT_TIMEZONE, SmtpSettings
from hackathon_digest.models import DigestItem, EmailContent

logger = logging.getLogger(__name__)

NO_ITEMS_SUBJECT = "No Hackathons or Challenges Found"
NO_ITEMS_BODY = (
    "No relevant hackathons or programming challenges were found "
    "for the specified criteria."
)
SUBJECT_LABEL = "Hackathons & Challenges"
SUBJECT_TITLES = 3
SUBJECT_TITLES_MAX_LEN = 50
ELLIPSIS = "..."

_HEADERS = {
    "cs": "Hackathony a programovací výzvy (týdenní přehled):",
    "en": "Hackathons & Programming Challenges (weekly digest):",
}


class SmtpCredentialsError(ValueError):
    """Raised when the SMTP credentials needed to send are missing."""


class MissingSmtpUserError(SmtpCredentialsError):
    """SMTP_USER is not set."""


class MissingSmtpPasswordError(SmtpCredentialsError):
    """Neither SMTP_PASSWORD nor SMTP_APP_PASSWORD is set."""


def _subject_titles(items: Sequence[DigestItem]) -> str:
    titles = ", ".join(item.title for item in items[:SUBJECT_TITLES])
    if len(titles) > SUBJECT_TITLES_MAX_LEN:
        return titles[: SUBJECT_TITLES_MAX_LEN - len(ELLIPSIS)] + ELLIPSIS
    return titles


def format_digest_email(
    items: Sequence[DigestItem],
    language: str = "en",
    now: Optional[datetime.datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> EmailContent:
    """Formats the digest subject and plain-text body, keeping item order."""
    if not items:
        return EmailContent(subject=NO_ITEMS_SUBJECT, body=NO_ITEMS_BODY)

    tz = ZoneInfo(timezone)
    now = now.astimezone(tz) if now else datetime.datetime.now(tz)
    current_date = f"{now:%B} {now.day}, {now.year}"

    body_lines: List[str] = [_HEADERS.get(language, _HEADERS["en"]), ""]
    for index, item in enumerate(items, start=1):
        body_lines.append(f"{index}. [{item.category}] {item.title} ({item.date})")
        body_lines.append(f"   {item.summary}")
        body_lines.append(f"   Source: {item.publisher} - {item.url}")
        body_lines.append("")

    return EmailContent(
        subject=f"{current_date} - {SUBJECT_LABEL}: {_subject_titles(items)}",
        body="\n".join(body_lines),
    )


def render_html(body: str) -> str:
    """Escapes a plain-text body and converts newlines to HTML breaks."""
    return html.escape(body).replace("\n", "<br>")


class EmailService:
    """Service for sending digest emails over SMTP."""

    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def _check_credentials(self) -> None:
        if not self.settings.user:
            raise MissingSmtpUserError(
                "SMTP_USER environment variable is required to send email."
            )
        if not self.settings.resolved_password:
            raise MissingSmtpPasswordError(
                "SMTP_PASSWORD or SMTP_APP_PASSWORD environment variable is "
                "required to send email."
            )

    def build_message(
        self, recipients: List[str], subject: str, body: str
    ) -> MIMEMultipart:
        """Builds a multipart message with plain-text and HTML parts."""
        msg = MIMEMultipart("alternative")
        msg["From"] = str(self.settings.from_address)
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(MIMEText(render_html(body), "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.settings.secure:
            return smtplib.SMTP_SSL(self.settings.host, self.settings.port)
        return smtplib.SMTP(self.settings.host, self.settings.port)

    def send_email(self, to: Union[str, Sequence[str]], subject: str, body: str) -> str:
        """
        Sends one message to one or more recipients.

        Raises SmtpCredentialsError before connecting when credentials are
        missing; transport errors propagate to the caller. Returns the
        Message-ID of the sent message.
        """
        recipients = [to] if isinstance(to, str) else list(to)
        self._check_credentials()

        msg = self.build_message(recipients, subject, body)
        with self._connect() as server:
            if not self.settings.secure:
                server.starttls()
            server.login(
                str(self.settings.user), str(self.settings.resolved_password)
            )
            server.send_message(msg, to_addrs=recipients)

        logger.info(
            "Email sent to %s. Message ID: %s",
            ", ".join(recipients),
            msg["Message-ID"],
        )
        return msg["Message-ID"]
