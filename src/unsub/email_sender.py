"""Send composed messages via the SendGrid API."""

from __future__ import annotations

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Category, Header, Mail

from unsub.errors import SendFailure
from unsub.models import OutboundMessage

logger = logging.getLogger(__name__)

CATEGORY = "email-unsubscribe"


def build_mail(message: OutboundMessage) -> Mail:
    """Translate an OutboundMessage into a SendGrid Mail, custom headers included."""
    mail = Mail(
        from_email=message.sender,
        to_emails=message.recipient,
        subject=message.subject,
        html_content=message.html_body,
        plain_text_content=message.text_body,
    )
    for name, value in message.headers.items():
        mail.header = Header(name, value)
    mail.category = Category(CATEGORY)
    return mail


class SendGridMailer:
    """Dispatches one message per call. Raises SendFailure on any failed send."""

    def __init__(self, client: SendGridAPIClient) -> None:
        self._client = client

    @classmethod
    def from_api_key(cls, api_key: str) -> "SendGridMailer":
        return cls(SendGridAPIClient(api_key))

    def send(self, message: OutboundMessage) -> None:
        try:
            response = self._client.send(build_mail(message))
        except Exception as e:
            raise SendFailure(str(e)) from e

        if response.status_code not in (200, 201, 202):
            raise SendFailure(f"SendGrid returned status {response.status_code}")
        logger.info(
            "Email sent to %s, status %d", message.recipient, response.status_code
        )
