"""Compose and dispatch batches of test emails carrying RFC 8058 unsubscribe headers."""

from __future__ import annotations

import logging
import random
import string
from typing import Protocol
from urllib.parse import quote

from unsub.config import Settings
from unsub.email_template import render_html, render_text
from unsub.models import (
    ONE_CLICK_MARKER,
    BatchResult,
    OutboundMessage,
    SendBatchRequest,
    SendError,
)
from unsub.tokens import TokenCodec

logger = logging.getLogger(__name__)

MAX_BATCH = 50
ADDRESS_PREFIX = "uns"
LOCAL_PART_LENGTH = 8
LOCAL_PART_CHARS = string.ascii_lowercase + string.digits


class Mailer(Protocol):
    def send(self, message: OutboundMessage) -> None: ...


def clamp_count(count) -> int:
    """Clamp a requested batch size to [0, MAX_BATCH]. Non-integers count as 0."""
    if not isinstance(count, int) or isinstance(count, bool):
        return 0
    return min(max(count, 0), MAX_BATCH)


def generate_address(domains: list[str], rng: random.Random | None = None) -> str:
    """A plausible throwaway address like 'unsk3j9x0aq@example.com'."""
    rng = rng or random
    local = "".join(rng.choice(LOCAL_PART_CHARS) for _ in range(LOCAL_PART_LENGTH))
    return f"{ADDRESS_PREFIX}{local}@{rng.choice(domains)}"


def clean_addresses(addresses) -> list[str]:
    """Strip entries and keep those containing '@'. Anything else is dropped silently."""
    cleaned = []
    for raw in addresses or []:
        if not isinstance(raw, str):
            continue
        address = raw.strip()
        if "@" in address:
            cleaned.append(address)
    return cleaned


class BatchSender:
    def __init__(
        self,
        settings: Settings,
        codec: TokenCodec,
        mailer: Mailer,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.codec = codec
        self.mailer = mailer
        self.rng = rng or random.Random()

    def unsubscribe_urls(self, token: str) -> tuple[str, str, str]:
        """Return (api_url, web_url, mailto_url) for a token."""
        quoted = quote(token, safe="")
        api_url = f"https://{self.settings.api_domain}/unsubscribe?token={quoted}"
        web_url = f"https://{self.settings.web_domain}/unsubscribe?token={quoted}"
        mailto_url = (
            f"mailto:{self.settings.unsubscribe_mailbox}"
            f"?subject=unsubscribe&body=token:{quoted}"
        )
        return api_url, web_url, mailto_url

    def compose(self, recipient: str, subject: str) -> OutboundMessage:
        """Mint a token for the recipient and build the message around it."""
        token = self.codec.issue(recipient)
        api_url, web_url, mailto_url = self.unsubscribe_urls(token)
        return OutboundMessage(
            sender=self.settings.sender_email,
            recipient=recipient,
            subject=subject,
            html_body=render_html(subject, recipient, web_url),
            text_body=render_text(recipient, web_url),
            headers={
                "List-Unsubscribe": f"<{api_url}>, <{mailto_url}>",
                "List-Unsubscribe-Post": ONE_CLICK_MARKER,
            },
        )

    def resolve_recipients(self, request: SendBatchRequest) -> list[str]:
        """Synthesized addresses first, then the caller's, without duplicates."""
        recipients = [
            generate_address(self.settings.email_domains, self.rng)
            for _ in range(clamp_count(request.count))
        ]
        for address in clean_addresses(request.additional_emails):
            if address not in recipients:
                recipients.append(address)
        return recipients

    def send_batch(self, request: SendBatchRequest) -> BatchResult:
        """Send one message per resolved recipient, one at a time.

        A failed send is recorded and the batch carries on.
        """
        subject = request.subject or self.settings.default_subject
        result = BatchResult()

        for recipient in self.resolve_recipients(request):
            try:
                self.mailer.send(self.compose(recipient, subject))
            except Exception as e:
                logger.exception("Failed to send to %s", recipient)
                result.errors.append(SendError(recipient, str(e) or type(e).__name__))
                continue
            result.sent.append(recipient)
            logger.info("Sent email to %s", recipient)

        logger.info(
            "Batch finished: %d sent, %d failed", result.sent_count, len(result.errors)
        )
        return result
