"""Unsubscribe status checks and opt-out recording, keyed by the token's subject."""

from __future__ import annotations

import datetime
import logging
from typing import Callable

from unsub.errors import MissingToken
from unsub.models import (
    MANUAL,
    ONE_CLICK,
    ONE_CLICK_MARKER,
    UNKNOWN_USER_AGENT,
    StatusRequest,
    StatusResult,
    UnsubscribeRecord,
    UnsubscribeRequest,
)
from unsub.store import UnsubscribeStore
from unsub.tokens import TokenCodec

logger = logging.getLogger(__name__)


def mask_email(email: str) -> str:
    """Mask an address for display: 'jo***n@example.com', 'a***@example.com'."""
    local, _, domain = email.partition("@")
    if len(local) <= 3:
        return f"{local[:1]}***@{domain}"
    return f"{local[:2]}***{local[-1]}@{domain}"


def classify_source(body: str | None) -> str:
    """Return 'one-click' if the body carries the RFC 8058 marker, else 'manual'."""
    if body and ONE_CLICK_MARKER in body:
        return ONE_CLICK
    return MANUAL


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UnsubscribeService:
    def __init__(
        self,
        codec: TokenCodec,
        store: UnsubscribeStore,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self.codec = codec
        self.store = store
        self.clock = clock

    def _subject(self, token: str | None) -> str:
        if not token:
            raise MissingToken()
        return self.codec.verify(token)

    def check_status(self, request: StatusRequest) -> StatusResult:
        """Report whether the token's address has unsubscribed. Read-only."""
        email = self._subject(request.token)
        record = self.store.get(email)
        return StatusResult(
            email=email,
            masked_email=mask_email(email),
            is_unsubscribed=record is not None,
            unsubscribed_at=record.unsubscribed_at if record else None,
        )

    def record_unsubscribe(self, request: UnsubscribeRequest) -> UnsubscribeRecord:
        """Upsert the opt-out for the token's address.

        Repeating the call leaves one record; only the timestamp (and the
        source/user agent of the latest call) change.
        """
        email = self._subject(request.token)
        record = UnsubscribeRecord(
            email=email,
            unsubscribed_at=self.clock(),
            source=classify_source(request.body),
            user_agent=request.user_agent or UNKNOWN_USER_AGENT,
        )
        self.store.put(record)
        logger.info("Unsubscribed %s via %s", email, record.source)
        return record
