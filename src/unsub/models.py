"""Records, messages, batch results and the typed request contracts for each route."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

ONE_CLICK = "one-click"
MANUAL = "manual"
SOURCES = (ONE_CLICK, MANUAL)

UNKNOWN_USER_AGENT = "unknown"

# RFC 8058 body a mail client POSTs for a one-click unsubscribe
ONE_CLICK_MARKER = "List-Unsubscribe=One-Click"


@dataclass
class UnsubscribeRecord:
    """One opted-out address. Presence of a record is the opt-out signal."""

    email: str
    unsubscribed_at: datetime.datetime
    source: str  # "one-click" or "manual"
    user_agent: str = UNKNOWN_USER_AGENT

    def __post_init__(self) -> None:
        if self.source not in SOURCES:
            raise ValueError(f"Unknown unsubscribe source: {self.source!r}")

    def to_row(self) -> dict:
        """Serialize to the store's column layout."""
        return {
            "email": self.email,
            "unsubscribedAt": self.unsubscribed_at.isoformat(),
            "source": self.source,
            "userAgent": self.user_agent,
        }

    @classmethod
    def from_row(cls, row: dict) -> UnsubscribeRecord:
        return cls(
            email=row["email"],
            unsubscribed_at=datetime.datetime.fromisoformat(row["unsubscribedAt"]),
            source=row["source"],
            user_agent=row.get("userAgent") or UNKNOWN_USER_AGENT,
        )


@dataclass
class OutboundMessage:
    """A composed message, ready to hand to a mailer."""

    sender: str
    recipient: str
    subject: str
    html_body: str
    text_body: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class SendError:
    email: str
    reason: str

    def __str__(self) -> str:
        return f"Failed to send to {self.email}: {self.reason}"


@dataclass
class BatchResult:
    sent: list[str] = field(default_factory=list)
    errors: list[SendError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    def to_dict(self) -> dict:
        """Serialize to the send-emails response body."""
        return {
            "success": self.success,
            "sentCount": self.sent_count,
            "emails": list(self.sent),
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class StatusResult:
    email: str
    masked_email: str
    is_unsubscribed: bool
    unsubscribed_at: datetime.datetime | None = None

    def to_dict(self) -> dict:
        data = {
            "success": True,
            "email": self.masked_email,
            # Unmasked address, kept for debugging the proof of concept
            "fullEmail": self.email,
            "isUnsubscribed": self.is_unsubscribed,
        }
        if self.unsubscribed_at is not None:
            data["unsubscribedAt"] = self.unsubscribed_at.isoformat()
        return data


# ---------------------------------------------------------------------------
# Request contracts, validated at the HTTP boundary
# ---------------------------------------------------------------------------

@dataclass
class StatusRequest:
    token: str | None


@dataclass
class UnsubscribeRequest:
    token: str | None
    body: str = ""
    user_agent: str | None = None


@dataclass
class SendBatchRequest:
    count: int = 0
    subject: str | None = None
    additional_emails: list[str] = field(default_factory=list)
