"""Signed unsubscribe tokens (HS256 JWTs binding a recipient address to this issuer)."""

from __future__ import annotations

import binascii
import datetime
import logging

import jwt
from jwt.utils import base64url_decode, base64url_encode

from unsub.errors import InvalidToken

logger = logging.getLogger(__name__)

ISSUER = "unsubscribe-poc"
ALGORITHM = "HS256"


def issue_token(subject: str, secret: str, now: datetime.datetime | None = None) -> str:
    """Issue a token for a recipient address.

    Args:
        subject: Recipient email address; becomes the ``sub`` claim and the store key.
        secret: Shared signing secret.
        now: Issue time, defaults to the current UTC time.

    Returns:
        Compact, URL-safe JWS string. No ``exp`` claim is set.
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    payload = {"sub": subject, "iss": ISSUER, "iat": int(now.timestamp())}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> str:
    """Verify a token and return its subject.

    Raises InvalidToken for every kind of failure: malformed, tampered,
    signed with another secret, or carrying an unexpected payload shape.
    """
    if not isinstance(token, str) or not token or not _is_canonical(token):
        raise InvalidToken()

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            options={"require": ["sub", "iss", "iat"], "verify_exp": False},
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Token verification failed: %s", e)
        raise InvalidToken() from e

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise InvalidToken()
    if not isinstance(payload.get("iss"), str):
        raise InvalidToken()
    iat = payload.get("iat")
    if not isinstance(iat, int) or isinstance(iat, bool):
        raise InvalidToken()
    return subject


def _is_canonical(token: str) -> bool:
    """True if the token has three segments, each in canonical base64url form.

    Base64 tolerates junk in the unused bits of a segment's final character,
    so a token can be altered without changing what it decodes to.
    """
    segments = token.split(".")
    if len(segments) != 3:
        return False
    for segment in segments:
        try:
            decoded = base64url_decode(segment.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError):
            return False
        if base64url_encode(decoded).decode("ascii") != segment:
            return False
    return True


class TokenCodec:
    """A signing secret bound to issue/verify, for injection into collaborators."""

    def __init__(self, secret: str) -> None:
        self._secret = secret

    def issue(self, subject: str, now: datetime.datetime | None = None) -> str:
        return issue_token(subject, self._secret, now=now)

    def verify(self, token: str) -> str:
        return verify_token(token, self._secret)
