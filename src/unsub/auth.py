"""Bearer-token checks for operator routes, against the identity provider's JWKS."""

from __future__ import annotations

import logging
from typing import Any

import jwt
from jwt import PyJWKClient, PyJWKClientError

from unsub.errors import Unauthorized

logger = logging.getLogger(__name__)


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise Unauthorized()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()
    return token.strip()


class IdentityVerifier:
    """Verifies RS256 identity tokens, audience-restricted to this app's client id."""

    def __init__(
        self,
        jwks_url: str,
        audience: str,
        issuer: str | None = None,
        jwks_client: PyJWKClient | None = None,
    ) -> None:
        self.audience = audience
        self.issuer = issuer
        self._jwks_client = jwks_client or PyJWKClient(jwks_url, cache_keys=True)

    def verify(self, token: str) -> dict[str, Any]:
        """Return the decoded claims.

        Raises:
            Unauthorized: If the token is expired, malformed, signed by an
                unknown key, or issued for another audience.
        """
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            claims: dict[str, Any] = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_iss": self.issuer is not None},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except PyJWKClientError as e:
            logger.warning("Could not resolve signing key: %s", e)
            raise Unauthorized(f"Invalid token: {e}")
        except jwt.InvalidTokenError as e:
            raise Unauthorized(f"Invalid token: {e}")
        return claims

    def authenticate(self, authorization: str | None) -> dict[str, Any]:
        return self.verify(bearer_token(authorization))
