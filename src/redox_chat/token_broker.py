"""Exchange a signed client assertion for a Redox access token.

Concept — OAuth2 client-credentials grant with a JWT assertion:
    The token endpoint receives four form-encoded fields:
    - grant_type=client_credentials
    - client_assertion_type=urn:ietf:params:oauth:client-assertion-type:jwt-bearer
    - client_assertion=<the signed JWT from assertion.py>
    - scope=<requested scope>

    It answers with {access_token, scope, token_type, expires_in}.

By default every protected call brokers its own token. TokenCache is an
opt-in alternative that keeps one token per scope until shortly before it
expires.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from redox_chat.errors import RedoxAuthError

logger = logging.getLogger(__name__)

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class AccessToken(BaseModel):
    """A bearer token as returned by the token endpoint."""

    access_token: str
    scope: str
    token_type: str
    expires_in: int


def token_request_fields(assertion: str, scope: str) -> dict[str, str]:
    """Build the form fields for a client-credentials token request."""
    return {
        "grant_type": "client_credentials",
        "client_assertion_type": CLIENT_ASSERTION_TYPE,
        "client_assertion": assertion,
        "scope": scope,
    }


async def request_access_token(
    http: httpx.AsyncClient,
    token_url: str,
    assertion: str,
    scope: str,
) -> AccessToken:
    """POST a client-credentials grant and return the access token.

    The token endpoint expects form-encoded data
    (application/x-www-form-urlencoded), NOT JSON. There is no retry.

    Args:
        http: The HTTP client to send the request with.
        token_url: The token endpoint URL.
        assertion: A freshly signed client assertion.
        scope: The scope to request.

    Returns:
        The parsed AccessToken.

    Raises:
        RedoxAuthError: On transport failure, a non-2xx response, or a
            response body that is not a token.
    """
    try:
        response = await http.post(
            token_url,
            data=token_request_fields(assertion, scope),  # data= sends form-encoded
        )
    except httpx.HTTPError as exc:
        raise RedoxAuthError(
            status_code=0,
            reason="Transport error",
            body=f"Token request to {token_url} failed: {exc}",
        ) from exc

    if not response.is_success:
        raise RedoxAuthError(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text,
        )

    try:
        token = AccessToken.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise RedoxAuthError(
            status_code=response.status_code,
            reason="Malformed token response",
            body=response.text,
        ) from exc

    logger.debug(
        "Token acquired (type=%s, scope=%s), expires in %d seconds",
        token.token_type,
        token.scope,
        token.expires_in,
    )
    return token


class TokenCache:
    """Access tokens keyed by scope, valid until shortly before expiry.

    Time is always passed in, so get() is a pure function of
    (scope, now) and the stored entries.
    """

    def __init__(self, leeway: float = 60.0) -> None:
        # Tokens are treated as expired this many seconds early, which
        # absorbs clock drift and request latency.
        self.leeway = leeway
        self._entries: dict[str, tuple[AccessToken, float]] = {}

    def get(self, scope: str, now: float) -> AccessToken | None:
        """Return the cached token for scope, or None if absent or expired."""
        entry = self._entries.get(scope)
        if entry is None:
            return None
        token, expires_at = entry
        if now >= expires_at:
            return None
        return token

    def put(self, scope: str, token: AccessToken, now: float) -> None:
        """Store a token that was issued at time now."""
        self._entries[scope] = (token, now + token.expires_in - self.leeway)

    def invalidate(self, scope: str | None = None) -> None:
        """Forget the token for scope, or every token when scope is None."""
        if scope is None:
            self._entries.clear()
        else:
            self._entries.pop(scope, None)

    def __len__(self) -> int:
        return len(self._entries)
