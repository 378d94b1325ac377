"""HTTP client for the Redox APIs with JWT-assertion OAuth2 authentication.

This module provides the RedoxClient class, which handles:
1. Signing a fresh client assertion (assertion.py)
2. Exchanging it for an access token (token_broker.py)
3. Authenticated requests to the generic Redox endpoint and the FHIR API

Every request brokers its own token unless a TokenCache is supplied. Tokens
are never kept on the client itself.

Usage:
    async with RedoxClient(load_redox_credentials()) as client:
        result = await client.post({"Meta": {...}, "Patient": {...}})
        bundle = await client.fhir_post("Patient/_search", {"family": "Green"})
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from redox_chat.assertion import load_private_jwk, sign_client_assertion
from redox_chat.config import (
    REDOX_API_ENDPOINT,
    REDOX_FHIR_ENDPOINT,
    REDOX_HTTP_TIMEOUT,
    REDOX_TOKEN_URL,
    RedoxCredentials,
)
from redox_chat.errors import RedoxAPIError
from redox_chat.token_broker import AccessToken, TokenCache, request_access_token

logger = logging.getLogger(__name__)


class RedoxClient:
    """Async HTTP client for the Redox generic and FHIR endpoints.

    Attributes:
        credentials: Client ID, scope, key ID and private key.
        endpoint: The generic endpoint; GET paths are appended to it.
        fhir_endpoint: The FHIR base URL; resource paths are appended to it.
        token_url: The token endpoint, also the assertion audience.
    """

    def __init__(
        self,
        credentials: RedoxCredentials,
        endpoint: str = REDOX_API_ENDPOINT,
        fhir_endpoint: str = REDOX_FHIR_ENDPOINT,
        token_url: str = REDOX_TOKEN_URL,
        timeout: float = REDOX_HTTP_TIMEOUT,
        token_cache: TokenCache | None = None,
    ) -> None:
        self.credentials = credentials
        self.endpoint = endpoint
        self.fhir_endpoint = fhir_endpoint
        self.token_url = token_url
        self.token_cache = token_cache

        # Decode once up front so a malformed key fails at startup.
        self._private_jwk = load_private_jwk(credentials.private_jwk)

        self._http = httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> RedoxClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Token Methods ---

    async def _broker_token(self) -> AccessToken:
        """Sign a new assertion and exchange it for an access token."""
        assertion = sign_client_assertion(
            self._private_jwk,
            client_id=self.credentials.client_id,
            scope=self.credentials.scope,
            key_id=self.credentials.key_id,
            audience=self.token_url,
        )
        return await request_access_token(
            self._http,
            self.token_url,
            assertion,
            self.credentials.scope,
        )

    async def _access_token(self) -> AccessToken:
        """Return a token for this request, consulting the cache if enabled."""
        if self.token_cache is None:
            return await self._broker_token()

        scope = self.credentials.scope
        token = self.token_cache.get(scope, time.time())
        if token is None:
            logger.info("No valid cached token for scope %s, brokering a new one", scope)
            token = await self._broker_token()
            self.token_cache.put(scope, token, time.time())
        return token

    # --- API Request Methods ---

    async def get(self, path: str) -> Any:
        """Make an authenticated GET request to the generic endpoint.

        Args:
            path: Appended verbatim to the endpoint URL.

        Returns:
            The JSON response body.

        Raises:
            AssertionSigningError: If the private key cannot sign.
            RedoxAuthError: If the token request fails.
            RedoxAPIError: If the API returns a non-2xx status.
        """
        return await self._request("GET", self.endpoint + path)

    async def post(self, body: Any) -> Any:
        """Make an authenticated POST of a JSON body to the generic endpoint.

        Raises:
            AssertionSigningError: If the private key cannot sign.
            RedoxAuthError: If the token request fails.
            RedoxAPIError: If the API returns a non-2xx status.
        """
        return await self._request("POST", self.endpoint, json_body=body)

    async def fhir_post(self, path: str, body: Any) -> Any:
        """Make an authenticated POST to a FHIR resource path.

        Args:
            path: Resource path relative to the FHIR base, e.g. "Patient/_search".
            body: The JSON body to send.

        Raises:
            AssertionSigningError: If the private key cannot sign.
            RedoxAuthError: If the token request fails.
            RedoxAPIError: If the API returns a non-2xx status.
        """
        return await self._request("POST", self.fhir_endpoint + path, json_body=body)

    async def _request(
        self,
        method: str,
        url: str,
        json_body: Any = None,
    ) -> Any:
        """Send an authenticated request and return the parsed JSON.

        A 401 is not retried: it is reported like any other error status.
        """
        token = await self._access_token()

        headers = {"Authorization": f"Bearer {token.access_token}"}
        if method == "POST":
            headers["Content-Type"] = "application/json"

        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(
                method,
                url,
                headers=headers,
                json=json_body if method == "POST" else None,
            )
        except httpx.HTTPError as exc:
            raise RedoxAPIError(
                status_code=0,
                reason="Transport error",
                body=f"Request to {url} failed: {exc}",
            ) from exc

        if not response.is_success:
            raise RedoxAPIError(
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )

        return response.json()
