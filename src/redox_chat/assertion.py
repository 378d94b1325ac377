"""Signed client assertions for the Redox OAuth2 client-credentials grant.

Concept — JWT-bearer client authentication:
    Instead of a client secret, the client proves its identity by signing a
    short JWT with its private key. Redox holds the matching public key
    (registered under a key ID, the "kid" header) and verifies the signature.

    Claims in the assertion:
    - iss / sub: our client ID
    - aud:       the token endpoint URL
    - scope:     the scope we are asking for
    - iat:       issue time (Unix seconds)
    - jti:       a random nonce, different on every call, so a captured
                 assertion cannot be replayed

Mint a fresh assertion for every token request; never reuse one.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from typing import Any

import jwt

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "RS384"

# 8 random bytes -> 16 hex characters
JTI_NUM_BYTES = 8


class AssertionSigningError(Exception):
    """Raised when the private key material cannot be used for signing."""


def load_private_jwk(serialized: str) -> dict[str, Any]:
    """Decode a serialized JWK (as stored in REDOX_API_PRIVATE_JWK).

    Raises:
        AssertionSigningError: If the text is not a JSON object.
    """
    try:
        jwk = json.loads(serialized)
    except json.JSONDecodeError as exc:
        raise AssertionSigningError(f"Private JWK is not valid JSON: {exc}") from exc
    if not isinstance(jwk, dict):
        raise AssertionSigningError("Private JWK must be a JSON object")
    return jwk


def new_jti() -> str:
    """Return a random hex nonce for the jti claim."""
    return secrets.token_hex(JTI_NUM_BYTES)


def sign_client_assertion(
    private_jwk: dict[str, Any] | str,
    client_id: str,
    scope: str,
    key_id: str,
    audience: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Build and sign a client assertion JWT.

    Args:
        private_jwk: The private key as a JWK dict, or its JSON serialization.
        client_id: Used for both the issuer and subject claims.
        scope: The OAuth2 scope being requested.
        key_id: The "kid" header identifying the registered public key.
        audience: The token endpoint URL.
        algorithm: JWS algorithm matching the key (RS384 for Redox).

    Returns:
        The compact serialized JWT.

    Raises:
        AssertionSigningError: If the key is malformed or has no private part.
    """
    if isinstance(private_jwk, str):
        private_jwk = load_private_jwk(private_jwk)
    if "d" not in private_jwk:
        raise AssertionSigningError("JWK has no private key component")

    try:
        signing_key = jwt.PyJWK(private_jwk, algorithm=algorithm)
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise AssertionSigningError(f"Could not load private JWK: {exc}") from exc

    claims = {
        "iss": client_id,
        "sub": client_id,
        "aud": audience,
        "scope": scope,
        "iat": int(time.time()),
        "jti": new_jti(),
    }
    try:
        assertion = jwt.encode(
            claims,
            signing_key.key,
            algorithm=algorithm,
            headers={"kid": key_id},
        )
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise AssertionSigningError(f"Signing the client assertion failed: {exc}") from exc

    logger.debug("Signed client assertion for %s (kid=%s)", client_id, key_id)
    return assertion
