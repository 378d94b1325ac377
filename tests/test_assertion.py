"""Tests for signing client assertions."""

from __future__ import annotations

import json
import time
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from redox_chat.assertion import (
    AssertionSigningError,
    load_private_jwk,
    sign_client_assertion,
)

AUDIENCE = "https://api.redoxengine.com/v2/auth/token"


def _sign(jwk: dict[str, Any] | str) -> str:
    return sign_client_assertion(
        jwk,
        client_id="client-123",
        scope="fhir:development patient-search:*",
        key_id="kid-1",
        audience=AUDIENCE,
    )


class TestClaims:
    """The signed token carries the expected header and claims."""

    def test_claims_and_signature(
        self,
        private_jwk: dict[str, Any],
        rsa_private_key: rsa.RSAPrivateKey,
    ) -> None:
        before = int(time.time())
        token = _sign(private_jwk)

        claims = jwt.decode(
            token,
            rsa_private_key.public_key(),
            algorithms=["RS384"],
            audience=AUDIENCE,
        )
        assert claims["iss"] == "client-123"
        assert claims["sub"] == "client-123"
        assert claims["aud"] == AUDIENCE
        assert claims["scope"] == "fhir:development patient-search:*"
        assert before <= claims["iat"] <= int(time.time())
        assert len(claims["jti"]) == 16
        int(claims["jti"], 16)  # hex

    def test_header_has_kid_and_algorithm(self, private_jwk: dict[str, Any]) -> None:
        header = jwt.get_unverified_header(_sign(private_jwk))
        assert header["alg"] == "RS384"
        assert header["kid"] == "kid-1"

    def test_accepts_serialized_jwk(self, private_jwk: dict[str, Any]) -> None:
        token = _sign(json.dumps(private_jwk))
        assert jwt.decode(token, options={"verify_signature": False})["iss"] == "client-123"

    def test_jti_differs_on_every_call(self, private_jwk: dict[str, Any]) -> None:
        jtis = {
            jwt.decode(_sign(private_jwk), options={"verify_signature": False})["jti"]
            for _ in range(20)
        }
        assert len(jtis) == 20


class TestMalformedKeys:
    """Bad key material is a fatal AssertionSigningError."""

    def test_not_json(self) -> None:
        with pytest.raises(AssertionSigningError, match="not valid JSON"):
            load_private_jwk("not-a-jwk")

    def test_json_but_not_object(self) -> None:
        with pytest.raises(AssertionSigningError, match="JSON object"):
            load_private_jwk("[1, 2, 3]")

    def test_public_only_key(self, private_jwk: dict[str, Any]) -> None:
        public = {k: v for k, v in private_jwk.items() if k in ("kty", "n", "e")}
        with pytest.raises(AssertionSigningError, match="no private key"):
            _sign(public)

    def test_incomplete_rsa_key(self) -> None:
        with pytest.raises(AssertionSigningError):
            _sign({"kty": "RSA", "d": "AQAB"})
