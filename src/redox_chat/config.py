"""Configuration for the Redox chat agent.

Loads settings from environment variables (via a .env file or the system
environment). Every constant has a default so the package can be imported
without any credentials, e.g. when running the unit tests.

At *runtime* the CLI calls load_redox_credentials() and
require_openai_api_key(), which fail with a ConfigurationError listing
exactly which variables are missing.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load .env file if it exists (project root, next to pyproject.toml)
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# --- LLM (Large Language Model) ---
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4-0613")
OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0"))

# --- Redox connection ---
# The private key is a serialized JWK (a JSON object with kty, n, e, d, ...).
# The matching public key is registered with Redox under REDOX_API_PUBLIC_KID.
REDOX_API_PRIVATE_JWK: str = os.getenv("REDOX_API_PRIVATE_JWK", "")
REDOX_API_CLIENT_ID: str = os.getenv("REDOX_API_CLIENT_ID", "")
REDOX_API_SCOPE: str = os.getenv("REDOX_API_SCOPE", "")
REDOX_API_PUBLIC_KID: str = os.getenv("REDOX_API_PUBLIC_KID", "")

# The token endpoint doubles as the audience of the signed assertion.
REDOX_TOKEN_URL = "https://api.redoxengine.com/v2/auth/token"
REDOX_API_ENDPOINT = "https://api.redoxengine.com/endpoint"
REDOX_FHIR_ENDPOINT = (
    "https://api.redoxengine.com/fhir/R4/redox-fhir-sandbox/Development/"
)

REDOX_HTTP_TIMEOUT: float = float(os.getenv("REDOX_HTTP_TIMEOUT", "30"))
# Reuse access tokens until they expire instead of brokering one per call.
REDOX_CACHE_TOKENS: bool = os.getenv("REDOX_CACHE_TOKENS", "false").lower() in (
    "1",
    "true",
    "yes",
)

# --- Logging ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")


class ConfigurationError(Exception):
    """Raised when required settings are missing or empty."""


class RedoxCredentials(BaseModel):
    """Everything needed to mint a client assertion for Redox."""

    model_config = ConfigDict(frozen=True)

    private_jwk: str = Field(min_length=1, repr=False)
    client_id: str = Field(min_length=1)
    scope: str = Field(min_length=1)
    key_id: str = Field(min_length=1)


def load_redox_credentials() -> RedoxCredentials:
    """Build RedoxCredentials from the environment.

    Raises:
        ConfigurationError: If any of the REDOX_API_* variables is empty.
    """
    values = {
        "REDOX_API_PRIVATE_JWK": REDOX_API_PRIVATE_JWK,
        "REDOX_API_CLIENT_ID": REDOX_API_CLIENT_ID,
        "REDOX_API_SCOPE": REDOX_API_SCOPE,
        "REDOX_API_PUBLIC_KID": REDOX_API_PUBLIC_KID,
    }
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )
    return RedoxCredentials(
        private_jwk=REDOX_API_PRIVATE_JWK,
        client_id=REDOX_API_CLIENT_ID,
        scope=REDOX_API_SCOPE,
        key_id=REDOX_API_PUBLIC_KID,
    )


def require_openai_api_key() -> str:
    """Return OPENAI_API_KEY, or raise ConfigurationError when it is unset."""
    if not OPENAI_API_KEY:
        raise ConfigurationError("Missing required environment variable: OPENAI_API_KEY")
    return OPENAI_API_KEY
