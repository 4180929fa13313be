"""
Process configuration, resolved once at startup.

The CLI builds these values from flags, the environment and an optional
``.env`` file, then hands them to the sources by value. Nothing in the
ingestion core reads ``os.environ`` directly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from jamaid.errors import ConfigurationError

STRUCTURED_ENDPOINT_URL_ENV = "JAMAID_STRUCTURED_ENDPOINT_URL"
STRUCTURED_AUTH_TOKEN_ENV = "JAMAID_STRUCTURED_AUTH_TOKEN"
STRUCTURED_TIMEOUT_MS_ENV = "JAMAID_STRUCTURED_TIMEOUT_MS"
FIGMA_TOKEN_ENV = "FIGMA_API_TOKEN"

DEFAULT_TIMEOUT_MS = 10_000


def load_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Load the nearest .env (current dir, then parents). Returns its path."""
    cwd = start or Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / '.env'
        if candidate.exists():
            load_dotenv(candidate)
            return candidate
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class StructuredEndpointConfig:
    endpoint_url: Optional[str] = None
    auth_token: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            raise ConfigurationError("Invalid structured endpoint timeout. timeout_ms must be a positive integer.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 endpoint_url: Optional[str] = None,
                 auth_token: Optional[str] = None,
                 timeout_ms: Optional[int] = None) -> 'StructuredEndpointConfig':
        """Explicit values win; the environment fills the gaps."""
        env = os.environ if environ is None else environ

        if timeout_ms is None:
            raw = _clean(env.get(STRUCTURED_TIMEOUT_MS_ENV))
            if raw is None:
                timeout_ms = DEFAULT_TIMEOUT_MS
            else:
                try:
                    timeout_ms = int(raw)
                except ValueError:
                    timeout_ms = 0
                if timeout_ms <= 0:
                    raise ConfigurationError(
                        f'Invalid {STRUCTURED_TIMEOUT_MS_ENV} value "{raw}". Expected a positive integer.')

        return cls(
            endpoint_url=_clean(endpoint_url) or _clean(env.get(STRUCTURED_ENDPOINT_URL_ENV)),
            auth_token=_clean(auth_token) or _clean(env.get(STRUCTURED_AUTH_TOKEN_ENV)),
            timeout_ms=timeout_ms,
        )


def resolve_token(cli_token: Optional[str], environ: Optional[Mapping[str, str]] = None) -> str:
    """Figma token from the flag, else FIGMA_API_TOKEN."""
    token = _clean(cli_token)
    if token:
        return token
    env = os.environ if environ is None else environ
    token = _clean(env.get(FIGMA_TOKEN_ENV))
    if token:
        return token
    raise ConfigurationError(f"Figma API token not found. Pass --token or set {FIGMA_TOKEN_ENV}.")
