"""
Settings and configuration for the NetStorage HTTP client.

Centralizes configuration values and provides validation with fail-fast behavior.
A Settings instance is bound to a client at construction time and never changes;
several clients with different hosts/keys can coexist in one process.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for a NetStorage client.

    Service Settings:
        host: NetStorage HTTP API hostname (e.g. "example-nsu.akamaihd.net"),
            optionally with ":port"; IPv6 literals go in brackets
        key_name: Upload account key name, sent in the auth-data header
        key: Shared secret used to sign every request (never printed)
        ssl: Use https instead of http
        verbose: Include raw response bodies in error messages

    Transport Settings:
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries for connection failures (0=no retry)
        transport_overrides: Extra keyword arguments for httpx.AsyncClient
    """
    host: str
    key_name: str
    key: str = field(repr=False)
    ssl: bool = False
    verbose: bool = False
    http_timeout_s: float = 30.0
    http_retry: int = 0
    transport_overrides: Optional[Mapping[str, Any]] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.host:
            raise ValueError("host is required")

        # Hostname or bracketed IPv6 literal, optional port, no scheme
        host_pattern = r"^(?:\[[0-9a-fA-F:.]+\]|[a-zA-Z0-9._-]+)(?::[0-9]+)?$"
        if not re.match(host_pattern, self.host):
            raise ValueError(f"Invalid host format: {self.host}")

        if not self.key_name:
            raise ValueError("key_name is required")
        if not self.key:
            raise ValueError("key is required")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

        # Read-only view so the frozen instance stays immutable all the way down
        overrides = dict(self.transport_overrides or {})
        object.__setattr__(self, "transport_overrides", MappingProxyType(overrides))

    @property
    def scheme(self) -> str:
        return "https" if self.ssl else "http"

    def describe(self) -> Dict[str, Any]:
        """
        JSON-serialisable view of the settings for error diagnostics.

        The signing key is redacted.
        """
        return {
            "host": self.host,
            "key_name": self.key_name,
            "key": "***",
            "ssl": self.ssl,
            "verbose": self.verbose,
            "http_timeout_s": self.http_timeout_s,
            "http_retry": self.http_retry,
            "transport_overrides": sorted(self.transport_overrides),
        }


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - NETSTORAGE_HOST (required)
        - NETSTORAGE_KEY_NAME (required)
        - NETSTORAGE_KEY (required)
        - NETSTORAGE_SSL (default: false)
        - NETSTORAGE_VERBOSE (default: false)
        - NETSTORAGE_HTTP_TIMEOUT (default: 30.0)
        - NETSTORAGE_HTTP_RETRY (default: 0)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid or required values missing

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    host = os.getenv("NETSTORAGE_HOST")
    key_name = os.getenv("NETSTORAGE_KEY_NAME")
    key = os.getenv("NETSTORAGE_KEY")

    if not host:
        raise ValueError("NETSTORAGE_HOST environment variable is required")
    if not key_name:
        raise ValueError("NETSTORAGE_KEY_NAME environment variable is required")
    if not key:
        raise ValueError("NETSTORAGE_KEY environment variable is required")

    return Settings(
        host=host,
        key_name=key_name,
        key=key,
        ssl=str_to_bool(os.getenv("NETSTORAGE_SSL", "false")),
        verbose=str_to_bool(os.getenv("NETSTORAGE_VERBOSE", "false")),
        http_timeout_s=get_float("NETSTORAGE_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("NETSTORAGE_HTTP_RETRY", 0),
    )
