"""
Request signing for the NetStorage HTTP API.

Every request carries three headers:

    X-Akamai-ACS-Action      the action query string ("version=1&action=stat&format=xml")
    X-Akamai-ACS-Auth-Data   "5, 0.0.0.0, 0.0.0.0, <unix time>, <nonce>, <key name>"
    X-Akamai-ACS-Auth-Sign   base64(HMAC-SHA256(key, message))

where message is the auth data immediately followed by the request path
(one trailing slash removed), a newline, "x-akamai-acs-action:" plus the
action query string, and a final newline.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from urllib.parse import quote, urlencode

from .settings import Settings

__all__ = [
    "AuthHeaders",
    "build_action_query",
    "build_auth_data",
    "compute_signature",
    "sign",
    "unique_id",
]

AUTH_VERSION = 5
CLIENT_IP = "0.0.0.0"
SERVER_IP = "0.0.0.0"

ACTION_HEADER = "X-Akamai-ACS-Action"
AUTH_DATA_HEADER = "X-Akamai-ACS-Auth-Data"
AUTH_SIGN_HEADER = "X-Akamai-ACS-Auth-Sign"

# Query defaults, in the order they appear on the wire
_QUERY_DEFAULTS = (("version", "1"), ("action", "du"), ("format", "xml"))

# Characters encodeURIComponent leaves alone besides the always-safe "_.-~"
_QUERY_SAFE = "!*'()"


@dataclass(frozen=True)
class AuthHeaders:
    """The three authentication headers for one request."""
    action: str
    auth_data: str
    auth_sign: str

    def as_headers(self) -> Dict[str, str]:
        return {
            ACTION_HEADER: self.action,
            AUTH_DATA_HEADER: self.auth_data,
            AUTH_SIGN_HEADER: self.auth_sign,
        }


def build_action_query(fields: Optional[Mapping[str, object]] = None) -> str:
    """
    Build the action query string that is both sent and signed.

    Caller fields override the defaults in place; new fields are appended
    in insertion order.

    Examples:
        >>> build_action_query({"action": "stat"})
        'version=1&action=stat&format=xml'

        >>> build_action_query({"action": "rename", "destination": "/1/b c"})
        'version=1&action=rename&format=xml&destination=%2F1%2Fb%20c'
    """
    merged: Dict[str, str] = dict(_QUERY_DEFAULTS)
    for name, value in (fields or {}).items():
        merged[name] = str(value)
    return urlencode(merged, safe=_QUERY_SAFE, quote_via=quote)


def unique_id() -> str:
    """
    Per-request nonce: six random bytes as concatenated decimals plus the pid.

    secrets draws from the OS CSPRNG, which is safe to share across threads
    and tasks.
    """
    return "".join(str(b) for b in secrets.token_bytes(6)) + str(os.getpid())


def build_auth_data(key_name: str, timestamp: int, nonce: str) -> str:
    return ", ".join(
        [str(AUTH_VERSION), CLIENT_IP, SERVER_IP, str(timestamp), nonce, key_name]
    )


def compute_signature(key: str, auth_data: str, path: str, action_query: str) -> str:
    """Base64 HMAC-SHA256 over the exact three-line message layout."""
    if path.endswith("/"):
        path = path[:-1]
    message = "\n".join([auth_data + path, f"x-akamai-acs-action:{action_query}", ""])
    digest = hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    path: str,
    query_fields: Optional[Mapping[str, object]],
    settings: Settings,
    *,
    now: Optional[float] = None,
    nonce: Optional[str] = None,
) -> AuthHeaders:
    """
    Compute fresh authentication headers for a request.

    Args:
        path: Remote path as requested (e.g. "/12345/images/cat.png")
        query_fields: Action fields merged over the defaults
        settings: Settings providing key_name and key
        now: Unix time override; wall clock when omitted
        nonce: Nonce override; a new unique_id() when omitted

    Returns:
        AuthHeaders for the request
    """
    action_query = build_action_query(query_fields)
    timestamp = int(time.time() if now is None else now)
    auth_data = build_auth_data(settings.key_name, timestamp, nonce or unique_id())
    return AuthHeaders(
        action=action_query,
        auth_data=auth_data,
        auth_sign=compute_signature(settings.key, auth_data, path, action_query),
    )
