"""
netstorage-http: async client for the NetStorage HTTP API.

Signs every request with the shared upload key and offers create(), an
upload that first materializes the target's parent directories.
"""
from .client import NetStorageClient
from .errors import NetStorageError, ParseError, ProtocolError, TransportError, ValidationError
from .models import Action, ActionRequest
from .payload import RawPayload, StreamSource, UploadSource
from .settings import Settings, create_settings_from_env

__version__ = "0.1.0"

__all__ = [
    "NetStorageClient",
    "Settings",
    "create_settings_from_env",
    "Action",
    "ActionRequest",
    "UploadSource",
    "RawPayload",
    "StreamSource",
    "NetStorageError",
    "TransportError",
    "ProtocolError",
    "ParseError",
    "ValidationError",
]
