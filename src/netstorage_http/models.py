"""
Request models for the NetStorage client.

These Pydantic models describe one API call before it is signed and sent.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Action(str, Enum):
    """Values accepted in the "action" field of the action header."""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    STAT = "stat"
    DU = "du"
    DIR = "dir"
    DELETE = "delete"
    MKDIR = "mkdir"
    RMDIR = "rmdir"
    RENAME = "rename"
    SYMLINK = "symlink"
    MTIME = "mtime"


class ActionRequest(BaseModel):
    """One API call: which action on which path, with which extra fields."""
    model_config = ConfigDict(frozen=True)

    target_path: str = Field(..., min_length=1, description="Remote path the action applies to")
    action: Action = Field(..., description="Action name placed in the action header")
    fields: Dict[str, str] = Field(default_factory=dict, description="Extra action fields, in wire order")
    method: Literal["GET", "PUT"] = Field(default="GET", description="HTTP method")
    headers: Dict[str, str] = Field(default_factory=dict, description="Header overrides, applied last")

    @field_validator("fields", mode="before")
    @classmethod
    def _stringify_fields(cls, value):
        if value is None:
            return {}
        return {str(k): str(v) for k, v in dict(value).items()}

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value):
        return value.upper() if isinstance(value, str) else value

    def query_fields(self) -> Dict[str, str]:
        """Fields merged into the signed action query (action first)."""
        return {"action": self.action.value, **self.fields}


@dataclass(frozen=True)
class PreparedRequest:
    """A fully addressed, signed request ready for the transport."""
    url: str
    method: str
    headers: Mapping[str, str]


__all__ = ["Action", "ActionRequest", "PreparedRequest"]
