"""
This module holds the configuration accepted by the public Source factories.
It also normalizes header names and builds the default request headers.
"""

from __future__ import annotations

import os
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_HTTP_DEBUG = "SSE_SOURCE_HTTP_DEBUG"

HttpMethod = Literal["GET", "POST"]

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"
JSON_CONTENT_TYPE = "application/json"


class SourceConfig(BaseModel):
    """
    Optional settings for a Source connection.
    Caller headers are merged over the defaults after name normalization.
    """
    model_config = ConfigDict(extra="forbid")
    headers: dict[str, str] = Field(default_factory=dict)
    with_credentials: bool = False
    timeout_s: Optional[float] = Field(default=None, gt=0)


def http_debug_enabled() -> bool:
    return os.getenv(ENV_HTTP_DEBUG, "").lower() in {"1", "true", "yes", "on"}


def normalize_header_name(name: str) -> str:
    """
    Convert a header name to canonical Title-Case.

    Args:
        name: Header name in any casing, e.g. ``content-type``.

    Returns:
        The canonical form, e.g. ``Content-Type``.
    """
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.strip().split("-"))


def build_headers(method: HttpMethod, headers: dict[str, Any] | None = None) -> dict[str, str]:
    """
    Build the request headers for a stream request.

    GET requests default to ``text/event-stream`` and POST requests to
    ``application/json``. Caller headers override or extend the defaults.
    """
    out: dict[str, str] = {
        "Content-Type": EVENT_STREAM_CONTENT_TYPE if method == "GET" else JSON_CONTENT_TYPE,
    }
    for key, value in (headers or {}).items():
        out[normalize_header_name(key)] = str(value)
    return out
