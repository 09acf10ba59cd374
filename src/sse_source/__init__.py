from __future__ import annotations

from sse_source.source import ReadyState, Source
from sse_source._config import SourceConfig
from sse_source._dispatch import Propagation, SourceEvent
from sse_source._errors import MissingBodyError, SSESourceError, StreamFailure, TransportError
from sse_source._sse import iter_sse_events_from_text

__all__ = [
    "MissingBodyError",
    "Propagation",
    "ReadyState",
    "SSESourceError",
    "Source",
    "SourceConfig",
    "SourceEvent",
    "StreamFailure",
    "TransportError",
    "iter_sse_events_from_text",
]

__version__ = "0.1.0"
