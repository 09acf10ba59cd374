"""
Incremental parser for Server-Sent Events (SSE).
Reassembles records from arbitrarily sized text chunks and turns each one into a SourceEvent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from sse_source._dispatch import SourceEvent

FIELD_SEPARATOR = ":"

# Dos terminadores seguidos (cualquier mezcla de \r\n, \r, \n) cierran un record.
# Un \r seguido de \n cuenta como un solo terminador.
RECORD_BOUNDARY = re.compile(r"(?:\r\n|\r(?!\n)|\n){2}")
LINE_BREAK = re.compile(r"\r\n|\r|\n")

KNOWN_FIELDS = frozenset({"id", "retry", "data", "event"})


@dataclass(slots=True)
class RawEventRecord:
    """
    Mutable accumulator for one SSE record while its lines are parsed.
    ``retry`` is parsed but not acted upon.
    """

    id: str | None = None
    retry: int | None = None
    data: str = ""
    event: str = "message"

    def apply(self, field: str, value: str) -> None:
        if field == "data":
            self.data += value
        elif field == "id":
            self.id = value
        elif field == "event":
            self.event = value
        elif field == "retry" and value.isdigit() and value.isascii():
            self.retry = int(value)

    def to_event(self) -> SourceEvent:
        return SourceEvent(type=self.event, data=self.data, id=self.id)


def parse_record(chunk: str) -> RawEventRecord | None:
    """
    Parse the text of one record into a RawEventRecord.

    Args:
        chunk: Raw record text, without the terminating blank line.

    Returns:
        The accumulated record, or None when the text is empty or whitespace.
    """
    if not chunk or not chunk.strip():
        return None

    record = RawEventRecord()
    for line in LINE_BREAK.split(chunk):
        line = line.rstrip()
        index = line.find(FIELD_SEPARATOR)
        if index <= 0:
            # Línea vacía, comentario (":...") o sin separador.
            continue
        field = line[:index]
        if field not in KNOWN_FIELDS:
            continue
        record.apply(field, line[index + 1 :].lstrip())
    return record


def parse_event_chunk(chunk: str) -> SourceEvent | None:
    """Parse the text of one record into a SourceEvent (None if there is nothing to dispatch)."""
    record = parse_record(chunk)
    return record.to_event() if record is not None else None


class SSEChunkParser:
    """
    Stateful parser fed with text as it arrives from the transport.

    Every ``feed`` argument is treated as newly arrived text. Records and
    record boundaries may span any number of chunks.
    """

    def __init__(self) -> None:
        self.progress = 0
        self.pending = ""

    def feed(self, text: str) -> list[SourceEvent]:
        """
        Append ``text`` and return the events for every record it completes.
        """
        self.progress += len(text)
        self.pending += text

        events: list[SourceEvent] = []
        start = 0
        for match in RECORD_BOUNDARY.finditer(self.pending):
            event = parse_event_chunk(self.pending[start : match.start()].strip())
            if event is not None:
                events.append(event)
            start = match.end()
        self.pending = self.pending[start:]
        return events

    def flush(self) -> list[SourceEvent]:
        """Parse whatever is still pending, terminated or not, and clear the buffer."""
        event = parse_event_chunk(self.pending.strip())
        self.pending = ""
        return [event] if event is not None else []


def iter_sse_events_from_text(text: str) -> Iterator[SourceEvent]:
    """
    Parse SSE events from a complete text block.

    Args:
        text: The raw string containing one or multiple SSE records.

    Yields:
        SourceEvent objects, including a final record without a trailing blank line.
    """
    parser = SSEChunkParser()
    yield from parser.feed(text)
    yield from parser.flush()
