"""
This module provides the Source client: an SSE connection over httpx with a
small readyState machine and a listener registry.
"""

from __future__ import annotations

import asyncio
import logging
from enum import IntEnum
from typing import Any, AsyncGenerator, Callable, Optional

import httpx

from sse_source._client import HttpConfig, SourceHttpClient
from sse_source._config import HttpMethod, SourceConfig, build_headers
from sse_source._dispatch import EventDispatcher, Listener, Propagation, SourceEvent
from sse_source._errors import MissingBodyError, SSESourceError, StreamFailure, TransportError
from sse_source._sse import SSEChunkParser

logger = logging.getLogger(__name__)


class ReadyState(IntEnum):
    INITIALIZING = -1
    CONNECTING = 0
    OPEN = 1
    CLOSED = 2


class Source:
    """
    Client for one Server-Sent Events stream.

    The connection attempt is scheduled on the running event loop as soon as
    the instance is created (``autostart=True``). Events are delivered to
    handler slots (``onmessage``, ``onerror``...) and to listeners registered
    with ``on`` or ``add_listener``.

    Example:
        >>> source = Source.get("https://example.com/stream")
        >>> source.on("greet", lambda e: print(e.data))
        >>> await source.wait_closed()
    """

    INITIALIZING = ReadyState.INITIALIZING
    CONNECTING = ReadyState.CONNECTING
    OPEN = ReadyState.OPEN
    CLOSED = ReadyState.CLOSED

    def __init__(
        self,
        url: httpx.URL | str,
        *,
        method: HttpMethod = "GET",
        body: Any | None = None,
        config: SourceConfig | None = None,
        http_client: SourceHttpClient | None = None,
        autostart: bool = True,
    ) -> None:
        loop = asyncio.get_running_loop() if autostart else None

        self.url = str(url)
        self.method: HttpMethod = method
        self.body = body
        self.config = config or SourceConfig()
        self.with_credentials = self.config.with_credentials
        self.last_event_id: Optional[str] = None

        self._owns_http = http_client is None
        self._http = http_client or SourceHttpClient(config=HttpConfig(timeout_s=self.config.timeout_s))
        self._dispatcher = EventDispatcher()
        self._parser = SSEChunkParser()
        self._ready_state = ReadyState.INITIALIZING
        self._reader: Optional[AsyncGenerator[str, None]] = None
        self._task: Optional[asyncio.Task[None]] = None

        if loop is not None:
            self._task = loop.create_task(self.start())

    # ---- factories -------------------------------------------------------

    @classmethod
    def get(cls, url: httpx.URL | str, config: SourceConfig | None = None, **kwargs: Any) -> Source:
        return cls(url, method="GET", config=config, **kwargs)

    @classmethod
    def post(
        cls,
        url: httpx.URL | str,
        body: Any,
        config: SourceConfig | None = None,
        **kwargs: Any,
    ) -> Source:
        return cls(url, method="POST", body=body, config=config, **kwargs)

    # ---- readyState -----------------------------------------------------

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def headers(self) -> dict[str, str]:
        return build_headers(self.method, self.config.headers)

    def _set_ready_state(self, state: ReadyState) -> None:
        if self._ready_state is ReadyState.CLOSED:
            return
        logger.debug("SSE %s readyState %s -> %s", self.url, self._ready_state.name, state.name)
        self._ready_state = state
        self.dispatch_event(SourceEvent(type="readystatechange", ready_state=int(state)))

    # ---- handler slots --------------------------------------------------

    def set_handler(self, type: str, handler: Optional[Listener]) -> None:
        self._dispatcher.set_handler(type, handler)

    def get_handler(self, type: str) -> Optional[Listener]:
        return self._dispatcher.get_handler(type)

    @property
    def onmessage(self) -> Optional[Listener]:
        return self.get_handler("message")

    @onmessage.setter
    def onmessage(self, handler: Optional[Listener]) -> None:
        self.set_handler("message", handler)

    @property
    def onerror(self) -> Optional[Listener]:
        return self.get_handler("error")

    @onerror.setter
    def onerror(self, handler: Optional[Listener]) -> None:
        self.set_handler("error", handler)

    @property
    def onopen(self) -> Optional[Listener]:
        return self.get_handler("open")

    @onopen.setter
    def onopen(self, handler: Optional[Listener]) -> None:
        self.set_handler("open", handler)

    @property
    def onreadystatechange(self) -> Optional[Listener]:
        return self.get_handler("readystatechange")

    @onreadystatechange.setter
    def onreadystatechange(self, handler: Optional[Listener]) -> None:
        self.set_handler("readystatechange", handler)

    # ---- listeners -------------------------------------------------------

    def add_listener(self, type: str, listener: Listener) -> None:
        self._dispatcher.add_listener(type, listener)

    def remove_listener(self, type: str, listener: Listener) -> None:
        self._dispatcher.remove_listener(type, listener)

    def on(self, type: str, callback: Callable[[SourceEvent], Any]) -> Listener:
        return self._dispatcher.on(type, callback)

    def off(self, type: str) -> None:
        self._dispatcher.off(type)

    def dispatch_event(self, event: Optional[SourceEvent]) -> bool:
        return self._dispatcher.dispatch(event, source=self)

    # ---- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """
        Open the stream and run the read loop until it ends or the source closes.

        Stream failures never propagate: they are dispatched as ``error``
        events and the source closes. An exception raised by an ``error``
        listener still closes the source and then escapes the task.
        """
        if self._ready_state is not ReadyState.INITIALIZING:
            return
        self._set_ready_state(ReadyState.CONNECTING)
        if self._ready_state is ReadyState.CLOSED:
            return

        try:
            async with self._http.stream(
                self.method, self.url, headers=self.headers, body=self.body
            ) as response:
                if not response.is_success:
                    self._on_stream_failure(
                        TransportError(message=response.reason_phrase, status=response.status_code)
                    )

                reader = self._open_reader(response)
                if self._ready_state is not ReadyState.CLOSED:
                    self._reader = reader
                if reader is None:
                    self._on_stream_failure(MissingBodyError(message="The response did not have a body"))
                    return

                try:
                    while self._ready_state is not ReadyState.CLOSED:
                        try:
                            value = await anext(reader)
                        except StopAsyncIteration:
                            self._on_stream_done()
                            break
                        self._on_stream_progress(value)
                finally:
                    await reader.aclose()
        except Exception as e:
            self._on_stream_failure(StreamFailure.from_exception(e))

    @staticmethod
    def _open_reader(response: httpx.Response) -> Optional[AsyncGenerator[str, None]]:
        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        return response.aiter_text()

    def _on_stream_progress(self, value: str) -> None:
        if not value:
            return
        if self._ready_state is ReadyState.CONNECTING:
            self.dispatch_event(SourceEvent(type="open"))
            self._set_ready_state(ReadyState.OPEN)
            if self._ready_state is ReadyState.CLOSED:
                return

        for event in self._parser.feed(value):
            self._dispatch_record(event)

    def _on_stream_done(self) -> None:
        for event in self._parser.flush():
            self._dispatch_record(event)
        if self._ready_state is not ReadyState.CLOSED:
            self._reader = None
            self._set_ready_state(ReadyState.CLOSED)

    def _dispatch_record(self, event: SourceEvent) -> None:
        # Un listener pudo haber cerrado el source durante este mismo chunk.
        if self._ready_state is ReadyState.CLOSED:
            return
        if event.id is not None:
            self.last_event_id = event.id
        self.dispatch_event(event)

    def _on_stream_failure(self, error: SSESourceError) -> None:
        if self._ready_state is ReadyState.CLOSED:
            return
        logger.warning("SSE %s stream failure: %s", self.url, error)
        try:
            self.dispatch_event(SourceEvent(type="error", data=error))
        finally:
            self.close()

    def close(self) -> None:
        if self._ready_state is ReadyState.CLOSED:
            return
        self._reader = None
        self._set_ready_state(ReadyState.CLOSED)

    async def wait_closed(self) -> None:
        """Wait until the background read task has finished."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def aclose(self) -> None:
        """Close the source and the HTTP client it created."""
        self.close()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> Source:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


__all__ = ["Propagation", "ReadyState", "Source", "SourceEvent"]
