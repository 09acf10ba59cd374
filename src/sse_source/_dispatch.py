"""
Event objects and the listener registry that delivers them.

Two registration modes exist per event type:

- simple mode (``on``/``off``): exactly one callback, ``data`` JSON-decoded.
- advanced mode (``add_listener``/``remove_listener``): ordered callbacks,
  raw ``data``.

The modes are not meant to be mixed for the same type; ``on`` replaces every
listener registered for that type.
"""

from __future__ import annotations

import json
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class Propagation(Enum):
    CONTINUE = "continue"
    STOP = "stop"


@dataclass(slots=True)
class SourceEvent:
    """
    A single event delivered to listeners.
    ``ready_state`` is only set on ``readystatechange`` events.
    """

    type: str
    data: Any = None
    id: Optional[str] = None
    ready_state: Optional[int] = None
    default_prevented: bool = False
    _source_ref: Optional[weakref.ReferenceType[Any]] = field(default=None, repr=False, compare=False)

    @property
    def source(self) -> Any:
        """The Source that dispatched this event, if it is still alive."""
        return self._source_ref() if self._source_ref is not None else None

    def prevent_default(self) -> None:
        """Stop delivery to the listeners that follow."""
        self.default_prevented = True


Listener = Callable[[SourceEvent], Optional[Propagation]]


def format_event_data(event: SourceEvent) -> None:
    """
    Decode ``event.data`` as JSON in place.

    Falsy data becomes ``None``; text that is not valid JSON is left unchanged.
    """
    if not event.data:
        event.data = None
        return
    if not isinstance(event.data, str):
        return
    try:
        event.data = json.loads(event.data)
    except (json.JSONDecodeError, ValueError):
        return


class EventDispatcher:
    """Listener registry plus one designated handler slot per event type."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._handlers: dict[str, Listener] = {}

    def listeners(self, type: str) -> list[Listener]:
        return list(self._listeners.get(type, ()))

    def add_listener(self, type: str, listener: Listener) -> None:
        callbacks = self._listeners.setdefault(type, [])
        if not any(cb is listener for cb in callbacks):
            callbacks.append(listener)

    def remove_listener(self, type: str, listener: Listener) -> None:
        callbacks = self._listeners.get(type)
        if callbacks is None:
            return
        filtered = [cb for cb in callbacks if cb is not listener]
        if filtered:
            self._listeners[type] = filtered
        else:
            del self._listeners[type]

    def on(self, type: str, callback: Callable[[SourceEvent], Any]) -> Listener:
        """
        Register ``callback`` as the only listener for ``type``.

        The event's ``data`` is JSON-decoded before the callback runs.

        Returns:
            The wrapping listener actually stored in the registry.
        """

        def _wrapper(event: SourceEvent) -> Optional[Propagation]:
            format_event_data(event)
            return callback(event)

        self._listeners[type] = [_wrapper]
        return _wrapper

    def off(self, type: str) -> None:
        self._listeners.pop(type, None)

    def get_handler(self, type: str) -> Optional[Listener]:
        return self._handlers.get(type)

    def set_handler(self, type: str, handler: Optional[Listener]) -> None:
        if handler is None:
            self._handlers.pop(type, None)
        else:
            self._handlers[type] = handler

    def dispatch(self, event: Optional[SourceEvent], source: Any = None) -> bool:
        """
        Deliver ``event`` to its handler slot and then to its listeners.

        Returns:
            False if a callback cancelled the event, True otherwise.
        """
        if event is None:
            return True

        if source is not None:
            event._source_ref = weakref.ref(source)

        handler = self._handlers.get(event.type)
        if handler is not None:
            if self._stopped(event, handler(event)):
                return False

        # Copia: un listener puede modificar el registro durante el dispatch.
        for callback in list(self._listeners.get(event.type, ())):
            if self._stopped(event, callback(event)):
                return False
        return True

    @staticmethod
    def _stopped(event: SourceEvent, result: Any) -> bool:
        if result is Propagation.STOP:
            event.default_prevented = True
        return event.default_prevented
