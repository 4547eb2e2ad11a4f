"""
Typed publish/subscribe primitive shared by every stream connection.

Guarantees:
- Registration and removal are O(1) (one set per event name)
- A raising listener is logged and never stops the other listeners
- emit() is synchronous and re-entrant: listeners may call on/off/emit
  while being dispatched (dispatch iterates over a snapshot)
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from gloski.events.types import StreamEvent
from gloski.observability.logger import log_event, now_ms


Listener = Callable[..., None]


@dataclass(eq=False)
class Subscription:
    """
    Handle returned by on()/once().

    unsubscribe() is idempotent.
    """
    emitter: EventEmitter
    event: StreamEvent
    listener: Listener
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.emitter.off(self.event, self.listener)


class EventEmitter:
    """
    Event emitter keyed by StreamEvent.

    Event names may be passed as StreamEvent members or their string
    values ("data", "close", ...). Subclasses narrow EVENTS to the events
    they actually emit; using any other name raises ValueError.
    """

    EVENTS: ClassVar[frozenset[StreamEvent]] = frozenset(StreamEvent)

    def __init__(self) -> None:
        self._listeners: dict[StreamEvent, set[Listener]] = {}

    def _key(self, event: StreamEvent | str) -> StreamEvent:
        key = StreamEvent(event)
        if key not in self.EVENTS:
            raise ValueError(
                f"{type(self).__name__} does not emit {key.value!r}"
            )
        return key

    def on(self, event: StreamEvent | str, listener: Listener) -> Subscription:
        """Register a listener and return its subscription handle."""
        key = self._key(event)
        self._listeners.setdefault(key, set()).add(listener)
        return Subscription(emitter=self, event=key, listener=listener)

    def off(self, event: StreamEvent | str, listener: Listener) -> EventEmitter:
        """Remove a listener. Unknown listeners are ignored."""
        key = self._key(event)
        listeners = self._listeners.get(key)
        if listeners is not None:
            listeners.discard(listener)
            if not listeners:
                del self._listeners[key]
        return self

    def once(self, event: StreamEvent | str, listener: Listener) -> Subscription:
        """Register a listener that is removed before its first call."""
        key = self._key(event)

        def _wrapper(*args: Any) -> None:
            self.off(key, _wrapper)
            listener(*args)

        return self.on(key, _wrapper)

    def emit(self, event: StreamEvent | str, *args: Any) -> bool:
        """
        Call every listener for `event` with `args`.

        Returns True iff at least one listener was registered.
        """
        key = self._key(event)
        listeners = self._listeners.get(key)
        if not listeners:
            return False

        for listener in tuple(listeners):
            # Removed earlier in this same dispatch
            if listener not in self._listeners.get(key, ()):
                continue
            try:
                listener(*args)
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": now_ms(),
                    "event_type": "LISTENER_ERROR",
                    "event": key.value,
                    "listener": getattr(listener, "__qualname__", repr(listener)),
                    "error": repr(e),
                    "traceback": traceback.format_exc(),
                })

        return True

    def remove_all_listeners(
        self, event: StreamEvent | str | None = None
    ) -> EventEmitter:
        """Remove the listeners for one event, or for every event."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(self._key(event), None)
        return self

    def listener_count(self, event: StreamEvent | str) -> int:
        return len(self._listeners.get(self._key(event), ()))
