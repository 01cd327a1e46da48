"""EventBus — the single publish surface between the game core and its host.

The SessionController is the only publisher.  Hosts consume events either

  - synchronously, via ``add_listener(callback)``: the callback runs inside
    ``publish()``, on the tick that produced the event, or
  - asynchronously, via ``subscribe()``: a bounded Queue that a render or
    network thread drains at its own pace.

Events are instances of the closed set in ``mazechase.comms.events``; there
are no string topics to register or unregister, so there is nothing to race
on at teardown.  A bus outlives sessions: ``SessionRunner`` hands the same
bus to every session it creates so host subscriptions survive a restart.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable

from .events import EVENT_TYPES, SessionEvent

Listener = Callable[[SessionEvent], None]


class EventBus:
    """Thread-safe pub/sub for boundary events."""

    def __init__(self, queue_size: int = 1000) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[queue.Queue] = []
        self._listeners: list[Listener] = []
        self._queue_size = queue_size

    def subscribe(self) -> queue.Queue:
        """Subscribe to events.  Returns a Queue that receives every event."""
        q: queue.Queue = queue.Queue(maxsize=self._queue_size)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            try:
                self._subscribers.remove(q)
            except ValueError:
                pass

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def publish(self, event: SessionEvent) -> None:
        if not isinstance(event, EVENT_TYPES):
            raise TypeError(f"not a session event: {event!r}")
        with self._lock:
            subscribers = list(self._subscribers)
            listeners = list(self._listeners)
        for q in subscribers:
            try:
                q.put_nowait(event)
            except queue.Full:
                # Drop oldest message to make room so terminal events
                # are never lost behind a backlog of front updates.
                try:
                    q.get_nowait()
                except queue.Empty:
                    pass
                try:
                    q.put_nowait(event)
                except queue.Full:
                    pass
        for listener in listeners:
            listener(event)
