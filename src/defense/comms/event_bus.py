"""EventBus — thread-safe pub/sub for game events.

The SimulationEngine publishes lifecycle events (wave start/complete,
eliminations, escapes, tower placement and merges, game over) so that a
rendering or announcer collaborator can react without polling the full
snapshot every frame.

Each subscriber gets its own bounded Queue.  Subscribers may pass a set
of event types to receive only those; ``None`` receives everything.
"""

from __future__ import annotations

import queue
import threading
from typing import Iterable


class EventBus:
    """Simple thread-safe pub/sub for pushing events to subscribers."""

    def __init__(self, maxsize: int = 100) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    def subscribe(self, topics: str | Iterable[str] | None = None) -> queue.Queue:
        """Subscribe to events. Returns a Queue of ``{"type", "data"}`` dicts.

        When *topics* is given, only events whose type is in *topics* are
        delivered to this queue.  A single string is one topic.
        """
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        if topics is None:
            wanted = None
        elif isinstance(topics, str):
            wanted = frozenset([topics])
        else:
            wanted = frozenset(topics)
        with self._lock:
            self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, t) for s, t in self._subscribers if s is not q]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg: dict = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            for q, wanted in self._subscribers:
                if wanted is not None and event_type not in wanted:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    # Drop oldest so game_over and wave events still land
                    # when a slow reader lets the queue fill up.
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(msg)
                    except queue.Full:
                        pass
