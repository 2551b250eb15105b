"""
In-process change feed.

Services publish row-level INSERT/UPDATE/DELETE events after a successful write;
subscribers register a callback for a table, optionally narrowed to rows where
one column equals a value. The WebSocket route in app.modules.realtime relays
these events to browsers.
"""
import asyncio
import inspect
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")


@dataclass
class ChangeEvent:
    table: str
    event_type: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventType": self.event_type,
            "table": self.table,
            "new": self.new,
            "old": self.old,
        }


@dataclass
class Subscription:
    id: int
    table: str
    callback: Callable[[ChangeEvent], Any]
    filter_column: Optional[str] = None
    filter_value: Optional[str] = None

    @property
    def channel(self) -> str:
        if self.filter_column and self.filter_value is not None:
            return f"{self.table}-{self.filter_column}-{self.filter_value}"
        return f"{self.table}-all"

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if not self.filter_column or self.filter_value is None:
            return True
        row = event.old if event.event_type == "DELETE" else event.new
        value = (row or {}).get(self.filter_column)
        return value is not None and str(value) == str(self.filter_value)


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscriptions: Dict[int, Subscription] = {}
        # Strong refs; the loop only keeps weak ones to its tasks
        self._pending: Set[asyncio.Future] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        """Loop that runs coroutine callbacks published from threads without one"""
        self._loop = loop

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def subscribe(
        self,
        table: str,
        callback: Callable[[ChangeEvent], Any],
        filter_column: Optional[str] = None,
        filter_value: Optional[Any] = None,
    ) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        with self._lock:
            sub = Subscription(
                id=next(self._ids),
                table=table,
                callback=callback,
                filter_column=filter_column,
                filter_value=str(filter_value) if filter_value is not None else None,
            )
            self._subscriptions[sub.id] = sub
        logger.debug(f"Subscribed {sub.channel} ({sub.id})")

        def unsubscribe() -> None:
            with self._lock:
                self._subscriptions.pop(sub.id, None)
            logger.debug(f"Unsubscribed {sub.channel} ({sub.id})")

        return unsubscribe

    def publish(
        self,
        table: str,
        event_type: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Deliver an event to every matching subscriber. Returns the number of deliveries."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        event = ChangeEvent(table=table, event_type=event_type, new=new or {}, old=old or {})
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.matches(event)]
        delivered = 0
        for sub in targets:
            try:
                result = sub.callback(event)
                if inspect.isawaitable(result):
                    self._schedule(result)
                delivered += 1
            except Exception as e:
                logger.error(f"Change feed callback failed on {sub.channel}: {e}")
        return delivered

    def _schedule(self, awaitable) -> None:
        """
        Run a coroutine callback.

        On a thread with a running loop it becomes a tracked task. Elsewhere it is
        handed to the bound loop; with no bound loop it runs to completion in the
        publishing thread, so publish blocks until the callback is done.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            task = loop.create_task(awaitable)
            self._pending.add(task)
            task.add_done_callback(self._finished)
            return
        if self._loop is not None and self._loop.is_running():
            future = asyncio.run_coroutine_threadsafe(awaitable, self._loop)
            future.add_done_callback(self._finished)
            return
        asyncio.run(awaitable)

    def _finished(self, future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Change feed async callback failed: {error!r}")

    def subscription_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions.values() if s.table == table)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()


change_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    return change_feed
