"""
Event dispatch for the simulation core.
Components publish named events (``recession_start``, ``healthcare.staffing_change``)
and external observers subscribe to them. Dispatch never feeds back into the step:
subscriber failures are logged and swallowed.
"""

import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

WILDCARD = "*"


class EventPhase(Enum):
    PRE_SIMULATION = "preSimulation"
    MAIN = "mainPhase"
    POST_SIMULATION = "postSimulation"


@dataclass
class Event:
    id: int
    type: str
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    month: Optional[int] = None


@dataclass
class _Subscription:
    handler: Callable[[Event], None]
    priority: int = 0
    enabled: bool = True


class EventBus:
    """
    Explicitly constructed dispatcher, one per simulation session.

    Handlers registered for a dotted prefix also receive more specific events:
    a subscriber of ``healthcare`` sees ``healthcare.staffing_change``.
    Subscribers of ``*`` see everything.
    """

    def __init__(self, history_length: int = 500):
        self.subscriptions: Dict[str, List[_Subscription]] = {}
        self.history: Deque[Event] = deque(maxlen=history_length)
        self.queues: Dict[EventPhase, List[Event]] = {phase: [] for phase in EventPhase}
        self.current_month: Optional[int] = None
        self._ids = itertools.count(1)

    def subscribe(self, event_type: str, handler: Callable[[Event], None], priority: int = 0):
        subs = self.subscriptions.setdefault(event_type, [])
        subs.append(_Subscription(handler=handler, priority=priority))
        # Highest priority first, stable for equal priorities
        subs.sort(key=lambda s: -s.priority)

    def unsubscribe(self, event_type: str, handler: Callable[[Event], None]):
        if event_type not in self.subscriptions:
            return
        self.subscriptions[event_type] = [
            s for s in self.subscriptions[event_type] if s.handler != handler
        ]

    def publish(self, event_type: str, data: Optional[Dict[str, Any]] = None,
                source: str = "system") -> Event:
        """Dispatch an event immediately and return it."""
        event = self._create_event(event_type, data, source)
        self._dispatch(event)
        return event

    def queue_event(self, event_type: str, data: Optional[Dict[str, Any]] = None,
                    phase: EventPhase = EventPhase.MAIN, source: str = "system") -> int:
        """Defer an event until ``process_phase(phase)`` runs; returns its id."""
        if not isinstance(phase, EventPhase):
            raise ValueError(f"Invalid event phase: {phase}")
        event = self._create_event(event_type, data, source)
        self.queues[phase].append(event)
        return event.id

    def process_phase(self, phase: EventPhase) -> int:
        """Dispatch queued events of one phase in FIFO order. Returns how many ran."""
        queue = self.queues[phase]
        processed = 0
        while queue:
            self._dispatch(queue.pop(0))
            processed += 1
        return processed

    def handlers_for(self, event_type: str) -> List[_Subscription]:
        """Subscriptions matching the type and each of its dotted prefixes, most specific first."""
        parts = event_type.split(".")
        handlers: List[_Subscription] = []
        while parts:
            handlers.extend(self.subscriptions.get(".".join(parts), []))
            parts.pop()
        if event_type != WILDCARD:
            handlers.extend(self.subscriptions.get(WILDCARD, []))
        return handlers

    def get_event_history(self, **filters) -> List[Event]:
        """Past events whose attributes equal every given filter, e.g. ``type="recession_start"``."""
        return [
            e for e in self.history
            if all(getattr(e, key, None) == value for key, value in filters.items())
        ]

    def clear(self):
        self.history.clear()
        for queue in self.queues.values():
            queue.clear()

    def _create_event(self, event_type: str, data: Optional[Dict[str, Any]], source: str) -> Event:
        return Event(
            id=next(self._ids),
            type=event_type,
            data=dict(data or {}),
            source=source,
            month=self.current_month,
        )

    def _dispatch(self, event: Event):
        self.history.append(event)
        for sub in self.handlers_for(event.type):
            if not sub.enabled:
                continue
            try:
                sub.handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event.type}")
