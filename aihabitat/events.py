"""
Multi-subscriber event bus for simulation notifications.

Every outbound notification (decisions, mood changes, discoveries, conflicts,
dramatic moments, ...) is published on one ``EventBus``. Any number of
consumers (story system, UI, analytics, tests) can subscribe independently.

Subscriber failures are logged and swallowed: a broken consumer must never
change how the simulation evolves or stop other consumers from hearing about
the event.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .history import BoundedHistory
from .logging_utils import LOG_TAG_ERROR, log_error


class SimulationEvent(str, Enum):
    """Names of every notification the core publishes."""

    TICK = "tick"
    DECISION_MADE = "decision_made"
    MOOD_CHANGED = "mood_changed"
    ANIMATION_CHANGED = "animation_changed"
    LEARNING_EVENT = "learning_event"
    DEVICE_DISCOVERED = "device_discovered"
    CONNECTION_ESTABLISHED = "connection_established"
    SYNERGY_CREATED = "synergy_created"
    SYNERGY_EXPIRED = "synergy_expired"
    VISUAL_EFFECT = "visual_effect"
    CONFLICT_DETECTED = "conflict_detected"
    TENSION_ESCALATED = "tension_escalated"
    RESOURCE_COMPETITION = "resource_competition"
    DRAMATIC_MOMENT = "dramatic_moment"
    CONFLICT_RESOLVED = "conflict_resolved"


EventName = Union[SimulationEvent, str]
Handler = Callable[[Any], None]
WildcardHandler = Callable[[str, Any], None]


def _key(event: EventName) -> str:
    if isinstance(event, Enum):
        return str(event.value)
    return str(event)


class EventBus:
    """Publish/subscribe hub keyed by event name.

    ``subscribe`` returns a zero-argument callable that removes the handler,
    so consumers never need to keep a reference to the bus itself.
    Handlers run synchronously, in subscription order, inside ``publish``.
    """

    def __init__(self, history_limit: int = 500) -> None:
        self._subscribers: Dict[str, List[Handler]] = {}
        self._wildcard: List[WildcardHandler] = []
        self.recent: BoundedHistory[Tuple[str, Any]] = BoundedHistory(history_limit)

    def subscribe(self, event: EventName, handler: Handler) -> Callable[[], None]:
        name = _key(event)
        self._subscribers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._subscribers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: WildcardHandler) -> Callable[[], None]:
        """Receive every event as ``handler(event_name, payload)``."""
        self._wildcard.append(handler)

        def unsubscribe() -> None:
            if handler in self._wildcard:
                self._wildcard.remove(handler)

        return unsubscribe

    def publish(self, event: EventName, payload: Any = None) -> None:
        name = _key(event)
        self.recent.append((name, payload))

        # Copy so a handler may unsubscribe itself mid-dispatch.
        for handler in list(self._subscribers.get(name, [])):
            try:
                handler(payload)
            except Exception as exc:
                log_error(f"  {LOG_TAG_ERROR} [Events] Subscriber for '{name}' failed: {exc}")
        for wildcard in list(self._wildcard):
            try:
                wildcard(name, payload)
            except Exception as exc:
                log_error(f"  {LOG_TAG_ERROR} [Events] Wildcard subscriber failed on '{name}': {exc}")

    def subscriber_count(self, event: Optional[EventName] = None) -> int:
        if event is None:
            return sum(len(h) for h in self._subscribers.values()) + len(self._wildcard)
        return len(self._subscribers.get(_key(event), []))

    def clear(self) -> None:
        self._subscribers.clear()
        self._wildcard.clear()
