"""DispatchRegistry: ordered handler descriptors keyed by event type.

The registry is immutable and copy-on-write: ``register`` returns a new
registry, so a definition can hand out its current registry to concurrent
invocations without locking. Registration order is the only tie-break.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from actionkit.config.settings import get_settings
from actionkit.flow.descriptors import CallbackDescriptor, MessageDescriptor
from actionkit.flow.events import EventType, FlowEvent

logger = logging.getLogger(__name__)

Descriptor = CallbackDescriptor | MessageDescriptor


class DispatchRegistry:
    """Selects which messages and callbacks apply to an event."""

    def __init__(self, index: Mapping[str, tuple[Descriptor, ...]] | None = None) -> None:
        self._index: dict[str, tuple[Descriptor, ...]] = {
            str(key): tuple(entries) for key, entries in (index or {}).items()
        }

    @classmethod
    def empty(cls) -> DispatchRegistry:
        return cls()

    def register(self, event_type: EventType | str, descriptor: Descriptor) -> DispatchRegistry:
        """Return a new registry with *descriptor* appended under *event_type*."""
        key = str(EventType(event_type))
        updated = dict(self._index)
        updated[key] = (*self._index.get(key, ()), descriptor)
        return type(self)(updated)

    def for_event(self, event_type: EventType | str) -> tuple[Descriptor, ...]:
        return self._index.get(str(EventType(event_type)), ())

    def is_empty(self) -> bool:
        return not self._index

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._index.values())

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def dispatch_message(
        self,
        event: FlowEvent,
        event_type: EventType | str = EventType.ERROR,
    ) -> str | None:
        """Rendered text of the first matching message, or None on a miss.

        Matches whose handler renders nothing fall through to the next
        matching descriptor.
        """
        for descriptor in self._messages(event_type):
            if not descriptor.matches(event):
                continue
            fallback = None
            if descriptor.handler is None and event.exception is None:
                fallback = self._static_body(event, event_type, skip=descriptor)
            text = descriptor.render(event, fallback_body=fallback)
            if text is not None:
                return text
        return None

    def resolve_message(
        self,
        event: FlowEvent,
        event_type: EventType | str = EventType.ERROR,
    ) -> str:
        """Like :meth:`dispatch_message`, falling back to the configured default."""
        message = self.dispatch_message(event, event_type)
        if message is not None:
            return message
        return self.default_message(event, event_type)

    def default_message(
        self,
        event: FlowEvent,
        event_type: EventType | str = EventType.ERROR,
    ) -> str:
        """Message of the first static (unconditional) descriptor, else the config default."""
        body = self._static_body(event, event_type)
        if body is not None:
            return body
        messages = get_settings().messages
        if EventType(event_type) is EventType.SUCCESS:
            return messages.default_success
        return messages.default_error

    def _messages(self, event_type: EventType | str) -> list[MessageDescriptor]:
        return [d for d in self.for_event(event_type) if isinstance(d, MessageDescriptor)]

    def _static_body(
        self,
        event: FlowEvent,
        event_type: EventType | str,
        *,
        skip: MessageDescriptor | None = None,
    ) -> str | None:
        for descriptor in self._messages(event_type):
            if descriptor is skip or not descriptor.static or descriptor.handler is None:
                continue
            body = descriptor.render(event)
            if body is not None:
                return body
        return None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def dispatch_callbacks(
        self,
        event: FlowEvent,
        event_type: EventType | str = EventType.ERROR,
    ) -> list[CallbackDescriptor]:
        """Every matching callback, in registration order. Does not run them."""
        return [
            d
            for d in self.for_event(event_type)
            if isinstance(d, CallbackDescriptor) and d.matches(event)
        ]

    def run_callbacks(
        self,
        event: FlowEvent,
        event_type: EventType | str = EventType.ERROR,
    ) -> list[CallbackDescriptor]:
        """Run every matching callback; one failing callback never stops the rest."""
        matched = self.dispatch_callbacks(event, event_type)
        for descriptor in matched:
            descriptor.run(event)
        return matched

    def trigger(self, event: FlowEvent) -> list[CallbackDescriptor]:
        """Run the callbacks for every bucket *event* belongs to.

        Success events hit ``success``. Failures hit ``error`` then
        ``failure``; other exceptions hit ``error`` then ``exception``.
        """
        ran: list[CallbackDescriptor] = []
        for event_type in event_types_for(event):
            ran.extend(self.run_callbacks(event, event_type))
        logger.debug("Ran %d callback(s) for %r", len(ran), event.exception)
        return ran

    def __repr__(self) -> str:
        counts: dict[str, Any] = {key: len(entries) for key, entries in self._index.items()}
        return f"<{type(self).__name__} {counts}>"


def event_types_for(event: FlowEvent) -> list[EventType]:
    if event.exception is None:
        return [EventType.SUCCESS]
    if event.is_failure:
        return [EventType.ERROR, EventType.FAILURE]
    return [EventType.ERROR, EventType.EXCEPTION]
