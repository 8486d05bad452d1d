"""Handler descriptors: a matcher paired with what to do on a match.

Two variants share one contract (``matcher``, ``handler``, ``matches``):
:class:`CallbackDescriptor` runs a side effect, :class:`MessageDescriptor`
renders user-facing text. Both are immutable once built.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from actionkit.errors import ConfigurationError
from actionkit.flow.events import FlowEvent
from actionkit.flow.invoker import invoke, resolve_handler
from actionkit.flow.matcher import Matcher, Predicate

logger = logging.getLogger(__name__)


class HandlerDescriptor(Protocol):
    matcher: Matcher
    handler: Any

    def matches(self, event: FlowEvent) -> bool: ...


@dataclass(frozen=True)
class CallbackDescriptor:
    """Side-effecting handler (logging, metrics, retries)."""

    matcher: Matcher
    handler: Callable[..., Any] | str

    @classmethod
    def build(
        cls,
        handler: Callable[..., Any] | str | None,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        from_: str | type | Sequence[str | type] | None = None,
    ) -> CallbackDescriptor:
        if handler is None:
            raise ConfigurationError("callbacks must be given a handler")
        if not (callable(handler) or isinstance(handler, str)):
            raise ConfigurationError(
                f"callback handler must be callable or a method name, got {handler!r}"
            )
        return cls(matcher=Matcher.build(if_=if_, unless=unless, from_=from_), handler=handler)

    def matches(self, event: FlowEvent) -> bool:
        return self.matcher.static or self.matcher.matches(event)

    def run(self, event: FlowEvent) -> None:
        """Invoke the handler; its errors are reported, never raised."""
        if isinstance(self.handler, str) and resolve_handler(self.handler, event.action) is None:
            logger.warning(
                "Ignoring apparently-invalid callback %r: action %r does not respond to it",
                self.handler,
                event.action,
            )
            return
        invoke(self.handler, event, operation="executing callback")


@dataclass(frozen=True)
class MessageDescriptor:
    """Templated user-facing message.

    ``handler`` is a callable, the name of a method on the action, literal
    text, or None; a descriptor without a handler renders the exception's
    own message. With a ``prefix`` the text is ``"<prefix>: <message>"``.
    """

    matcher: Matcher
    handler: Callable[..., Any] | str | None = None
    prefix: str | None = None

    @classmethod
    def build(
        cls,
        handler: Callable[..., Any] | str | None = None,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        from_: str | type | Sequence[str | type] | None = None,
        prefix: str | None = None,
    ) -> MessageDescriptor:
        if handler is None and prefix is None and from_ is None:
            raise ConfigurationError("Provide a message, handler, or prefix")
        return cls(
            matcher=Matcher.build(if_=if_, unless=unless, from_=from_),
            handler=handler,
            prefix=prefix,
        )

    @property
    def static(self) -> bool:
        return self.matcher.static

    def matches(self, event: FlowEvent) -> bool:
        return self.matcher.static or self.matcher.matches(event)

    def body(self, event: FlowEvent) -> str | None:
        """The message without prefix, or None when the handler yields nothing."""
        if self.handler is not None:
            text: Any = invoke(self.handler, event, operation="determining message callable")
        elif event.exception is not None:
            text = str(event.exception)
        else:
            return None
        if text is None:
            return None
        text = str(text)
        return text if text.strip() else None

    def render(self, event: FlowEvent, *, fallback_body: str | None = None) -> str | None:
        body = self.body(event) or fallback_body
        if body is None:
            return None
        return f"{self.prefix}: {body}" if self.prefix else body
