"""Matchers: composable predicates over flow events.

A matcher is a conjunction of rules with an overall ``invert`` flag,
built once from declarative ``if_`` / ``unless`` / ``from_`` options.

Supplying ``unless`` both contributes the predicate as a rule *and* sets
``invert``. Alone that reads as "match when the predicate is false", but
the inversion covers the whole conjunction: ``unless=f, from_=X`` matches
when ``f`` is false *or* the cause is not an ``X``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from actionkit import diagnostics
from actionkit.errors import ConfigurationError
from actionkit.flow.events import FlowEvent
from actionkit.flow.invoker import call_with_exception, resolve_handler
from actionkit.lookup import is_instance_of

logger = logging.getLogger(__name__)

Predicate = Callable[..., Any] | str


class Rule(ABC):
    @abstractmethod
    def evaluate(self, event: FlowEvent) -> bool: ...


def _apply_predicate(predicate: Predicate, event: FlowEvent) -> bool:
    fn = resolve_handler(predicate, event.action)
    if fn is not None:
        return bool(call_with_exception(fn, event.exception))
    if isinstance(predicate, str):
        # Not an action method: treat as an exception class name.
        return event.exception is not None and is_instance_of(event.exception, predicate)
    logger.warning("Ignoring apparently-invalid matcher %r", predicate)
    return False


@dataclass(frozen=True)
class IfRule(Rule):
    predicate: Predicate

    def evaluate(self, event: FlowEvent) -> bool:
        return _apply_predicate(self.predicate, event)


@dataclass(frozen=True)
class UnlessRule(Rule):
    """The excluded condition; its negation comes from the matcher's ``invert``."""

    predicate: Predicate

    def evaluate(self, event: FlowEvent) -> bool:
        return _apply_predicate(self.predicate, event)


@dataclass(frozen=True)
class FromClassRule(Rule):
    """Matches when the event's cause is one of ``classes`` (or a subclass).

    Strings are compared by class name anywhere in the cause's MRO, which
    avoids importing the class where the rule is declared.
    """

    classes: tuple[str | type, ...]

    def evaluate(self, event: FlowEvent) -> bool:
        cause = event.cause
        if cause is None:
            return False
        return any(
            is_instance_of(cause, cls) if isinstance(cls, str) else isinstance(cause, cls)
            for cls in self.classes
        )


@dataclass(frozen=True)
class Matcher:
    rules: tuple[Rule, ...] = ()
    invert: bool = False

    @classmethod
    def build(
        cls,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        from_: str | type | Sequence[str | type] | None = None,
    ) -> Matcher:
        if if_ is not None and unless is not None:
            raise ConfigurationError("cannot combine if_ and unless")
        rules: list[Rule] = []
        if if_ is not None:
            rules.append(IfRule(if_))
        if unless is not None:
            rules.append(UnlessRule(unless))
        if from_ is not None:
            classes = tuple(from_) if isinstance(from_, (list, tuple)) else (from_,)
            if not classes:
                raise ConfigurationError("from_ requires at least one class")
            rules.append(FromClassRule(classes))
        return cls(rules=tuple(rules), invert=unless is not None)

    @property
    def static(self) -> bool:
        """A static matcher has no rules and matches everything."""
        return not self.rules and not self.invert

    def matches(self, event: FlowEvent) -> bool:
        """All rules true (short-circuiting), then flipped when ``invert``.

        A rule that raises is reported and the matcher does not match.
        """
        try:
            result = all(rule.evaluate(event) for rule in self.rules)
        except Exception as exc:
            diagnostics.report("determining if handler applies to exception", exc)
            return False
        return not result if self.invert else result
