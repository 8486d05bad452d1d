"""Shared handler invocation with arity handling and fault isolation.

A handler may be a callable or the name of a method on the action. It is
called with ``exception=`` when it accepts that keyword (or ``**kwargs``),
positionally when it takes exactly one positional argument, and with no
arguments otherwise. Anything else is returned as a literal value.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from actionkit import diagnostics
from actionkit.flow.events import FlowEvent


def accepts_exception_keyword(fn: Callable[..., Any]) -> bool:
    params = _parameters(fn)
    return any(
        (p.name == "exception" and p.kind in (p.KEYWORD_ONLY, p.POSITIONAL_OR_KEYWORD))
        or p.kind is p.VAR_KEYWORD
        for p in params
    )


def accepts_positional_exception(fn: Callable[..., Any]) -> bool:
    params = _parameters(fn)
    positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    return len(positional) == 1 or any(p.kind is p.VAR_POSITIONAL for p in params)


def resolve_handler(handler: Any, action: Any) -> Callable[..., Any] | None:
    """Turn a method name into the bound method on *action*, if it has one."""
    if isinstance(handler, str):
        method = getattr(action, handler, None) if action is not None else None
        return method if callable(method) else None
    return handler if callable(handler) else None


def call_with_exception(fn: Callable[..., Any], exception: BaseException | None) -> Any:
    if exception is not None and accepts_exception_keyword(fn):
        return fn(exception=exception)
    if exception is not None and accepts_positional_exception(fn):
        return fn(exception)
    return fn()


def invoke(handler: Any, event: FlowEvent, *, operation: str = "executing handler") -> Any:
    """Invoke *handler* for *event*; errors are reported and yield None."""
    fn = resolve_handler(handler, event.action)
    if fn is None:
        return handler
    try:
        return call_with_exception(fn, event.exception)
    except Exception as exc:
        diagnostics.report(operation, exc)
        return None


def _parameters(fn: Callable[..., Any]) -> list[inspect.Parameter]:
    try:
        return list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return []
