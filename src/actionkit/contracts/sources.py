"""Value sources: where a validation run reads field values from.

A :class:`ContextSource` wraps a live execution context; a
:class:`PayloadSource` wraps a raw, unvalidated payload (optionally with
the context it belongs to). Model-backed fields prefer a context
accessor over raw extraction when one exists, because contexts may
expose richer derived values than a plain mapping does.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from actionkit.context import ActionContext


@runtime_checkable
class ValueSource(Protocol):
    """Anything a validation run can read fields from."""

    def read_field(self, name: str, *, prefer_accessor: bool = False) -> Any: ...


def extract(name: str, data: Any) -> Any:
    """Read *name* from *data*, digging through dotted paths.

    Mappings are read by key, anything else by attribute. Missing keys
    and attributes read as None.

    Examples:
        >>> extract("user.email", {"user": {"email": "a@b.c"}})
        'a@b.c'
        >>> extract("missing", {}) is None
        True
    """
    current = data
    for part in name.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def _has_accessor(context: Any, name: str) -> bool:
    if isinstance(context, ActionContext):
        return context.has_accessor(name)
    return hasattr(type(context), name)


class ContextSource:
    """Reads fields from a live execution context."""

    def __init__(self, context: Any) -> None:
        self.context = context

    def has_accessor(self, name: str) -> bool:
        return _has_accessor(self.context, name)

    def read_field(self, name: str, *, prefer_accessor: bool = False) -> Any:
        # Live contexts always prefer their accessors.
        if self.has_accessor(name):
            return getattr(self.context, name)
        if isinstance(self.context, ActionContext) and "." not in name:
            return self.context.read(name)
        return extract(name, self.context)


class PayloadSource:
    """Reads fields from a raw payload, deferring to *context* for model accessors."""

    def __init__(self, payload: Any, *, context: Any = None) -> None:
        self.payload = payload
        self.context = context

    def read_field(self, name: str, *, prefer_accessor: bool = False) -> Any:
        if prefer_accessor and self.context is not None and _has_accessor(self.context, name):
            return getattr(self.context, name)
        return extract(name, self.payload)


def as_source(value: Any) -> ValueSource:
    """Wrap *value* in the right source (contexts live, anything else as payload)."""
    if isinstance(value, (ContextSource, PayloadSource)):
        return value
    if isinstance(value, ActionContext):
        return ContextSource(value)
    return PayloadSource(value)
