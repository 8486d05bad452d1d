"""ActionContext: the mutable execution context of one action invocation.

Fields are read and written as attributes. Subclasses may define
properties or methods that derive richer values (for example a loaded
``order`` for an ``order_id`` field); those count as accessors and take
precedence when validation asks for a model-backed field.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class ActionContext:
    """Mutable per-invocation store of provided and exposed values.

    Never share one instance across concurrent invocations.
    """

    def __init__(self, provided: Mapping[str, Any] | None = None, **values: Any) -> None:
        data = dict(provided or {})
        data.update(values)
        object.__setattr__(self, "_provided", data)
        object.__setattr__(self, "_exposed", {})

    @property
    def provided_data(self) -> dict[str, Any]:
        return self._provided

    @property
    def exposed_data(self) -> dict[str, Any]:
        return self._exposed

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._exposed:
            return self._exposed[name]
        if name in self._provided:
            return self._provided[name]
        raise AttributeError(f"{type(self).__name__} has no field '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if isinstance(getattr(type(self), name, None), property):
            object.__setattr__(self, name, value)
            return
        self._provided[name] = value

    def read(self, name: str, default: Any = None) -> Any:
        """Return the raw value of *name*, or *default* if it was never set."""
        if name in self._exposed:
            return self._exposed[name]
        return self._provided.get(name, default)

    def expose(self, name: str, value: Any) -> None:
        self._exposed[name] = value

    def has_accessor(self, name: str) -> bool:
        """Whether a subclass defines *name* as a derived accessor.

        The context's own API (``read``, ``expose``, ``provided_data`` ...)
        never counts, so fields may share those names.
        """
        if name.startswith("_") or hasattr(ActionContext, name):
            return False
        return hasattr(type(self), name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} provided={self._provided!r} exposed={self._exposed!r}>"
