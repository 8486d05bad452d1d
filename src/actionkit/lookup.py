"""Lookup collaborators for existence validation and batch inference.

A lookup resolves entities by *kind*: a registered type name such as
``"Order"``. Kinds may also be given as classes; the class name is the
kind. Two implementations ship here: an in-memory registry for tests and
scripts, and a SQLAlchemy-backed one for mapped models.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session

ID_SUFFIX = "_id"


@runtime_checkable
class Lookup(Protocol):
    """Lookup collaborator interface."""

    def find_by_id(self, kind: str, id: Any) -> Any | None:
        """Return the entity of *kind* with identifier *id*, or None."""
        ...

    def all_of(self, kind: str) -> Iterable[Any]:
        """Return every known instance of *kind*."""
        ...


def kind_name(kind: str | type) -> str:
    """Normalize a kind given as a name or a class to its name."""
    if isinstance(kind, type):
        return kind.__name__
    return str(kind)


def infer_kind(field: str) -> str:
    """Derive a kind name from a field name.

    Examples:
        >>> infer_kind("order_id")
        'Order'
        >>> infer_kind("line_item_id")
        'LineItem'
        >>> infer_kind("customer")
        'Customer'
    """
    base = field.removesuffix(ID_SUFFIX)
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[_\s]+", base) if part)


class InMemoryLookup:
    """Dict-backed lookup keyed by kind name, then identifier."""

    def __init__(self, records: Mapping[str, Mapping[Any, Any]] | None = None) -> None:
        self._records: dict[str, dict[Any, Any]] = {
            kind: dict(items) for kind, items in (records or {}).items()
        }

    def add(self, kind: str | type, entity: Any, *, id: Any = None) -> Any:
        """Register *entity* under *kind*; *id* defaults to ``entity.id``."""
        key = id if id is not None else _identifier_of(entity)
        self._records.setdefault(kind_name(kind), {})[key] = entity
        return entity

    def find_by_id(self, kind: str, id: Any) -> Any | None:
        return self._records.get(kind_name(kind), {}).get(id)

    def all_of(self, kind: str) -> list[Any]:
        return list(self._records.get(kind_name(kind), {}).values())


class SqlAlchemyLookup:
    """Lookup over SQLAlchemy ORM models, one short-lived session per call.

    Parameters:
        session_factory: Zero-argument callable returning a new ``Session``
            (typically a ``sessionmaker``).
        models: Kind name -> mapped class.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        models: Mapping[str, type] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._models: dict[str, type] = dict(models or {})

    @classmethod
    def from_registry(cls, session_factory: Callable[[], Session], base: Any) -> SqlAlchemyLookup:
        """Build a lookup knowing every class mapped on declarative *base*."""
        models = {mapper.class_.__name__: mapper.class_ for mapper in base.registry.mappers}
        return cls(session_factory, models)

    def register(self, model: type, *, kind: str | None = None) -> None:
        self._models[kind or model.__name__] = model

    def model_for(self, kind: str | type) -> type:
        if isinstance(kind, type):
            return kind
        try:
            return self._models[kind]
        except KeyError:
            raise LookupError(f"No model registered for kind '{kind}'") from None

    def find_by_id(self, kind: str, id: Any) -> Any | None:
        model = self.model_for(kind)
        with self._session_factory() as session:
            return session.get(model, id)

    def all_of(self, kind: str) -> list[Any]:
        model = self.model_for(kind)
        with self._session_factory() as session:
            return list(session.scalars(select(model)))


def is_instance_of(value: Any, kind: str) -> bool:
    """Whether *value*'s type, or any of its bases, is named *kind*.

    Names match on ``__name__``, ``__qualname__`` or the dotted
    ``module.qualname``, so callers can refer to a class without importing it.
    """
    return any(
        kind in (cls.__name__, cls.__qualname__, f"{cls.__module__}.{cls.__qualname__}")
        for cls in type(value).__mro__
    )


def _identifier_of(entity: Any) -> Any:
    if isinstance(entity, Mapping):
        return entity["id"]
    return entity.id


_lookup: Lookup = InMemoryLookup()
_lookup_lock = threading.Lock()


def get_lookup() -> Lookup:
    """Return the process-wide default lookup."""
    return _lookup


def set_lookup(lookup: Lookup) -> Lookup:
    """Install *lookup* as the process-wide default. Returns the previous one."""
    global _lookup
    with _lookup_lock:
        previous, _lookup = _lookup, lookup
    return previous
