"""BatchEnqueueConfig: where the items of a batch-enqueued field come from.

Three source strategies: an explicit zero-argument callable, the name of
an accessor on the target, or inference from the field's existence
lookup (every known instance of its kind).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from actionkit import diagnostics
from actionkit.errors import ConfigurationError, MissingBatchSourceError
from actionkit.lookup import Lookup, get_lookup


@runtime_checkable
class Enqueuer(Protocol):
    """Async collaborator: schedules one invocation per payload."""

    def enqueue(self, payload: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class ExplicitSource:
    fn: Callable[[], Iterable[Any]]

    def resolve(self, target: Any, field: str, lookup: Lookup | None) -> Iterable[Any]:
        return self.fn()


@dataclass(frozen=True)
class NamedAccessor:
    name: str

    def resolve(self, target: Any, field: str, lookup: Lookup | None) -> Iterable[Any]:
        accessor = getattr(target, self.name, None)
        if accessor is None:
            raise ConfigurationError(
                f"enqueue_each '{field}' names source '{self.name}', "
                f"but {_target_name(target)} has no such accessor"
            )
        return accessor() if callable(accessor) else accessor


@dataclass(frozen=True)
class InferredFromModel:
    def resolve(self, target: Any, field: str, lookup: Lookup | None) -> Iterable[Any]:
        contract = target.field_contract(field)
        kind = contract.lookup_kind if contract is not None else None
        if kind is None:
            raise MissingBatchSourceError(
                f"enqueue_each '{field}' requires a `from_` option or a `model` declaration "
                f"on expects('{field}') to infer the source collection."
            )
        model_validator = contract.model_validator
        resolver = (model_validator.lookup if model_validator else None) or lookup or get_lookup()
        return resolver.all_of(kind)


SourceStrategy = ExplicitSource | NamedAccessor | InferredFromModel


@dataclass(frozen=True)
class BatchEnqueueConfig:
    """One ``enqueue_each`` declaration.

    Attributes:
        field: The expected field each item is passed as.
        source: Where items come from.
        via: Attribute/key name or callable applied to each item before
            it is passed (e.g. ``"id"``).
        filter: Predicate; falsy results skip the item.
    """

    field: str
    source: SourceStrategy
    via: str | Callable[[Any], Any] | None = None
    filter: Callable[[Any], Any] | None = None

    @classmethod
    def build(
        cls,
        field: str,
        *,
        from_: Callable[[], Iterable[Any]] | str | None = None,
        via: str | Callable[[Any], Any] | None = None,
        filter: Callable[[Any], Any] | None = None,
    ) -> BatchEnqueueConfig:
        source: SourceStrategy
        if from_ is None:
            source = InferredFromModel()
        elif isinstance(from_, str):
            source = NamedAccessor(from_)
        elif callable(from_):
            source = ExplicitSource(from_)
        else:
            raise ConfigurationError(
                f"enqueue_each '{field}': from_ must be a callable or accessor name, got {from_!r}"
            )
        return cls(field=field, source=source, via=via, filter=filter)

    @property
    def inferred(self) -> bool:
        return isinstance(self.source, InferredFromModel)

    def resolve_source(self, target: Any, *, lookup: Lookup | None = None) -> Iterable[Any]:
        return self.source.resolve(target, self.field, lookup)

    def accepts(self, item: Any) -> bool:
        """Whether *item* passes ``filter``; a raising filter is reported and skips it."""
        if self.filter is None:
            return True
        try:
            return bool(self.filter(item))
        except Exception as exc:
            diagnostics.report(f"filter block for '{self.field}'", exc)
            return False

    def value_for(self, item: Any) -> Any:
        """Apply ``via`` to *item*."""
        if self.via is None:
            return item
        if callable(self.via):
            return self.via(item)
        if isinstance(item, Mapping):
            return item[self.via]
        return getattr(item, self.via)

    def enqueue_each(
        self,
        target: Any,
        dispatch: Callable[[dict[str, Any]], Any],
        *,
        lookup: Lookup | None = None,
        static_args: Mapping[str, Any] | None = None,
    ) -> int:
        """Dispatch one payload per accepted item; returns how many were sent."""
        count = 0
        for item in self.resolve_source(target, lookup=lookup):
            if not self.accepts(item):
                continue
            dispatch({**(static_args or {}), self.field: self.value_for(item)})
            count += 1
        return count


def _target_name(target: Any) -> str:
    return getattr(target, "name", None) or type(target).__name__
