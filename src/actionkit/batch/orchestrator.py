"""Batch enqueueing: one async invocation per combination of field items.

Sources are resolved per declared field and iterated as a cross product.
Keyword arguments refine the plan: an iterable value replaces the
field's source, a scalar value becomes a static argument passed to every
job. Model-backed fields with no other source are inferred.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from actionkit.batch.config import BatchEnqueueConfig, Enqueuer
from actionkit.config.settings import get_settings
from actionkit.errors import ConfigurationError, MissingBatchSourceError
from actionkit.lookup import Lookup
from actionkit.plugins.manager import get_plugin_manager

logger = logging.getLogger(__name__)

Dispatch = Callable[[dict[str, Any]], Any]

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def enqueue_all(
    target: Any,
    *,
    enqueuer: Enqueuer | Dispatch | None = None,
    lookup: Lookup | None = None,
    **static_args: Any,
) -> int:
    """Enqueue *target* once per combination of its batch sources.

    Returns the number of payloads handed to the enqueuer. Delivery,
    ordering and retries belong to the enqueuer.
    """
    dispatch = _dispatch_fn(enqueuer if enqueuer is not None else getattr(target, "enqueuer", None))
    configs, static = resolve_configs(target, static_args)
    if configs:
        validate_static_args(target, configs, static)

    count = 0

    def _emit(payload: dict[str, Any]) -> None:
        nonlocal count
        dispatch(payload)
        count += 1

    if configs:
        _iterate(target, configs, 0, {}, static, lookup, _emit)
    else:
        _emit(dict(static))

    name = getattr(target, "name", type(target).__name__)
    if get_settings().batch.log_progress:
        extra = f" with explicit args: {static!r}" if static else ""
        logger.info("Batch enqueued %d jobs for %s%s", count, name, extra)
    get_plugin_manager().notify("post_batch_enqueue", target=name, count=count)
    return count


def resolve_configs(
    target: Any,
    static_args: Mapping[str, Any],
) -> tuple[list[BatchEnqueueConfig], dict[str, Any]]:
    """Merge declared, inferred and keyword-supplied sources.

    Returns ``(configs, static_args)``. Precedence: keyword iterables over
    declared configs over inferred ones; scalar keywords remove a field
    from iteration entirely.
    """
    contracts = list(getattr(target, "field_contracts", ()))
    declared: list[BatchEnqueueConfig] = list(getattr(target, "batch_configs", ()))

    static: dict[str, Any] = {}
    kwarg_configs: list[BatchEnqueueConfig] = []
    for field, value in static_args.items():
        contract = next((c for c in contracts if c.name == field), None)
        if should_iterate(value, contract):
            kwarg_configs.append(BatchEnqueueConfig.build(field, from_=_constant(value)))
        else:
            static[field] = value

    overridden = set(static) | {c.field for c in kwarg_configs}
    explicit = [c for c in declared if c.field not in overridden]
    covered = overridden | {c.field for c in declared}
    inferred = [
        BatchEnqueueConfig.build(c.name)
        for c in contracts
        if c.name not in covered and c.model_backed
    ]
    merged = inferred + explicit + kwarg_configs
    if merged:
        return merged, static

    uncovered = [c.name for c in contracts if c.required and c.name not in static]
    if uncovered:
        raise MissingBatchSourceError(
            f"{getattr(target, 'name', target)} has required fields ({', '.join(uncovered)}) "
            "not covered by enqueue_each, model declarations, or static args."
        )
    return [], static


def validate_static_args(
    target: Any,
    configs: Sequence[BatchEnqueueConfig],
    static_args: Mapping[str, Any],
) -> None:
    """Every required field must be iterated or supplied statically."""
    iterated = {c.field for c in configs}
    missing = [
        c.name
        for c in getattr(target, "field_contracts", ())
        if c.required and c.name not in iterated and c.name not in static_args
    ]
    if missing:
        raise ConfigurationError(
            f"Missing required static field(s): {', '.join(missing)}. "
            "These fields are not covered by enqueue_each and must be provided."
        )


def should_iterate(value: Any, contract: Any) -> bool:
    """Collections iterate, unless the field itself expects a collection."""
    if not isinstance(value, _COLLECTION_TYPES):
        return False
    if contract is None:
        return True
    for validator in contract.validators:
        types = getattr(validator, "types", ())
        if any(isinstance(t, type) and issubclass(t, _COLLECTION_TYPES) for t in types):
            return False
    return True


def _iterate(
    target: Any,
    configs: Sequence[BatchEnqueueConfig],
    index: int,
    accumulated: dict[str, Any],
    static: Mapping[str, Any],
    lookup: Lookup | None,
    emit: Callable[[dict[str, Any]], None],
) -> None:
    if index >= len(configs):
        emit({**accumulated, **static})
        return

    config = configs[index]
    for item in config.resolve_source(target, lookup=lookup):
        if not config.accepts(item):
            continue
        value = config.value_for(item)
        merged = {**accumulated, config.field: value}
        _iterate(target, configs, index + 1, merged, static, lookup, emit)


def _dispatch_fn(enqueuer: Any) -> Dispatch:
    if enqueuer is None:
        raise ConfigurationError(
            "enqueue_all requires an enqueuer (an object with enqueue() or a callable)"
        )
    if isinstance(enqueuer, Enqueuer):
        return enqueuer.enqueue
    if callable(enqueuer):
        return enqueuer
    raise ConfigurationError(f"Unsupported enqueuer: {enqueuer!r}")


def _constant(value: Iterable[Any]) -> Callable[[], Iterable[Any]]:
    return lambda: value
