"""ActionDefinition: the declarative surface of one action.

A definition is built once, at load time: ``expects``/``exposes`` produce
field contracts, ``error``/``success``/``on_*`` produce handler
descriptors, ``enqueue_each`` produces batch configs. Invocation-time
helpers then validate contexts and route failures against those
immutable pieces. Running the action body itself is the caller's job.

Usage::

    sync_order = ActionDefinition("SyncOrder")
    sync_order.expects("order_id", model=True)
    sync_order.expects("dry_run", type="boolean", default=False)
    sync_order.error("Order could not be synced", from_="NotFoundError")
    sync_order.on_exception(report_to_tracker)
    sync_order.enqueue_each("order_id", via="id")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from actionkit.batch.config import BatchEnqueueConfig, Enqueuer
from actionkit.batch.orchestrator import enqueue_all
from actionkit.context import ActionContext
from actionkit.contracts.fields import FieldContract, build_field_contracts
from actionkit.contracts.result import ValidationResult
from actionkit.contracts.runner import ContractValidationRunner, apply_defaults, apply_preprocessing
from actionkit.contracts.sources import PayloadSource
from actionkit.errors import (
    ConfigurationError,
    InboundValidationError,
    MissingBatchSourceError,
    OutboundValidationError,
    UnknownExposure,
)
from actionkit.flow.descriptors import CallbackDescriptor, MessageDescriptor
from actionkit.flow.events import EventType, FlowEvent
from actionkit.flow.matcher import Predicate
from actionkit.flow.registry import DispatchRegistry
from actionkit.lookup import Lookup

logger = logging.getLogger(__name__)

FromOption = str | type | Sequence[str | type] | None


class ActionDefinition:
    """Contracts, handlers and batch sources for one named action."""

    def __init__(
        self,
        name: str,
        *,
        context_cls: type[ActionContext] = ActionContext,
        lookup: Lookup | None = None,
        enqueuer: Enqueuer | Callable[[dict[str, Any]], Any] | None = None,
    ) -> None:
        self.name = name
        self.context_cls = context_cls
        self.lookup = lookup
        self.enqueuer = enqueuer
        self.runner = ContractValidationRunner(lookup=lookup)
        self.registry = DispatchRegistry.empty()
        self._expected: tuple[FieldContract, ...] = ()
        self._exposed: tuple[FieldContract, ...] = ()
        self._subfields: tuple[FieldContract, ...] = ()
        self._batch: tuple[BatchEnqueueConfig, ...] = ()

    def __repr__(self) -> str:
        return f"<ActionDefinition {self.name}>"

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    @property
    def field_contracts(self) -> tuple[FieldContract, ...]:
        return self._expected

    @property
    def exposed_contracts(self) -> tuple[FieldContract, ...]:
        return self._exposed

    @property
    def subfield_contracts(self) -> tuple[FieldContract, ...]:
        return self._subfields

    def expects(self, *fields: str, **options: Any) -> list[FieldContract]:
        """Declare inbound fields sharing the same validation options."""
        contracts = build_field_contracts(fields, existing=self._expected, **options)
        self._expected = (*self._expected, *contracts)
        return contracts

    def exposes(self, *fields: str, **options: Any) -> list[FieldContract]:
        """Declare outbound fields sharing the same validation options."""
        contracts = build_field_contracts(fields, existing=self._exposed, **options)
        self._exposed = (*self._exposed, *contracts)
        return contracts

    def expects_fields(self, *fields: str, on: str, **options: Any) -> list[FieldContract]:
        """Declare subfields read out of the value of field *on*."""
        parents = {c.name for c in self._expected} | {c.name for c in self._subfields}
        if on not in parents:
            raise ConfigurationError(
                f"expects_fields called with on='{on}', but no such field has been declared "
                f"(are you sure you've called expects('{on}')?)"
            )
        if "." in on:
            raise ConfigurationError(
                "expects_fields does not support nested parents (on cannot contain periods)"
            )
        contracts = build_field_contracts(fields, existing=self._subfields, on=on, **options)
        self._subfields = (*self._subfields, *contracts)
        return contracts

    def field_contract(self, name: str) -> FieldContract | None:
        return next((c for c in self._expected if c.name == name), None)

    def build_context(self, **provided: Any) -> ActionContext:
        return self.context_cls(provided)

    def validate_inbound(self, context: ActionContext) -> None:
        """Preprocess, fill defaults, then validate fields and subfields.

        Raises InboundValidationError with every failing field.
        """
        apply_preprocessing(self._expected, context)
        apply_defaults(self._expected, context)
        result = self.runner.validate(self._expected, context, direction="inbound")
        if self._subfields:
            sub = self.runner.validate_subfields(self._subfields, context)
            result = _merge(result, sub)
        result.raise_for_errors(InboundValidationError)

    def expose(self, context: ActionContext, **values: Any) -> None:
        declared = {c.name for c in self._exposed}
        for key, value in values.items():
            if key not in declared:
                raise UnknownExposure(key)
            context.expose(key, value)

    def validate_outbound(self, context: ActionContext) -> None:
        """Fill exposed defaults, then validate exposures. Raises OutboundValidationError."""
        for contract in self._exposed:
            if contract.default is not None and contract.name not in context.exposed_data:
                default = contract.default
                context.expose(contract.name, default() if callable(default) else default)
        source = PayloadSource(context.exposed_data, context=context)
        self.runner.validate_or_raise(
            self._exposed, source, exception_cls=OutboundValidationError, direction="outbound"
        )

    def validate_payload(
        self, payload: Any, fields: Iterable[str] | None = None
    ) -> ValidationResult:
        """Validate a detached payload against some (default: all) inbound contracts."""
        wanted = set(fields) if fields is not None else None
        contracts = [c for c in self._expected if wanted is None or c.name in wanted]
        return self.runner.validate(contracts, PayloadSource(payload), direction="inbound")

    # ------------------------------------------------------------------
    # Messages and callbacks
    # ------------------------------------------------------------------

    def error(
        self,
        message: Callable[..., Any] | str | None = None,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        from_: FromOption = None,
        prefix: str | None = None,
    ) -> MessageDescriptor:
        descriptor = MessageDescriptor.build(
            message, if_=if_, unless=unless, from_=from_, prefix=prefix
        )
        self.registry = self.registry.register(EventType.ERROR, descriptor)
        return descriptor

    def success(
        self,
        message: Callable[..., Any] | str | None = None,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        prefix: str | None = None,
    ) -> MessageDescriptor:
        descriptor = MessageDescriptor.build(message, if_=if_, unless=unless, prefix=prefix)
        self.registry = self.registry.register(EventType.SUCCESS, descriptor)
        return descriptor

    def on_error(self, handler: Callable[..., Any] | str | None = None, **options: Any) -> Any:
        """Run *handler* for failures and unexpected exceptions alike."""
        return self._add_callback(EventType.ERROR, handler, **options)

    def on_failure(self, handler: Callable[..., Any] | str | None = None, **options: Any) -> Any:
        """Run *handler* only for deliberate ``Failure`` halts."""
        return self._add_callback(EventType.FAILURE, handler, **options)

    def on_exception(self, handler: Callable[..., Any] | str | None = None, **options: Any) -> Any:
        """Run *handler* only for unexpected exceptions."""
        return self._add_callback(EventType.EXCEPTION, handler, **options)

    def on_success(self, handler: Callable[..., Any] | str | None = None, **options: Any) -> Any:
        return self._add_callback(EventType.SUCCESS, handler, **options)

    def _add_callback(
        self,
        event_type: EventType,
        handler: Callable[..., Any] | str | None,
        *,
        if_: Predicate | None = None,
        unless: Predicate | None = None,
        from_: FromOption = None,
    ) -> Any:
        def register(fn: Callable[..., Any] | str) -> Callable[..., Any] | str:
            descriptor = CallbackDescriptor.build(fn, if_=if_, unless=unless, from_=from_)
            self.registry = self.registry.register(event_type, descriptor)
            return fn

        # Bare call with no handler: used as a decorator.
        if handler is None:
            return register
        return register(handler)

    def message_for(self, exception: BaseException | None = None, *, action: Any = None) -> str:
        """User-facing message for an outcome, falling back to the configured default."""
        event = FlowEvent.from_exception(exception, action=action)
        event_type = EventType.SUCCESS if exception is None else EventType.ERROR
        return self.registry.resolve_message(event, event_type)

    def handle(self, exception: BaseException | None = None, *, action: Any = None) -> str:
        """Run matching callbacks for an outcome, then return its message."""
        event = FlowEvent.from_exception(exception, action=action)
        self.registry.trigger(event)
        event_type = EventType.SUCCESS if exception is None else EventType.ERROR
        return self.registry.resolve_message(event, event_type)

    # ------------------------------------------------------------------
    # Batch enqueue
    # ------------------------------------------------------------------

    @property
    def batch_configs(self) -> tuple[BatchEnqueueConfig, ...]:
        return self._batch

    def enqueue_each(
        self,
        field: str,
        *,
        from_: Callable[[], Iterable[Any]] | str | None = None,
        via: str | Callable[[Any], Any] | None = None,
        filter: Callable[[Any], Any] | None = None,
    ) -> BatchEnqueueConfig:
        """Declare a field to iterate when batch enqueueing."""
        config = BatchEnqueueConfig.build(field, from_=from_, via=via, filter=filter)
        if config.inferred:
            contract = self.field_contract(field)
            if contract is None or not contract.model_backed:
                raise MissingBatchSourceError(
                    f"enqueue_each '{field}' requires a `from_` option or a `model` declaration "
                    f"on expects('{field}') to infer the source collection."
                )
        self._batch = (*self._batch, config)
        return config

    def enqueue_all(
        self,
        *,
        enqueuer: Enqueuer | Callable[[dict[str, Any]], Any] | None = None,
        **static_args: Any,
    ) -> int:
        return enqueue_all(self, enqueuer=enqueuer, lookup=self.lookup, **static_args)


def _merge(first: ValidationResult, second: ValidationResult) -> ValidationResult:
    errors = {name: list(messages) for name, messages in first.errors.items()}
    for name, messages in second.errors.items():
        errors.setdefault(name, []).extend(messages)
    return ValidationResult(direction=first.direction, errors=errors)
