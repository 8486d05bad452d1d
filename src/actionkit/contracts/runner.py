"""ContractValidationRunner: run field contracts against a value source.

The runner is stateless apart from its lookup, so one instance can serve
every invocation. Per-run state (the source and the collected errors)
lives only inside a single ``validate`` call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from actionkit.contracts.fields import FieldContract
from actionkit.contracts.result import ValidationResult
from actionkit.contracts.sources import PayloadSource, ValueSource, as_source
from actionkit.contracts.validators import is_blank
from actionkit.errors import InboundValidationError, PreprocessingError, ValidationFailure
from actionkit.lookup import Lookup
from actionkit.plugins.manager import get_plugin_manager

logger = logging.getLogger(__name__)


class ContractValidationRunner:
    """Validates any subset of field contracts against any value source.

    Parameters:
        lookup: Lookup used by existence validators that do not carry
            their own; defaults to the process-wide lookup.
    """

    def __init__(self, *, lookup: Lookup | None = None) -> None:
        self._lookup = lookup

    def validate(
        self,
        fields: Iterable[FieldContract],
        source: ValueSource | Any,
        *,
        direction: str = "inbound",
    ) -> ValidationResult:
        """Run every validator of every field and collect the messages.

        Fields without messages are left out of the result. Validator
        faults are contained by the validators themselves, so one failing
        lookup never hides errors on sibling fields.
        """
        resolved = as_source(source)
        errors: dict[str, list[str]] = {}
        for contract in fields:
            value = resolved.read_field(contract.name, prefer_accessor=contract.model_backed)
            messages = self.check_value(contract, value)
            if messages:
                errors.setdefault(contract.name, []).extend(messages)

        result = ValidationResult(direction=direction, errors=errors)
        if not result.ok:
            logger.debug("Contract validation failed (%s): %s", direction, result.full_messages)
            get_plugin_manager().notify(
                "post_validation_failure", direction=direction, errors=result.errors
            )
        return result

    def validate_or_raise(
        self,
        fields: Iterable[FieldContract],
        source: ValueSource | Any,
        *,
        exception_cls: type[ValidationFailure] = InboundValidationError,
        direction: str = "inbound",
    ) -> None:
        self.validate(fields, source, direction=direction).raise_for_errors(exception_cls)

    def check_value(self, contract: FieldContract, value: Any) -> list[str]:
        """Messages for one detached *value* under *contract* (no source needed)."""
        if value is None and contract.allow_nil:
            return []
        if contract.allow_blank and is_blank(value):
            return []
        messages: list[str] = []
        for validator in contract.validators:
            messages.extend(validator.check(contract.name, value, self._lookup))
        return messages

    def validate_subfields(
        self,
        contracts: Sequence[FieldContract],
        context: Any,
    ) -> ValidationResult:
        """Validate subfield contracts against their parent fields' values.

        Each parent value is read from *context* and wrapped as a raw
        payload; model-backed subfields may still resolve through the
        context's own accessors.
        """
        parent_source = as_source(context)
        errors: dict[str, list[str]] = {}
        for contract in contracts:
            parent = parent_source.read_field(contract.on) if contract.on else context
            source = PayloadSource(parent, context=context)
            sub = self.validate([contract], source, direction="subfields")
            for name, messages in sub.errors.items():
                errors.setdefault(name, []).extend(messages)
        return ValidationResult(direction="subfields", errors=errors)


def apply_preprocessing(fields: Iterable[FieldContract], context: Any) -> None:
    """Replace each inbound value with ``preprocess(value)`` where declared."""
    source = as_source(context)
    for contract in fields:
        if contract.preprocess is None:
            continue
        initial = source.read_field(contract.name)
        try:
            new_value = contract.preprocess(initial)
        except Exception as exc:
            raise PreprocessingError(
                f"Error preprocessing field '{contract.name}': {exc}"
            ) from exc
        setattr(context, contract.name, new_value)


def apply_defaults(fields: Iterable[FieldContract], context: Any) -> None:
    """Fill blank fields from their declared default (called when callable)."""
    source = as_source(context)
    for contract in fields:
        if contract.default is None:
            continue
        if not is_blank(source.read_field(contract.name)):
            continue
        default = contract.default
        setattr(context, contract.name, default() if callable(default) else default)
