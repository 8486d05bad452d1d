"""Exception taxonomy for actionkit.

Validation failures are recoverable and always surfaced to the caller.
Configuration errors are fatal at definition time and are never contained
by validator fault isolation.
"""

from __future__ import annotations

from typing import Any


class ActionkitError(Exception):
    """Base class for every error raised by actionkit."""


class ConfigurationError(ActionkitError):
    """Raised at build time when a declaration is missing or ambiguous."""


class MissingBatchSourceError(ConfigurationError):
    """No iteration source could be resolved for a batch-enqueued field."""


class ContractViolation(ActionkitError):
    """A field contract was declared or used incorrectly."""


class DuplicateFieldError(ContractViolation):
    """The same field was declared twice on one action."""


class PreprocessingError(ContractViolation):
    """A ``preprocess`` callable raised while transforming an inbound value."""


class UnknownExposure(ContractViolation):
    """An action exposed a key it never declared with ``exposes``."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Attempted to expose unknown key '{key}': be sure to declare it with exposes('{key}')"
        )


class ValidationFailure(ContractViolation):
    """One or more fields failed their contract.

    ``errors`` maps field name to its ordered messages. Field order is
    declaration order; message order is validator-declaration order.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = {name: list(messages) for name, messages in errors.items()}
        super().__init__(self.message)

    @property
    def full_messages(self) -> list[str]:
        return [f"{name} {msg}" for name, messages in self.errors.items() for msg in messages]

    @property
    def message(self) -> str:
        return ", ".join(self.full_messages)

    def __str__(self) -> str:
        return self.message


class InboundValidationError(ValidationFailure):
    """Inputs failed the action's ``expects`` contract."""


class OutboundValidationError(ValidationFailure):
    """Outputs failed the action's ``exposes`` contract."""


class LookupFault(ActionkitError):
    """An existence lookup raised instead of returning an entity or None."""

    def __init__(self, field: str, kind: str, cause: BaseException) -> None:
        self.field = field
        self.kind = kind
        self.__cause__ = cause
        super().__init__(
            f"Model validation on field '{field}' raised {type(cause).__name__}: {cause}"
        )


class CustomValidatorFault(ActionkitError):
    """A custom validation predicate raised instead of returning a message."""

    def __init__(self, field: str, cause: BaseException) -> None:
        self.field = field
        self.__cause__ = cause
        super().__init__(
            f"Custom validation on field '{field}' raised {type(cause).__name__}: {cause}"
        )


class Failure(ActionkitError):
    """Deliberate halt of an action, as opposed to an unexpected exception.

    ``source`` is the underlying cause (for example a nested action that
    failed) and is what ``from_`` matching inspects.
    """

    DEFAULT_MESSAGE = "Execution was halted"

    def __init__(self, message: str | None = None, *, source: Any = None) -> None:
        self._message = message
        self.source = source
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return self._message or self.DEFAULT_MESSAGE

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.message}'>"
