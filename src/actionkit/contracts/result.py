"""ValidationResult: the outcome of one contract validation run."""

from __future__ import annotations

from pydantic import BaseModel, Field

from actionkit.errors import InboundValidationError, ValidationFailure


class ValidationResult(BaseModel):
    """Field name -> ordered messages; empty ``errors`` means the run passed.

    Attributes:
        direction: ``"inbound"``, ``"outbound"`` or ``"subfields"``.
        errors: Only fields with at least one message, in declaration order.
    """

    model_config = {"frozen": True}

    direction: str = "inbound"
    errors: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def full_messages(self) -> list[str]:
        return [f"{name} {msg}" for name, messages in self.errors.items() for msg in messages]

    def to_failure(
        self,
        exception_cls: type[ValidationFailure] = InboundValidationError,
    ) -> ValidationFailure:
        return exception_cls(self.errors)

    def raise_for_errors(
        self,
        exception_cls: type[ValidationFailure] = InboundValidationError,
    ) -> None:
        """Raise *exception_cls* carrying the errors, if there are any."""
        if self.errors:
            raise self.to_failure(exception_cls)
