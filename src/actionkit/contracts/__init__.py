"""Contract validation engine: validators, field contracts, sources, runner."""

from actionkit.contracts.fields import FieldContract, build_field_contracts
from actionkit.contracts.result import ValidationResult
from actionkit.contracts.runner import (
    ContractValidationRunner,
    apply_defaults,
    apply_preprocessing,
)
from actionkit.contracts.sources import ContextSource, PayloadSource, ValueSource, extract
from actionkit.contracts.validators import (
    CustomValidator,
    ModelValidator,
    PresenceValidator,
    TypeValidator,
    Validator,
    is_blank,
)

__all__ = [
    "ContextSource",
    "ContractValidationRunner",
    "CustomValidator",
    "FieldContract",
    "ModelValidator",
    "PayloadSource",
    "PresenceValidator",
    "TypeValidator",
    "ValidationResult",
    "Validator",
    "ValueSource",
    "apply_defaults",
    "apply_preprocessing",
    "build_field_contracts",
    "extract",
    "is_blank",
]
