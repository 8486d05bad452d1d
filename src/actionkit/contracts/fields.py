"""FieldContract: the declared rules for one named input or output.

Contracts are built once per action definition from declarative options
and never mutated afterwards, so one contract is safely shared by every
concurrent invocation.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from actionkit.contracts.validators import (
    BOOLEAN,
    PARAMS,
    ModelValidator,
    PresenceValidator,
    TypeValidator,
    Validator,
    build_validator,
)
from actionkit.errors import ConfigurationError, DuplicateFieldError

# Options that configure the contract itself rather than adding a validator.
CONTRACT_OPTIONS = ("allow_nil", "allow_blank", "default", "preprocess", "on")


@dataclass(frozen=True)
class FieldContract:
    """Ordered validators plus resolution metadata for one field.

    Attributes:
        name: Field name; dotted for nested subfields (``"profile.email"``).
        validators: Evaluation order. Every validator runs; errors are
            collected, not short-circuited.
        on: Parent field for subfield contracts, None for top-level fields.
    """

    name: str
    validators: tuple[Validator, ...] = ()
    allow_nil: bool = False
    allow_blank: bool = False
    default: Any = None
    preprocess: Callable[[Any], Any] | None = field(default=None, compare=False)
    on: str | None = None

    @classmethod
    def build(
        cls,
        name: str,
        *,
        allow_nil: bool = False,
        allow_blank: bool = False,
        default: Any = None,
        preprocess: Callable[[Any], Any] | None = None,
        on: str | None = None,
        **validations: Any,
    ) -> FieldContract:
        """Build a contract from ``expects``-style keyword options.

        ``type``, ``model`` and ``validate`` accept either a bare value or a
        ``{"with": ...}`` mapping. Unless the field allows nil/blank values,
        is boolean- or params-typed, or sets ``presence`` itself, a presence
        rule is appended.
        """
        if preprocess is not None and not callable(preprocess):
            raise ConfigurationError(f"preprocess for field '{name}' must be callable")

        options = dict(validations)
        if not (allow_nil or allow_blank) and "presence" not in options:
            tags = TypeValidator.from_option(options["type"]).types if "type" in options else ()
            if BOOLEAN not in tags and PARAMS not in tags:
                options["presence"] = True

        built = (build_validator(kind, option, name) for kind, option in options.items())
        return cls(
            name=name,
            validators=tuple(v for v in built if v is not None),
            allow_nil=allow_nil,
            allow_blank=allow_blank,
            default=default,
            preprocess=preprocess,
            on=on,
        )

    @property
    def model_validator(self) -> ModelValidator | None:
        return next((v for v in self.validators if isinstance(v, ModelValidator)), None)

    @property
    def lookup_kind(self) -> str | None:
        """Kind name of the existence lookup, if this field is model-backed."""
        validator = self.model_validator
        return validator.lookup_kind if validator else None

    @property
    def model_backed(self) -> bool:
        return self.model_validator is not None

    @property
    def required(self) -> bool:
        """Whether a value must be supplied (no default, nil/blank not allowed)."""
        if self.default is not None or self.allow_blank:
            return False
        return any(isinstance(v, PresenceValidator) for v in self.validators)

    def options(self) -> dict[str, Any]:
        """Re-derive the declarative options; ``build(name, **options())`` is equivalent."""
        opts: dict[str, Any] = {v.kind: v.option() for v in self.validators}
        opts.setdefault("presence", False)
        for key in CONTRACT_OPTIONS:
            value = getattr(self, key)
            if value not in (None, False):
                opts[key] = value
        return opts


def build_field_contracts(
    fields: Sequence[str],
    *,
    existing: Sequence[FieldContract] = (),
    **options: Any,
) -> list[FieldContract]:
    """Build one contract per name in *fields* sharing the same *options*.

    Raises DuplicateFieldError if a name is already declared in *existing*.
    """
    if not fields:
        raise ConfigurationError("at least one field name is required")
    declared = {c.name for c in existing}
    duplicated = [name for name in fields if name in declared]
    if duplicated or len(set(fields)) != len(fields):
        dupes = duplicated or sorted({n for n in fields if list(fields).count(n) > 1})
        raise DuplicateFieldError(f"Duplicate field(s) declared: {', '.join(dupes)}")
    return [FieldContract.build(name, **options) for name in fields]
