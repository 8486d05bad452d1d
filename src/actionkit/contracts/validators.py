"""Field validator kinds.

Each validator checks one field's value and returns zero or more error
messages. Validators never raise for faults inside their own check:
lookup and predicate errors become messages, with the raw error sent to
:mod:`actionkit.diagnostics`.

Kinds: ``presence`` (implicit unless opted out), ``type``, ``model``
(existence lookup), and ``validate`` (custom predicate).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sized
from dataclasses import dataclass
from types import GenericAlias
from typing import Any, ClassVar
from unittest import mock

from actionkit import diagnostics
from actionkit.config.settings import get_settings
from actionkit.errors import ConfigurationError, CustomValidatorFault, LookupFault
from actionkit.lookup import Lookup, get_lookup, infer_kind, is_instance_of, kind_name

BOOLEAN = "boolean"
UUID = "uuid"
PARAMS = "params"
SPECIAL_TAGS = frozenset({BOOLEAN, UUID, PARAMS})

UUID_PATTERN = re.compile(
    r"\A[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}\Z",
    re.IGNORECASE,
)


def is_blank(value: Any) -> bool:
    """None, False, whitespace-only strings, and empty containers are blank."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Sized) and not isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    return False


class Validator(ABC):
    """One rule applied to one field."""

    kind: ClassVar[str]

    @abstractmethod
    def check(self, field: str, value: Any, lookup: Lookup | None = None) -> list[str]:
        """Return the error messages for *value* (empty when valid)."""

    @abstractmethod
    def option(self) -> Any:
        """Return the declarative option that rebuilds this validator."""


@dataclass(frozen=True)
class PresenceValidator(Validator):
    kind: ClassVar[str] = "presence"

    def check(self, field: str, value: Any, lookup: Lookup | None = None) -> list[str]:
        return ["can't be blank"] if is_blank(value) else []

    def option(self) -> bool:
        return True


@dataclass(frozen=True)
class TypeValidator(Validator):
    """Passes when the value matches any of ``types``.

    Blank values pass unless ``boolean`` is allowed; presence is a
    separate rule.
    """

    kind: ClassVar[str] = "type"

    types: tuple[type | str, ...]
    message: str | None = None

    def __post_init__(self) -> None:
        if not self.types:
            raise ConfigurationError("type validation requires at least one type")
        for tag in self.types:
            if isinstance(tag, str) and tag in SPECIAL_TAGS:
                continue
            # Parameterized generics such as list[int] are not types.
            if not isinstance(tag, type) or isinstance(tag, GenericAlias):
                raise ConfigurationError(
                    f"Unknown type tag {tag!r} (expected a class or one of {sorted(SPECIAL_TAGS)})"
                )

    @classmethod
    def from_option(cls, option: Any) -> TypeValidator:
        if isinstance(option, Mapping):
            raw = option.get("with", option.get("in"))
            return cls(types=_as_tuple(raw), message=option.get("message"))
        return cls(types=_as_tuple(option))

    def check(self, field: str, value: Any, lookup: Lookup | None = None) -> list[str]:
        if is_blank(value) and BOOLEAN not in self.types:
            return []
        if any(self._matches(tag, value) for tag in self.types):
            return []
        return [self.message or self._default_message()]

    def option(self) -> Any:
        types: Any = self.types[0] if len(self.types) == 1 else self.types
        if self.message:
            return {"with": types, "message": self.message}
        return types

    def _default_message(self) -> str:
        names = [_tag_name(tag) for tag in self.types]
        if len(names) == 1:
            return f"is not a {names[0]}"
        return f"is not one of {', '.join(names)}"

    @staticmethod
    def _matches(tag: type | str, value: Any) -> bool:
        if tag == BOOLEAN:
            return value is True or value is False
        if tag == UUID:
            return isinstance(value, str) and UUID_PATTERN.match(value) is not None
        if tag == PARAMS:
            return isinstance(value, Mapping)
        if _is_test_mock(value):
            return True
        # bool is an int subclass; a flag is not a number here
        if isinstance(value, bool) and tag is not bool and tag is not object:
            return False
        return isinstance(value, tag)


@dataclass(frozen=True)
class ModelValidator(Validator):
    """Existence check: the identifier must resolve through the lookup."""

    kind: ClassVar[str] = "model"

    lookup_kind: str
    lookup: Lookup | None = None

    @classmethod
    def from_option(cls, option: Any, field: str) -> ModelValidator:
        lookup = None
        if isinstance(option, Mapping):
            lookup = option.get("lookup")
            option = option.get("with", option.get("klass", True))
        if option is True or option is None:
            return cls(lookup_kind=infer_kind(field), lookup=lookup)
        if isinstance(option, (str, type)):
            return cls(lookup_kind=kind_name(option), lookup=lookup)
        raise ConfigurationError(f"Invalid model option for field '{field}': {option!r}")

    def check(self, field: str, value: Any, lookup: Lookup | None = None) -> list[str]:
        if is_blank(value):
            return ["not found (given a blank ID)"]
        if is_instance_of(value, self.lookup_kind):
            return []
        resolver = self.lookup or lookup or get_lookup()
        try:
            instance = resolver.find_by_id(self.lookup_kind, value)
        except Exception as exc:
            diagnostics.report(
                f"validating model on field '{field}'",
                LookupFault(field, self.lookup_kind, exc),
            )
            return [f"error raised while trying to find a valid {self.lookup_kind}"]
        if instance is None:
            return [f"not found for class {self.lookup_kind} and ID {value}"]
        return []

    def option(self) -> Any:
        if self.lookup is not None:
            return {"with": self.lookup_kind, "lookup": self.lookup}
        return self.lookup_kind


@dataclass(frozen=True)
class CustomValidator(Validator):
    """Runs ``predicate(value)``; a returned non-blank string is the error."""

    kind: ClassVar[str] = "validate"

    predicate: Callable[[Any], str | None]

    @classmethod
    def from_option(cls, option: Any) -> CustomValidator:
        fn = option.get("with") if isinstance(option, Mapping) else option
        if not callable(fn):
            raise ConfigurationError(f"validate option must be callable, got {fn!r}")
        return cls(predicate=fn)

    def check(self, field: str, value: Any, lookup: Lookup | None = None) -> list[str]:
        try:
            msg = self.predicate(value)
        except Exception as exc:
            diagnostics.report(
                f"applying custom validation on field '{field}'",
                CustomValidatorFault(field, exc),
            )
            msg = f"failed validation: {exc}"
        return [] if is_blank(msg) else [str(msg)]

    def option(self) -> Callable[[Any], str | None]:
        return self.predicate


VALIDATOR_KINDS: tuple[str, ...] = ("presence", "type", "model", "validate")


def build_validator(kind: str, option: Any, field: str) -> Validator | None:
    """Build one validator from its declarative option (None for ``presence=False``)."""
    if kind == "presence":
        return PresenceValidator() if option else None
    if kind == "type":
        return TypeValidator.from_option(option)
    if kind == "model":
        return ModelValidator.from_option(option, field)
    if kind == "validate":
        return CustomValidator.from_option(option)
    raise ConfigurationError(f"Unknown validation option '{kind}' on field '{field}'")


def _as_tuple(raw: Any) -> tuple[type | str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return tuple(raw)
    return (raw,)


def _tag_name(tag: type | str) -> str:
    return tag if isinstance(tag, str) else tag.__name__


def _is_test_mock(value: Any) -> bool:
    if not isinstance(value, mock.NonCallableMock):
        return False
    settings = get_settings()
    return settings.env == "test" and settings.validation.allow_mocks_in_test
