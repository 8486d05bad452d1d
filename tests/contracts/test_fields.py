"""Tests for FieldContract building and option round-tripping."""

from __future__ import annotations

import uuid

import pytest

from actionkit.contracts.fields import FieldContract, build_field_contracts
from actionkit.contracts.runner import ContractValidationRunner
from actionkit.contracts.validators import (
    CustomValidator,
    ModelValidator,
    PresenceValidator,
    TypeValidator,
)
from actionkit.errors import DuplicateFieldError
from actionkit.lookup import InMemoryLookup


class TestBuild:
    def test_presence_appended_by_default(self) -> None:
        contract = FieldContract.build("name", type=str)
        assert [type(v) for v in contract.validators] == [TypeValidator, PresenceValidator]

    def test_no_presence_when_blank_allowed(self) -> None:
        contract = FieldContract.build("name", type=str, allow_blank=True)
        assert [type(v) for v in contract.validators] == [TypeValidator]

    def test_no_presence_for_boolean(self) -> None:
        contract = FieldContract.build("flag", type="boolean")
        assert [type(v) for v in contract.validators] == [TypeValidator]

    def test_no_presence_for_params(self) -> None:
        contract = FieldContract.build("filters", type="params")
        assert not any(isinstance(v, PresenceValidator) for v in contract.validators)

    def test_explicit_presence_false(self) -> None:
        contract = FieldContract.build("note", presence=False)
        assert contract.validators == ()

    def test_declaration_order_kept(self) -> None:
        contract = FieldContract.build(
            "order_id", validate=lambda v: None, model="Order", type=int
        )
        assert [type(v) for v in contract.validators] == [
            CustomValidator,
            ModelValidator,
            TypeValidator,
            PresenceValidator,
        ]

    def test_lookup_metadata(self) -> None:
        assert FieldContract.build("order_id", model=True).lookup_kind == "Order"
        assert FieldContract.build("name", type=str).lookup_kind is None
        assert FieldContract.build("order_id", model=True).model_backed

    def test_required(self) -> None:
        assert FieldContract.build("name").required
        assert not FieldContract.build("name", allow_nil=True).required
        assert not FieldContract.build("name", default="x").required

    def test_frozen(self) -> None:
        contract = FieldContract.build("name")
        with pytest.raises(Exception):
            contract.name = "other"  # type: ignore[misc]


class TestBuildFieldContracts:
    def test_shared_options(self) -> None:
        contracts = build_field_contracts(["a", "b"], type=int)
        assert [c.name for c in contracts] == ["a", "b"]
        assert all(isinstance(c.validators[0], TypeValidator) for c in contracts)

    def test_duplicate_against_existing(self) -> None:
        existing = build_field_contracts(["a"])
        with pytest.raises(DuplicateFieldError, match="a"):
            build_field_contracts(["a"], existing=existing)

    def test_duplicate_within_call(self) -> None:
        with pytest.raises(DuplicateFieldError):
            build_field_contracts(["a", "a"])


# Representative values: valid typed value, wrong type, blank, boolean edge
# case, UUID-formatted string, malformed UUID string.
VALUE_MATRIX = [7, "seven", "", False, str(uuid.uuid4()), "1234-not-a-uuid"]

DECLARATIONS = [
    {"type": int},
    {"type": "boolean"},
    {"type": ["uuid", int]},
    {"type": {"with": str, "message": "needs text"}, "allow_blank": True},
    {"validate": lambda v: None if v else "is falsy"},
    {"model": "Order"},
    {"type": int, "allow_nil": True, "default": 3},
]


class TestOptionsRoundTrip:
    @pytest.mark.parametrize("declaration", DECLARATIONS)
    def test_rebuilt_contract_accepts_the_same_values(self, declaration: dict) -> None:
        runner = ContractValidationRunner(lookup=InMemoryLookup({"Order": {7: object()}}))
        declared = FieldContract.build("value", **declaration)
        rebuilt = FieldContract.build("value", **declared.options())

        for value in VALUE_MATRIX:
            assert runner.check_value(rebuilt, value) == runner.check_value(declared, value), value

    def test_options_shape(self) -> None:
        contract = FieldContract.build("order_id", type=int, model=True)
        assert contract.options() == {"type": int, "model": "Order", "presence": True}

    def test_subfield_parent_survives_rebuild(self) -> None:
        contract = FieldContract.build("street", on="address", presence=True)
        assert contract.options()["on"] == "address"
        rebuilt = FieldContract.build("street", **contract.options())
        assert rebuilt.on == "address"
        assert rebuilt == contract

    def test_top_level_field_has_no_parent_option(self) -> None:
        assert "on" not in FieldContract.build("street").options()
