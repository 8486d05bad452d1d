"""Tests for ContractValidationRunner and value sources."""

from __future__ import annotations

from typing import Any

import pytest

from actionkit.context import ActionContext
from actionkit.contracts.fields import FieldContract
from actionkit.contracts.runner import (
    ContractValidationRunner,
    apply_defaults,
    apply_preprocessing,
)
from actionkit.contracts.sources import ContextSource, PayloadSource, extract
from actionkit.errors import InboundValidationError, PreprocessingError
from actionkit.lookup import InMemoryLookup
from tests.conftest import ExplodingLookup, Order, RecordingPlugin


class OrderContext(ActionContext):
    """Context exposing a derived ``order`` accessor."""

    @property
    def order(self) -> Order:
        return Order(id=self.read("order_ref"))


@pytest.fixture
def runner(lookup: InMemoryLookup) -> ContractValidationRunner:
    return ContractValidationRunner()


class TestExtract:
    def test_mapping_and_dotted(self) -> None:
        assert extract("user.email", {"user": {"email": "a@b.c"}}) == "a@b.c"

    def test_object_attributes(self) -> None:
        assert extract("id", Order(id=4)) == 4

    def test_missing_is_none(self) -> None:
        assert extract("user.email", {"user": None}) is None
        assert extract("nope", Order(id=1)) is None


class TestSources:
    def test_context_source_reads_provided(self) -> None:
        source = ContextSource(ActionContext(name="Ada"))
        assert source.read_field("name") == "Ada"
        assert source.read_field("missing") is None

    def test_context_source_prefers_accessor(self) -> None:
        source = ContextSource(OrderContext(order_ref=9))
        assert source.read_field("order", prefer_accessor=True) == Order(id=9)

    def test_payload_source_uses_context_accessor_only_for_model_fields(self) -> None:
        context = OrderContext(order_ref=9)
        source = PayloadSource({"order": "raw"}, context=context)
        assert source.read_field("order", prefer_accessor=True) == Order(id=9)
        assert source.read_field("order") == "raw"


class TestValidate:
    def test_success_has_no_errors(self, runner: ContractValidationRunner) -> None:
        fields = [FieldContract.build("name", type=str)]
        result = runner.validate(fields, ActionContext(name="Ada"))
        assert result.ok
        assert result.errors == {}

    def test_collects_every_message_per_field_in_order(
        self, runner: ContractValidationRunner
    ) -> None:
        contract = FieldContract.build(
            "code",
            type=int,
            validate=lambda v: "is too short",
            presence=True,
        )
        result = runner.validate([contract], {"code": "x"})
        assert result.errors == {"code": ["is not a int", "is too short"]}

    @pytest.mark.parametrize("failing", [0, 1, 2, 3])
    def test_m_of_n_failures(self, runner: ContractValidationRunner, failing: int) -> None:
        checks = {
            f"check_{i}": (lambda v, i=i: f"failed {i}" if i < failing else None) for i in range(3)
        }
        validators = [FieldContract.build("x", validate=fn).validators[0] for fn in checks.values()]
        contract = FieldContract(name="x", validators=tuple(validators))
        result = runner.validate([contract], {"x": 1})
        expected = [f"failed {i}" for i in range(failing)]
        assert result.errors.get("x", []) == expected

    def test_field_order_follows_declaration(self, runner: ContractValidationRunner) -> None:
        fields = [FieldContract.build(name) for name in ("zeta", "alpha", "mid")]
        result = runner.validate(fields, {})
        assert list(result.errors) == ["zeta", "alpha", "mid"]

    def test_raising_custom_validator_does_not_escape(
        self, runner: ContractValidationRunner, recorder: RecordingPlugin
    ) -> None:
        def explode(value: Any) -> str:
            raise RuntimeError("kaboom")

        fields = [
            FieldContract.build("a", validate=explode),
            FieldContract.build("b", type=int),
        ]
        result = runner.validate(fields, {"a": 1, "b": "x"})
        assert result.errors == {
            "a": ["failed validation: kaboom"],
            "b": ["is not a int"],
        }
        [report] = recorder.named("report_error")
        assert "custom validation on field 'a'" in report["context"]

    def test_faulty_lookup_does_not_hide_siblings(self) -> None:
        runner = ContractValidationRunner(lookup=ExplodingLookup())
        fields = [
            FieldContract.build("order_id", model=True),
            FieldContract.build("note", type=str),
        ]
        result = runner.validate(fields, {"order_id": 1, "note": 5})
        assert result.errors == {
            "order_id": ["error raised while trying to find a valid Order"],
            "note": ["is not a str"],
        }

    def test_allow_nil_skips_validators(self, runner: ContractValidationRunner) -> None:
        contract = FieldContract.build("n", type=int, allow_nil=True)
        assert runner.validate([contract], {"n": None}).ok
        assert not runner.validate([contract], {"n": "x"}).ok

    def test_allow_blank_skips_validators(self, runner: ContractValidationRunner) -> None:
        contract = FieldContract.build("n", type=int, validate=lambda v: "bad", allow_blank=True)
        assert runner.validate([contract], {"n": ""}).ok

    def test_model_field_reads_context_accessor(self, runner: ContractValidationRunner) -> None:
        contract = FieldContract.build("order", model="Order")
        result = runner.validate([contract], OrderContext(order_ref=99))
        assert result.ok

    def test_ad_hoc_subset_with_throwaway_payload(self, runner: ContractValidationRunner) -> None:
        fields = [FieldContract.build("order_id", model=True), FieldContract.build("name")]
        result = runner.validate(fields[:1], {"order_id": 42})
        assert result.errors == {"order_id": ["not found for class Order and ID 42"]}

    def test_failure_notifies_plugins(
        self, runner: ContractValidationRunner, recorder: RecordingPlugin
    ) -> None:
        runner.validate([FieldContract.build("name")], {}, direction="outbound")
        [payload] = recorder.named("post_validation_failure")
        assert payload == {"direction": "outbound", "errors": {"name": ["can't be blank"]}}

    def test_validate_or_raise(self, runner: ContractValidationRunner) -> None:
        with pytest.raises(InboundValidationError) as exc_info:
            runner.validate_or_raise([FieldContract.build("name")], {})
        assert exc_info.value.errors == {"name": ["can't be blank"]}
        assert str(exc_info.value) == "name can't be blank"


class TestSubfields:
    def test_validates_against_parent_value(self, runner: ContractValidationRunner) -> None:
        contracts = [
            FieldContract.build("email", type=str, on="user"),
            FieldContract.build("profile.age", type=int, on="user"),
        ]
        context = ActionContext(user={"email": 5, "profile": {"age": "old"}})
        result = runner.validate_subfields(contracts, context)
        assert result.errors == {
            "email": ["is not a str"],
            "profile.age": ["is not a int"],
        }

    def test_model_subfield_prefers_context_accessor(
        self, runner: ContractValidationRunner
    ) -> None:
        contracts = [FieldContract.build("order", model="Order", on="payload")]
        context = OrderContext(payload={"order": "unknown-id"}, order_ref=3)
        assert runner.validate_subfields(contracts, context).ok


class TestPreprocessingAndDefaults:
    def test_preprocess_replaces_value(self) -> None:
        context = ActionContext(email="  ADA@EXAMPLE.COM ")
        apply_preprocessing(
            [FieldContract.build("email", preprocess=lambda v: v.strip().lower())], context
        )
        assert context.email == "ada@example.com"

    def test_preprocess_error_is_wrapped(self) -> None:
        context = ActionContext(count="x")
        with pytest.raises(PreprocessingError, match="Error preprocessing field 'count'"):
            apply_preprocessing([FieldContract.build("count", preprocess=int)], context)

    def test_defaults_fill_blank_values(self) -> None:
        context = ActionContext(tags=[])
        apply_defaults(
            [
                FieldContract.build("tags", default=lambda: ["new"]),
                FieldContract.build("limit", default=10),
            ],
            context,
        )
        assert context.tags == ["new"]
        assert context.limit == 10

    def test_defaults_fill_field_named_like_context_api(self) -> None:
        context = ActionContext()
        apply_defaults([FieldContract.build("expose", default="public")], context)
        assert context.read("expose") == "public"

    def test_presence_on_field_named_like_context_api(
        self, runner: ContractValidationRunner
    ) -> None:
        fields = [FieldContract.build("read", presence=True)]
        assert not runner.validate(fields, ActionContext()).ok
        assert runner.validate(fields, ActionContext({"read": "yes"})).ok
