"""Tests for matcher rules and composition."""

from __future__ import annotations

import pytest

from actionkit.errors import ConfigurationError, Failure
from actionkit.flow.events import FlowEvent
from actionkit.flow.matcher import FromClassRule, IfRule, Matcher, UnlessRule
from tests.conftest import NotFoundError, RecordingPlugin, RecordNotFoundError


class HttpError(Exception):
    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"HTTP {code}")


class Checkout:
    """Stand-in action with predicate methods."""

    def __init__(self, retryable: bool = False) -> None:
        self.retryable = retryable

    def is_retryable(self) -> bool:
        return self.retryable


def http_event(code: int, *, cause: object = None) -> FlowEvent:
    return FlowEvent(exception=HttpError(code), cause=cause)


def is_404(exception: HttpError) -> bool:
    return exception.code == 404


class TestFlowEvent:
    def test_failure_cause_is_its_source(self) -> None:
        source = RecordNotFoundError("gone")
        event = FlowEvent.from_exception(Failure("halted", source=source))
        assert event.cause is source
        assert event.is_failure

    def test_exception_cause_is_chained_cause(self) -> None:
        try:
            try:
                raise KeyError("id")
            except KeyError as inner:
                raise RuntimeError("lookup failed") from inner
        except RuntimeError as exc:
            event = FlowEvent.from_exception(exc)
        assert isinstance(event.cause, KeyError)
        assert not event.is_failure

    def test_success_event(self) -> None:
        event = FlowEvent.from_exception(None, action="a")
        assert event.exception is None
        assert event.cause is None
        assert event.action == "a"


class TestIfRule:
    def test_matches_on_predicate_result(self) -> None:
        matcher = Matcher.build(if_=is_404)
        assert matcher.matches(http_event(404))
        assert not matcher.matches(http_event(500))
        assert not matcher.invert

    def test_zero_arity_predicate(self) -> None:
        assert Matcher.build(if_=lambda: True).matches(http_event(500))

    def test_keyword_predicate(self) -> None:
        matcher = Matcher.build(if_=lambda *, exception: exception.code >= 500)
        assert matcher.matches(http_event(503))

    def test_action_method_by_name(self) -> None:
        matcher = Matcher.build(if_="is_retryable")
        assert matcher.matches(FlowEvent(exception=ValueError(), action=Checkout(retryable=True)))
        assert not matcher.matches(FlowEvent(exception=ValueError(), action=Checkout()))

    def test_class_name_string(self) -> None:
        matcher = Matcher.build(if_="NotFoundError")
        assert matcher.matches(FlowEvent(exception=RecordNotFoundError()))
        assert not matcher.matches(FlowEvent(exception=ValueError()))

    def test_invalid_predicate_never_matches(self) -> None:
        assert not IfRule(42).evaluate(http_event(404))  # type: ignore[arg-type]


class TestUnless:
    def test_unless_404_does_not_match_404(self) -> None:
        matcher = Matcher.build(unless=is_404)
        assert matcher.invert
        assert not matcher.matches(http_event(404))

    def test_unless_matches_other_codes(self) -> None:
        assert Matcher.build(unless=is_404).matches(http_event(500))

    def test_unless_rule_holds_raw_predicate(self) -> None:
        assert UnlessRule(is_404).evaluate(http_event(404))

    def test_inversion_covers_from(self) -> None:
        matcher = Matcher.build(unless=is_404, from_="NotFoundError")
        not_found = NotFoundError()
        assert not matcher.matches(http_event(404, cause=not_found))
        assert matcher.matches(http_event(500, cause=not_found))
        # The flip also applies to the source rule: a 404 from elsewhere matches.
        assert matcher.matches(http_event(404, cause=ValueError()))

    def test_if_and_unless_conflict(self) -> None:
        with pytest.raises(ConfigurationError):
            Matcher.build(if_=is_404, unless=is_404)


class TestFromClassRule:
    @pytest.mark.parametrize(
        "cls",
        ["NotFoundError", NotFoundError, "tests.conftest.NotFoundError"],
    )
    def test_matches_class_and_subclasses(self, cls: object) -> None:
        rule = FromClassRule((cls,))  # type: ignore[arg-type]
        assert rule.evaluate(FlowEvent(exception=Failure(), cause=NotFoundError()))
        assert rule.evaluate(FlowEvent(exception=Failure(), cause=RecordNotFoundError()))

    def test_no_cause_never_matches(self) -> None:
        rule = FromClassRule(("NotFoundError",))
        assert not rule.evaluate(FlowEvent(exception=Failure()))
        assert not rule.evaluate(FlowEvent())

    def test_any_of_several(self) -> None:
        matcher = Matcher.build(from_=["TimeoutError", NotFoundError])
        assert matcher.matches(FlowEvent.from_exception(Failure(source=RecordNotFoundError())))
        assert not matcher.matches(FlowEvent.from_exception(Failure(source=ValueError())))

    def test_empty_from_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Matcher.build(from_=[])


class TestMatcher:
    def test_no_rules_is_static(self) -> None:
        matcher = Matcher.build()
        assert matcher.static
        assert matcher.matches(http_event(500))

    def test_conditional_is_not_static(self) -> None:
        assert not Matcher.build(unless=is_404).static

    def test_conjunction_short_circuits(self) -> None:
        calls: list[str] = []

        def first() -> bool:
            calls.append("first")
            return False

        def second() -> bool:
            calls.append("second")
            return True

        matcher = Matcher(rules=(IfRule(first), IfRule(second)))
        assert not matcher.matches(http_event(500))
        assert calls == ["first"]

    def test_raising_predicate_does_not_match(self, recorder: RecordingPlugin) -> None:
        def broken(exception: Exception) -> bool:
            raise AttributeError("no code")

        assert not Matcher.build(if_=broken).matches(http_event(500))
        # Inversion is not applied to an error.
        assert not Matcher.build(unless=broken).matches(http_event(500))
        reports = recorder.named("report_error")
        assert len(reports) == 2
        assert isinstance(reports[0]["error"], AttributeError)
