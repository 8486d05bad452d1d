"""Shared pytest fixtures and test helpers for actionkit tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import Any

import pluggy
import pytest

from actionkit.config.settings import ActionkitSettings, configure
from actionkit.lookup import InMemoryLookup, set_lookup
from actionkit.plugins.manager import PluginManager, set_plugin_manager

hookimpl = pluggy.HookimplMarker("actionkit")


@dataclass
class Order:
    id: int
    status: str = "open"


@dataclass
class Customer:
    id: str
    name: str = "Ada"


class NotFoundError(Exception):
    """Stand-in for an application error class matched by name."""


class RecordNotFoundError(NotFoundError):
    pass


class RecordingPlugin:
    """Plugin that records every hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def report_error(self, context: str, error: BaseException) -> None:
        self.calls.append(("report_error", {"context": context, "error": error}))

    @hookimpl
    def post_validation_failure(self, direction: str, errors: dict[str, list[str]]) -> None:
        self.calls.append(("post_validation_failure", {"direction": direction, "errors": errors}))

    @hookimpl
    def post_batch_enqueue(self, target: str, count: int) -> None:
        self.calls.append(("post_batch_enqueue", {"target": target, "count": count}))

    def named(self, hook_name: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.calls if name == hook_name]


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[ActionkitSettings]:
    """Isolated test-env settings, with no config file or env overrides."""
    monkeypatch.delenv("ACTIONKIT_CONFIG", raising=False)
    monkeypatch.delenv("ACTIONKIT_ENV", raising=False)
    settings = configure(ActionkitSettings(env="test"))
    yield settings
    configure(ActionkitSettings(env="test"))


@pytest.fixture(autouse=True)
def plugin_manager() -> Generator[PluginManager]:
    """A fresh plugin manager without entry-point discovery."""
    manager = PluginManager()
    set_plugin_manager(manager)
    yield manager
    set_plugin_manager(None)


@pytest.fixture
def recorder(plugin_manager: PluginManager) -> RecordingPlugin:
    plugin = RecordingPlugin()
    plugin_manager.register_plugin(plugin, name="recorder")
    return plugin


@pytest.fixture
def orders() -> list[Order]:
    return [Order(id=1), Order(id=2, status="closed"), Order(id=3)]


@pytest.fixture
def lookup(orders: list[Order]) -> Generator[InMemoryLookup]:
    """Default lookup seeded with three orders and one customer."""
    store = InMemoryLookup()
    for order in orders:
        store.add("Order", order)
    store.add(Customer, Customer(id="c-1"))
    previous = set_lookup(store)
    yield store
    set_lookup(previous)


class ExplodingLookup:
    """Lookup whose every call raises, like an unreachable store."""

    def find_by_id(self, kind: str, id: Any) -> Any:
        raise ConnectionError("store unreachable")

    def all_of(self, kind: str) -> list[Any]:
        raise ConnectionError("store unreachable")
