"""Pluggy hook specifications for actionkit diagnostics and lifecycle events.

Hooks are fire-and-forget side channels: their return values are ignored
and their failures never reach the validation run or batch loop that
triggered them.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("actionkit")


class ActionkitHookSpec:
    """Hook specifications for the actionkit plugin system."""

    @hookspec
    def report_error(self, context: str, error: BaseException) -> None:
        """Called when an error was contained instead of propagated."""

    @hookspec
    def post_validation_failure(
        self,
        direction: str,
        errors: dict[str, list[str]],
    ) -> None:
        """Called after a contract validation run failed."""

    @hookspec
    def post_batch_enqueue(self, target: str, count: int) -> None:
        """Called after a batch enqueue finished iterating."""
