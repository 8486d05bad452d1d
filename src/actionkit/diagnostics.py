"""Diagnostics side channel for contained errors.

Validators, handlers, and batch filters that swallow an exception still
need someone to hear about it. ``report`` logs the raw error and fans it
out to the ``report_error`` plugin hook.

INVARIANT: ``report`` never raises.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def report(context: str, error: BaseException) -> None:
    """Record that *error* was ignored while *context* (e.g. "applying custom validation")."""
    try:
        logger.warning(
            "Ignoring exception raised while %s: %s - %s",
            context,
            type(error).__name__,
            error,
            exc_info=error,
        )

        from actionkit.plugins.manager import get_plugin_manager

        get_plugin_manager().notify("report_error", context=context, error=error)
    except Exception:  # noqa: BLE001
        logger.debug("Diagnostics reporting failed for %s", context, exc_info=True)
