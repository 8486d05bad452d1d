"""Flow events: what dispatch matchers and handlers are evaluated against."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from actionkit.errors import Failure


class EventType(StrEnum):
    """Registry buckets for messages and callbacks."""

    SUCCESS = "success"
    ERROR = "error"
    FAILURE = "failure"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class FlowEvent:
    """An exception (or its absence) plus the action it happened in.

    ``cause`` is the underlying source of the failure: a ``Failure``'s
    ``source``, or the explicitly chained ``__cause__`` of any other
    exception. Success events carry neither.
    """

    exception: BaseException | None = None
    action: Any = None
    cause: Any = None

    @classmethod
    def from_exception(cls, exception: BaseException | None, *, action: Any = None) -> FlowEvent:
        if exception is None:
            return cls(action=action)
        if isinstance(exception, Failure):
            cause = exception.source
        else:
            cause = exception.__cause__
        return cls(exception=exception, action=action, cause=cause)

    @property
    def is_failure(self) -> bool:
        return isinstance(self.exception, Failure)
