"""actionkit: typed contracts and declarative failure dispatch for command objects.

Validation runs field contracts against a live context or a raw payload;
dispatch routes failures to messages and callbacks through predicate
matchers; batch enqueueing fans an action out over resolved sources.
"""

from actionkit.batch import BatchEnqueueConfig, enqueue_all
from actionkit.context import ActionContext
from actionkit.contracts import ContractValidationRunner, FieldContract, ValidationResult
from actionkit.definition import ActionDefinition
from actionkit.errors import (
    ActionkitError,
    ConfigurationError,
    Failure,
    InboundValidationError,
    OutboundValidationError,
    ValidationFailure,
)
from actionkit.flow import DispatchRegistry, EventType, FlowEvent, Matcher
from actionkit.lookup import InMemoryLookup, SqlAlchemyLookup, get_lookup, set_lookup

__version__ = "0.4.0"

__all__ = [
    "ActionContext",
    "ActionDefinition",
    "ActionkitError",
    "BatchEnqueueConfig",
    "ConfigurationError",
    "ContractValidationRunner",
    "DispatchRegistry",
    "EventType",
    "Failure",
    "FieldContract",
    "FlowEvent",
    "InMemoryLookup",
    "InboundValidationError",
    "Matcher",
    "OutboundValidationError",
    "SqlAlchemyLookup",
    "ValidationFailure",
    "ValidationResult",
    "enqueue_all",
    "get_lookup",
    "set_lookup",
]
