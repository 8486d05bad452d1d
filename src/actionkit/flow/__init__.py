"""Predicate-based dispatch: matchers, handler descriptors, and the registry."""

from actionkit.flow.descriptors import CallbackDescriptor, HandlerDescriptor, MessageDescriptor
from actionkit.flow.events import EventType, FlowEvent
from actionkit.flow.matcher import FromClassRule, IfRule, Matcher, UnlessRule
from actionkit.flow.registry import DispatchRegistry

__all__ = [
    "CallbackDescriptor",
    "DispatchRegistry",
    "EventType",
    "FlowEvent",
    "FromClassRule",
    "HandlerDescriptor",
    "IfRule",
    "Matcher",
    "MessageDescriptor",
    "UnlessRule",
]
