"""Batch enqueue: resolve sources and enqueue one job per item."""

from actionkit.batch.config import (
    BatchEnqueueConfig,
    Enqueuer,
    ExplicitSource,
    InferredFromModel,
    NamedAccessor,
)
from actionkit.batch.orchestrator import enqueue_all, resolve_configs

__all__ = [
    "BatchEnqueueConfig",
    "Enqueuer",
    "ExplicitSource",
    "InferredFromModel",
    "NamedAccessor",
    "enqueue_all",
    "resolve_configs",
]
