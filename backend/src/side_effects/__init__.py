"""Asynchronous, independently retried side effects of lifecycle transitions."""

from .consumers import CONSUMERS, ConsumerDependencies, execute_consumer
from .dispatcher import SideEffectDispatcher
from .ports import TaskQueuePort
from .retry import RetryPolicy, SideEffectDeliveryFailed, SideEffectRetryScheduled, run_attempt

__all__ = [
    "CONSUMERS",
    "ConsumerDependencies",
    "RetryPolicy",
    "SideEffectDeliveryFailed",
    "SideEffectDispatcher",
    "SideEffectRetryScheduled",
    "TaskQueuePort",
    "execute_consumer",
    "run_attempt",
]
