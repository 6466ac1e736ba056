"""Background workers for side-effect delivery (Celery)."""

from .celery_app import celery_app
from .side_effect_worker import CeleryTaskQueue, build_consumer_dependencies, deliver_side_effect

__all__ = [
    "celery_app",
    "CeleryTaskQueue",
    "build_consumer_dependencies",
    "deliver_side_effect",
]
