"""Celery application for side-effect delivery.

Start a worker with:
    celery -A workers.celery_app worker -Q side-effects,av-scans --loglevel=INFO
"""

from celery import Celery
from celery.signals import setup_logging

from config import settings
from observability.logging_config import configure_logging

celery_app = Celery(
    "permohonan",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["workers.side_effect_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_default_queue=settings.SIDE_EFFECT_QUEUE,
    # A unit of work is acknowledged only after it finished, so a worker
    # crash mid-delivery puts it back on the queue
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_soft_time_limit=settings.AV_SCAN_TIMEOUT,
)


@setup_logging.connect
def configure_worker_logging(**kwargs):
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
