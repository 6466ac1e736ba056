"""Side-effect worker - Celery task running one consumer per message.

Each execution runs one attempt. A failed attempt is rescheduled through
Celery with the policy countdown, and the attempt number follows
``request.retries``, so it survives a worker restart. The terminal failure is
recorded before the task itself fails.
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from config import settings
from database import SessionLocal
from audit.service import DatabaseAuditSink
from infrastructure.antivirus.pass_through_scanner import PassThroughScanner
from infrastructure.gateways.http_gateway import NotificationGateway, ReviewQueueGateway
from infrastructure.storage.storage_config import build_document_store
from observability.request_id import bound_request_id
from side_effects.consumers import ConsumerDependencies, execute_consumer
from side_effects.ports import TaskQueuePort
from side_effects.retry import RetryPolicy, SideEffectRetryScheduled

logger = logging.getLogger(__name__)


class CeleryTaskQueue(TaskQueuePort):
    """TaskQueuePort backed by the side_effects.deliver Celery task."""

    def __init__(self, default_queue: Optional[str] = None):
        self.default_queue = default_queue or settings.SIDE_EFFECT_QUEUE

    def enqueue(self, consumer: str, payload: Dict[str, Any], queue: Optional[str] = None) -> None:
        deliver_side_effect.apply_async(
            kwargs={"consumer": consumer, "payload": payload},
            queue=queue or self.default_queue,
        )


def build_consumer_dependencies() -> ConsumerDependencies:
    notification = NotificationGateway(settings.NOTIFICATION_BASE_URL, timeout=settings.NOTIFICATION_TIMEOUT)
    review_queue = ReviewQueueGateway(settings.REVIEW_QUEUE_BASE_URL, timeout=settings.REVIEW_QUEUE_TIMEOUT)
    return ConsumerDependencies(
        audit_sink=DatabaseAuditSink(SessionLocal, enabled=settings.AUDIT_ENABLED),
        notification_gateway=notification,
        review_queue_gateway=review_queue,
        task_queue=CeleryTaskQueue(),
        document_store=build_document_store(settings),
        scanner=PassThroughScanner(),
        av_scan_enabled=settings.AV_SCAN_ENABLED,
        av_scan_queue=settings.AV_SCAN_QUEUE,
        closers=[notification.close, review_queue.close],
    )


@shared_task(name="side_effects.deliver", bind=True, acks_late=True)
def deliver_side_effect(self, consumer: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Deliver one side effect.

    Args:
        consumer: Registered consumer name (e.g. 'send_submission_notification')
        payload: Event snapshot produced by SubmissionEvent/UploadEvent.to_payload()

    Returns:
        Dict with the consumer's result

    Raises:
        Retry: the attempt failed and is rescheduled with the policy countdown
        SideEffectDeliveryFailed: all attempts failed (task ends FAILURE)
    """
    policy = RetryPolicy.from_settings(settings)
    attempt = self.request.retries + 1

    with bound_request_id(payload.get("request_id")):
        deps = build_consumer_dependencies()
        try:
            result = execute_consumer(consumer, payload, deps, policy, attempt=attempt)
        except SideEffectRetryScheduled as e:
            raise self.retry(exc=e.last_error, countdown=e.delay, max_retries=policy.max_retries)
        finally:
            deps.close()

        logger.info(
            f"Side effect {consumer} delivered",
            extra={"consumer": consumer, "permohonan_id": payload.get("permohonan_id")},
        )
        return {"consumer": consumer, **result}
