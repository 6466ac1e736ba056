"""Fan-out of committed lifecycle events to side-effect consumers.

The dispatcher only enqueues. Every consumer gets its own task so one slow or
failing consumer never delays the others, and nothing here blocks on a
downstream call. An enqueue failure is logged and counted, never raised: the
transition that produced the event has already committed.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from domain.permohonan.events import SubmissionEvent, UploadEvent
from observability.metrics import side_effect_enqueue_failures_total
from observability.request_id import current_request_id

from .consumers import SUBMISSION_CONSUMERS, UPLOAD_CONSUMERS
from .ports import TaskQueuePort

logger = logging.getLogger(__name__)


class SideEffectDispatcher:

    def __init__(self, task_queue: TaskQueuePort, queue: Optional[str] = None):
        self.task_queue = task_queue
        self.queue = queue

    def dispatch_submission(self, event: SubmissionEvent) -> List[str]:
        """Enqueue audit, notification and review-queue delivery."""
        return self._fan_out(SUBMISSION_CONSUMERS, event.to_payload())

    def dispatch_upload(self, event: UploadEvent) -> List[str]:
        """Enqueue upload audit and antivirus enqueue."""
        return self._fan_out(UPLOAD_CONSUMERS, event.to_payload())

    def _fan_out(self, consumers: Iterable[str], payload: Dict[str, Any]) -> List[str]:
        payload = dict(payload, request_id=current_request_id())
        enqueued = []
        for consumer in consumers:
            try:
                self.task_queue.enqueue(consumer, payload, queue=self.queue)
            except Exception:
                side_effect_enqueue_failures_total.labels(consumer=consumer).inc()
                logger.exception(
                    f"Failed to enqueue side effect {consumer}",
                    extra={
                        "consumer": consumer,
                        "permohonan_id": payload.get("permohonan_id"),
                        "dokumen_id": payload.get("dokumen_id"),
                    },
                )
                continue
            enqueued.append(consumer)
        return enqueued
