"""Typed side-effect consumers.

Each consumer is one independently retried unit of work. Consumers receive the
event snapshot carried on the queue, never a live row, and must tolerate being
run more than once: audit consumers skip when their entry already exists,
gateway calls and scans are safe to repeat.

After retries are exhausted the failure is recorded as ``<action>_failed``
against the event's entity.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from audit.service import AuditSink
from domain.documents.ports.antivirus_port import AntivirusScannerPort
from domain.documents.ports.document_store_port import DocumentStore
from domain.permohonan.events import SubmissionEvent, UploadEvent
from infrastructure.gateways.http_gateway import NotificationGateway, ReviewQueueGateway

from .ports import TaskQueuePort
from .retry import RetryPolicy, run_attempt

logger = logging.getLogger(__name__)


@dataclass
class ConsumerDependencies:
    audit_sink: AuditSink
    notification_gateway: Optional[NotificationGateway] = None
    review_queue_gateway: Optional[ReviewQueueGateway] = None
    task_queue: Optional[TaskQueuePort] = None
    document_store: Optional[DocumentStore] = None
    scanner: Optional[AntivirusScannerPort] = None
    av_scan_enabled: bool = False
    av_scan_queue: Optional[str] = None
    closers: List[Callable[[], None]] = field(default_factory=list)

    def close(self) -> None:
        for close in self.closers:
            close()


@dataclass(frozen=True)
class Consumer:
    name: str
    action: str  # audit action; "<action>_failed" is recorded on exhaustion
    entity_type: str
    entity_key: str  # payload key holding the entity id
    handler: Callable[[Dict[str, Any], ConsumerDependencies], Dict[str, Any]]

    def entity_id(self, payload: Dict[str, Any]) -> Optional[UUID]:
        value = payload.get(self.entity_key)
        return UUID(value) if value else None


def _actor(payload: Dict[str, Any], key: str) -> Optional[UUID]:
    value = payload.get(key)
    return UUID(value) if value else None


def record_submission_audit(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = SubmissionEvent.from_payload(payload)
    if deps.audit_sink.has_entry("permohonan_submitted", event.application_id):
        return {"status": "duplicate"}
    deps.audit_sink.record(
        "permohonan_submitted",
        "permohonan",
        event.application_id,
        actor_id=event.user_id,
        metadata={
            "jenis_lesen_id": event.license_type_id,
            "company_id": str(event.company_id),
            "tarikh_serahan": event.submitted_at.isoformat(),
        },
    )
    return {"status": "recorded"}


def send_submission_notification(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = SubmissionEvent.from_payload(payload)
    deps.notification_gateway.send_submission_notice(event, request_id=payload.get("request_id"))
    deps.audit_sink.record(
        "send_submission_notification",
        "permohonan",
        event.application_id,
        actor_id=None,
        metadata={"user_id": str(event.user_id), "status": "sent"},
    )
    return {"status": "sent"}


def forward_to_review_queue(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = SubmissionEvent.from_payload(payload)
    deps.review_queue_gateway.forward(event, request_id=payload.get("request_id"))
    deps.audit_sink.record(
        "forward_to_review_queue",
        "permohonan",
        event.application_id,
        actor_id=None,
        metadata={"jenis_lesen_id": event.license_type_id, "status": "forwarded"},
    )
    return {"status": "forwarded"}


def record_upload_audit(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = UploadEvent.from_payload(payload)
    if deps.audit_sink.has_entry("dokumen_uploaded", event.document_id):
        return {"status": "duplicate"}
    metadata = {
        "permohonan_id": str(event.application_id),
        "keperluan_dokumen_id": event.requirement_id,
        "nama_fail": event.filename,
        "mime": event.mime_type,
        "saiz_bait": event.size_bytes,
    }
    if event.replaced_document_id:
        metadata["replaced_dokumen_id"] = str(event.replaced_document_id)
    deps.audit_sink.record(
        "dokumen_uploaded",
        "dokumen",
        event.document_id,
        actor_id=event.uploaded_by,
        metadata=metadata,
    )
    return {"status": "recorded"}


def queue_antivirus_scan(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = UploadEvent.from_payload(payload)
    if not deps.av_scan_enabled:
        logger.info(
            "Antivirus scanning disabled, skipping scan",
            extra={"dokumen_id": event.document_id},
        )
        return {"status": "skipped"}

    deps.task_queue.enqueue("scan_document", payload, queue=deps.av_scan_queue)
    deps.audit_sink.record(
        "queue_av_scan",
        "dokumen",
        event.document_id,
        actor_id=None,
        metadata={"url_storan": event.storage_locator, "queue": deps.av_scan_queue},
    )
    return {"status": "queued"}


def scan_document(payload: Dict[str, Any], deps: ConsumerDependencies) -> Dict[str, Any]:
    event = UploadEvent.from_payload(payload)
    store = deps.document_store

    # Replaced or deleted before the scan ran
    if not store.exists(event.storage_locator):
        logger.info(
            "Document blob no longer exists, skipping scan",
            extra={"dokumen_id": event.document_id, "storage_key": event.storage_locator},
        )
        return {"status": "skipped"}

    result = deps.scanner.scan(store.read(event.storage_locator), event.filename)
    if result.clean:
        deps.audit_sink.record(
            "av_scan_completed",
            "dokumen",
            event.document_id,
            actor_id=None,
            metadata={"engine": result.engine, "result": "clean"},
        )
        return {"status": "clean"}

    logger.warning(
        f"Threat detected in uploaded document: {result.threat}",
        extra={"dokumen_id": event.document_id, "storage_key": event.storage_locator},
    )
    deps.audit_sink.record(
        "av_scan_threat_detected",
        "dokumen",
        event.document_id,
        actor_id=None,
        metadata={"engine": result.engine, "threat": result.threat},
    )
    return {"status": "infected", "threat": result.threat}


CONSUMERS: Dict[str, Consumer] = {
    consumer.name: consumer
    for consumer in (
        Consumer("record_submission_audit", "permohonan_submitted", "permohonan", "permohonan_id",
                 record_submission_audit),
        Consumer("send_submission_notification", "send_submission_notification", "permohonan",
                 "permohonan_id", send_submission_notification),
        Consumer("forward_to_review_queue", "forward_to_review_queue", "permohonan", "permohonan_id",
                 forward_to_review_queue),
        Consumer("record_upload_audit", "dokumen_uploaded", "dokumen", "dokumen_id", record_upload_audit),
        Consumer("queue_antivirus_scan", "queue_av_scan", "dokumen", "dokumen_id", queue_antivirus_scan),
        Consumer("scan_document", "av_scan", "dokumen", "dokumen_id", scan_document),
    )
}

SUBMISSION_CONSUMERS = ("record_submission_audit", "send_submission_notification", "forward_to_review_queue")
UPLOAD_CONSUMERS = ("record_upload_audit", "queue_antivirus_scan")


def get_consumer(name: str) -> Consumer:
    try:
        return CONSUMERS[name]
    except KeyError:
        raise ValueError(f"Unknown side-effect consumer '{name}'")


def execute_consumer(
    name: str,
    payload: Dict[str, Any],
    deps: ConsumerDependencies,
    policy: RetryPolicy = RetryPolicy(),
    attempt: int = 1,
) -> Dict[str, Any]:
    """Run one attempt of a consumer under the retry policy.

    Raises:
        SideEffectRetryScheduled: the attempt failed and attempts remain
        SideEffectDeliveryFailed: all attempts failed; ``<action>_failed``
            has been recorded
    """
    consumer = get_consumer(name)
    entity_id = consumer.entity_id(payload)

    def run(number: int) -> Dict[str, Any]:
        logger.info(
            f"Running side effect {name} (attempt {number})",
            extra={"consumer": name, "attempt": number},
        )
        return consumer.handler(payload, deps)

    def record_failure(error: BaseException, attempts: int) -> None:
        metadata = {
            "error": str(error),
            "error_type": type(error).__name__,
            "attempt": attempts,
            "status": "failed",
            "consumer": name,
        }
        for key in ("permohonan_id", "dokumen_id"):
            if payload.get(key):
                metadata[key] = payload[key]
        deps.audit_sink.record(
            f"{consumer.action}_failed",
            consumer.entity_type,
            entity_id,
            actor_id=None,
            metadata=metadata,
        )

    return run_attempt(name, run, attempt, policy, on_exhausted=record_failure)
