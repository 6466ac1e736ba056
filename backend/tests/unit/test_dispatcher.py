"""Unit tests for SideEffectDispatcher fan-out"""

from datetime import datetime, timezone
from uuid import uuid4

from domain.permohonan.events import SubmissionEvent, UploadEvent
from domain.permohonan.models import Application, ApplicationDocument, BusinessDetails
from domain.permohonan.status import ApplicationStatus
from observability.request_id import bound_request_id
from side_effects.dispatcher import SideEffectDispatcher


def submission_event():
    return SubmissionEvent.from_application(
        Application(
            id=uuid4(),
            user_id=uuid4(),
            company_id=uuid4(),
            license_type_id=2,
            status=ApplicationStatus.SUBMITTED,
            submitted_at=datetime(2026, 9, 1, tzinfo=timezone.utc),
            business_details=BusinessDetails(),
        )
    )


def upload_event():
    return UploadEvent.from_document(
        ApplicationDocument(
            id=uuid4(),
            application_id=uuid4(),
            requirement_id=4,
            filename="ssm.pdf",
            mime_type="application/pdf",
            size_bytes=3,
            storage_locator="permohonan/a/dokumen/b_ssm.pdf",
            uploaded_by=uuid4(),
        )
    )


class TestSideEffectDispatcher:

    def test_submission_enqueues_one_task_per_consumer(self, task_queue):
        dispatcher = SideEffectDispatcher(task_queue, queue="side-effects")
        enqueued = dispatcher.dispatch_submission(submission_event())

        assert enqueued == ["record_submission_audit", "send_submission_notification", "forward_to_review_queue"]
        assert task_queue.consumers == enqueued
        assert {queue for _, _, queue in task_queue.enqueued} == {"side-effects"}

    def test_upload_enqueues_audit_and_antivirus(self, task_queue):
        enqueued = SideEffectDispatcher(task_queue).dispatch_upload(upload_event())
        assert enqueued == ["record_upload_audit", "queue_antivirus_scan"]

    def test_payload_carries_request_id(self, task_queue):
        with bound_request_id("req-abc"):
            SideEffectDispatcher(task_queue).dispatch_submission(submission_event())
        assert task_queue.payload_for("send_submission_notification")["request_id"] == "req-abc"

    def test_enqueue_failure_is_contained(self, task_queue):
        task_queue.fail_for = {"send_submission_notification"}
        enqueued = SideEffectDispatcher(task_queue).dispatch_submission(submission_event())

        # The other consumers are still enqueued; nothing is raised
        assert enqueued == ["record_submission_audit", "forward_to_review_queue"]
