"""Unit tests for side-effect retry and consumers

Backoff is asserted through the scheduled countdown, never waited.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from domain.documents.ports.antivirus_port import ScanResult
from domain.permohonan.events import SubmissionEvent, UploadEvent
from domain.permohonan.models import Application, ApplicationDocument, BusinessDetails
from domain.permohonan.status import ApplicationStatus
from infrastructure.gateways.http_gateway import GatewayError
from side_effects.consumers import (
    SUBMISSION_CONSUMERS,
    UPLOAD_CONSUMERS,
    ConsumerDependencies,
    execute_consumer,
    get_consumer,
)
from side_effects.retry import RetryPolicy, SideEffectDeliveryFailed, SideEffectRetryScheduled, run_attempt


def submission_payload():
    application = Application(
        id=uuid4(),
        user_id=uuid4(),
        company_id=uuid4(),
        license_type_id=1,
        status=ApplicationStatus.SUBMITTED,
        submitted_at=datetime(2026, 9, 1, 8, 30, tzinfo=timezone.utc),
        business_details=BusinessDetails(business_name="Kedai Makan Aminah"),
    )
    return dict(SubmissionEvent.from_application(application).to_payload(), request_id="req-123")


def upload_payload():
    document = ApplicationDocument(
        id=uuid4(),
        application_id=uuid4(),
        requirement_id=1,
        filename="ssm.pdf",
        mime_type="application/pdf",
        size_bytes=12,
        storage_locator="permohonan/a/dokumen/b_ssm.pdf",
        uploaded_by=uuid4(),
    )
    return UploadEvent.from_document(document).to_payload()


class TestRetryPolicy:

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.backoff_seconds == (1.0, 5.0, 15.0)

    def test_delay_after_each_attempt(self):
        policy = RetryPolicy()
        assert [policy.delay_after(n) for n in (1, 2, 3, 4)] == [1.0, 5.0, 15.0, 15.0]

    def test_max_retries_follows_attempts(self):
        assert RetryPolicy().max_retries == 2
        assert RetryPolicy(max_attempts=1).max_retries == 0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_from_settings(self):
        settings = MagicMock(SIDE_EFFECT_MAX_ATTEMPTS=5, side_effect_backoff=(2.0,))
        policy = RetryPolicy.from_settings(settings)
        assert policy.max_attempts == 5
        assert policy.delay_after(4) == 2.0


class TestRunAttempt:

    def test_success_returns_result(self):
        assert run_attempt("c", lambda n: "ok", 1, RetryPolicy()) == "ok"

    def test_passes_attempt_number(self):
        assert run_attempt("c", lambda n: n, 2, RetryPolicy()) == 2

    def test_failure_schedules_retry_with_backoff(self):
        def always_fails(attempt):
            raise ConnectionError(f"down {attempt}")

        delays = []
        for attempt in (1, 2):
            with pytest.raises(SideEffectRetryScheduled) as exc_info:
                run_attempt("notify", always_fails, attempt, RetryPolicy())
            assert exc_info.value.attempt == attempt
            assert isinstance(exc_info.value.last_error, ConnectionError)
            delays.append(exc_info.value.delay)

        assert delays == [1.0, 5.0]

    def test_final_attempt_records_and_raises(self):
        exhausted = []

        def always_fails(attempt):
            raise ConnectionError(f"down {attempt}")

        with pytest.raises(SideEffectDeliveryFailed) as exc_info:
            run_attempt(
                "notify",
                always_fails,
                3,
                RetryPolicy(),
                on_exhausted=lambda error, attempts: exhausted.append((str(error), attempts)),
            )

        assert exc_info.value.attempts == 3
        assert exc_info.value.consumer == "notify"
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert exhausted == [("down 3", 3)]

    def test_no_hook_before_final_attempt(self):
        exhausted = []
        with pytest.raises(SideEffectRetryScheduled):
            run_attempt("c", lambda n: 1 / 0, 1, RetryPolicy(), on_exhausted=lambda e, n: exhausted.append(n))
        assert exhausted == []

    def test_failing_exhaustion_hook_does_not_mask_failure(self):
        def hook(error, attempts):
            raise RuntimeError("audit down")

        with pytest.raises(SideEffectDeliveryFailed):
            run_attempt("c", lambda n: 1 / 0, 1, RetryPolicy(max_attempts=1), on_exhausted=hook)


class TestConsumers:

    @pytest.fixture
    def deps(self, recording_audit_sink):
        return ConsumerDependencies(
            audit_sink=recording_audit_sink,
            notification_gateway=MagicMock(),
            review_queue_gateway=MagicMock(),
            task_queue=MagicMock(),
            document_store=MagicMock(),
            scanner=MagicMock(),
            av_scan_enabled=True,
            av_scan_queue="av-scans",
        )

    def test_registry(self):
        assert SUBMISSION_CONSUMERS == (
            "record_submission_audit",
            "send_submission_notification",
            "forward_to_review_queue",
        )
        assert UPLOAD_CONSUMERS == ("record_upload_audit", "queue_antivirus_scan")
        with pytest.raises(ValueError):
            get_consumer("unknown")

    def test_submission_audit_is_idempotent(self, deps, recording_audit_sink):
        payload = submission_payload()
        assert execute_consumer("record_submission_audit", payload, deps)["status"] == "recorded"
        assert execute_consumer("record_submission_audit", payload, deps)["status"] == "duplicate"
        assert recording_audit_sink.actions() == ["permohonan_submitted"]
        entry = recording_audit_sink.entries[0]
        assert str(entry["entity_id"]) == payload["permohonan_id"]
        assert entry["metadata"]["tarikh_serahan"] == payload["tarikh_serahan"]

    def test_notification_passes_request_id(self, deps, recording_audit_sink):
        payload = submission_payload()
        execute_consumer("send_submission_notification", payload, deps)
        event, = deps.notification_gateway.send_submission_notice.call_args.args
        assert event.application_id == SubmissionEvent.from_payload(payload).application_id
        assert deps.notification_gateway.send_submission_notice.call_args.kwargs == {"request_id": "req-123"}
        assert recording_audit_sink.actions() == ["send_submission_notification"]

    def test_notification_exhaustion_records_failed_action(self, deps, recording_audit_sink):
        deps.notification_gateway.send_submission_notice.side_effect = GatewayError(
            "notification", "unexpected status 503", status_code=503
        )
        payload = submission_payload()

        delays = []
        for attempt in (1, 2):
            with pytest.raises(SideEffectRetryScheduled) as exc_info:
                execute_consumer("send_submission_notification", payload, deps, attempt=attempt)
            delays.append(exc_info.value.delay)
        assert recording_audit_sink.entries == []

        with pytest.raises(SideEffectDeliveryFailed):
            execute_consumer("send_submission_notification", payload, deps, attempt=3)

        assert deps.notification_gateway.send_submission_notice.call_count == 3
        assert delays == [1.0, 5.0]
        assert recording_audit_sink.actions() == ["send_submission_notification_failed"]
        entry = recording_audit_sink.entries[0]
        assert entry["entity_type"] == "permohonan"
        assert str(entry["entity_id"]) == payload["permohonan_id"]
        assert entry["metadata"]["attempt"] == 3
        assert entry["metadata"]["status"] == "failed"
        assert entry["metadata"]["error_type"] == "GatewayError"
        assert "503" in entry["metadata"]["error"]

    def test_review_queue_forward(self, deps, recording_audit_sink):
        result = execute_consumer("forward_to_review_queue", submission_payload(), deps)
        assert result == {"status": "forwarded"}
        deps.review_queue_gateway.forward.assert_called_once()
        assert recording_audit_sink.actions() == ["forward_to_review_queue"]

    def test_upload_audit_mentions_replaced_document(self, deps, recording_audit_sink):
        payload = upload_payload()
        replaced = str(uuid4())
        payload["replaced_dokumen_id"] = replaced
        execute_consumer("record_upload_audit", payload, deps)
        entry = recording_audit_sink.entries[0]
        assert entry["action"] == "dokumen_uploaded"
        assert entry["metadata"]["replaced_dokumen_id"] == replaced

    def test_antivirus_enqueue_skipped_when_disabled(self, deps, recording_audit_sink):
        deps.av_scan_enabled = False
        assert execute_consumer("queue_antivirus_scan", upload_payload(), deps) == {"status": "skipped"}
        deps.task_queue.enqueue.assert_not_called()
        assert recording_audit_sink.entries == []

    def test_antivirus_enqueue_on_scan_queue(self, deps, recording_audit_sink):
        payload = upload_payload()
        assert execute_consumer("queue_antivirus_scan", payload, deps) == {"status": "queued"}
        deps.task_queue.enqueue.assert_called_once_with("scan_document", payload, queue="av-scans")
        assert recording_audit_sink.actions() == ["queue_av_scan"]

    def test_scan_skips_missing_blob(self, deps, recording_audit_sink):
        deps.document_store.exists.return_value = False
        assert execute_consumer("scan_document", upload_payload(), deps) == {"status": "skipped"}
        deps.scanner.scan.assert_not_called()

    def test_scan_records_clean_result(self, deps, recording_audit_sink):
        deps.document_store.exists.return_value = True
        deps.document_store.read.return_value = b"%PDF"
        deps.scanner.scan.return_value = ScanResult(clean=True, engine="clamav")
        assert execute_consumer("scan_document", upload_payload(), deps) == {"status": "clean"}
        assert recording_audit_sink.actions() == ["av_scan_completed"]

    def test_scan_records_threat(self, deps, recording_audit_sink):
        deps.document_store.exists.return_value = True
        deps.document_store.read.return_value = b"X5O!P%@AP"
        deps.scanner.scan.return_value = ScanResult(clean=False, threat="EICAR-Test-File", engine="clamav")
        result = execute_consumer("scan_document", upload_payload(), deps)
        assert result == {"status": "infected", "threat": "EICAR-Test-File"}
        assert recording_audit_sink.entries[0]["metadata"]["threat"] == "EICAR-Test-File"

    def test_dependencies_close_runs_closers(self, recording_audit_sink):
        closed = []
        deps = ConsumerDependencies(audit_sink=recording_audit_sink, closers=[lambda: closed.append(1)])
        deps.close()
        assert closed == [1]
