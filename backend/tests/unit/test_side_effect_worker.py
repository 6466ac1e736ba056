"""Unit tests for the Celery side-effect worker and the database audit sink"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from celery.exceptions import Retry

from audit.service import DatabaseAuditSink
from domain.permohonan.events import SubmissionEvent
from domain.permohonan.models import Application, BusinessDetails
from domain.permohonan.status import ApplicationStatus
from side_effects.consumers import ConsumerDependencies, execute_consumer
from side_effects.retry import SideEffectDeliveryFailed
from workers.side_effect_worker import CeleryTaskQueue, deliver_side_effect


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
    return dict(SubmissionEvent.from_application(application).to_payload(), request_id="req-worker")


@pytest.fixture
def deps(session_factory):
    return ConsumerDependencies(
        audit_sink=DatabaseAuditSink(session_factory),
        notification_gateway=MagicMock(),
        review_queue_gateway=MagicMock(),
    )


class TestCeleryTaskQueue:

    def test_enqueue_uses_deliver_task(self):
        with patch.object(deliver_side_effect, "apply_async") as apply_async:
            CeleryTaskQueue(default_queue="side-effects").enqueue("forward_to_review_queue", {"a": 1})

        apply_async.assert_called_once_with(
            kwargs={"consumer": "forward_to_review_queue", "payload": {"a": 1}},
            queue="side-effects",
        )

    def test_explicit_queue_wins(self):
        with patch.object(deliver_side_effect, "apply_async") as apply_async:
            CeleryTaskQueue(default_queue="side-effects").enqueue("scan_document", {}, queue="av-scans")
        assert apply_async.call_args.kwargs["queue"] == "av-scans"


class TestDatabaseAuditSink:

    def test_submission_audit_committed_once(self, deps, session_factory, audit_entries):
        payload = submission_payload()

        execute_consumer("record_submission_audit", payload, deps)
        execute_consumer("record_submission_audit", payload, deps)

        entry, = audit_entries("permohonan_submitted")
        assert str(entry.entity_id) == payload["permohonan_id"]

    def test_exhaustion_entry_survives_failed_delivery(self, deps, audit_entries):
        deps.review_queue_gateway.forward.side_effect = ConnectionError("review queue down")

        with pytest.raises(SideEffectDeliveryFailed):
            execute_consumer("forward_to_review_queue", submission_payload(), deps, attempt=3)

        entry, = audit_entries("forward_to_review_queue_failed")
        assert entry.metadata_json["attempt"] == 3

    def test_disabled_sink_writes_nothing(self, session_factory, audit_entries):
        sink = DatabaseAuditSink(session_factory, enabled=False)
        assert sink.record("permohonan_submitted", "permohonan", uuid4()) is None
        assert audit_entries() == []


class TestDeliverTask:

    def test_runs_consumer_and_closes_dependencies(self, deps):
        closed = []
        deps.closers = [lambda: closed.append(True)]

        with patch("workers.side_effect_worker.build_consumer_dependencies", return_value=deps):
            result = deliver_side_effect.apply(
                kwargs={"consumer": "forward_to_review_queue", "payload": submission_payload()}
            ).get()

        assert result == {"consumer": "forward_to_review_queue", "status": "forwarded"}
        deps.review_queue_gateway.forward.assert_called_once()
        assert closed == [True]

    @pytest.mark.parametrize("retries, countdown", [(0, 1.0), (1, 5.0)])
    def test_failed_attempt_is_rescheduled_with_backoff(self, deps, audit_entries, retries, countdown):
        deps.review_queue_gateway.forward.side_effect = ConnectionError("review queue down")

        with patch("workers.side_effect_worker.build_consumer_dependencies", return_value=deps), \
                patch.object(deliver_side_effect, "retry", side_effect=Retry("rescheduled")) as retry:
            deliver_side_effect.apply(
                kwargs={"consumer": "forward_to_review_queue", "payload": submission_payload()},
                retries=retries,
            )

        retry.assert_called_once()
        assert retry.call_args.kwargs["countdown"] == countdown
        assert retry.call_args.kwargs["max_retries"] == 2
        assert isinstance(retry.call_args.kwargs["exc"], ConnectionError)
        assert audit_entries("forward_to_review_queue_failed") == []

    def test_final_attempt_records_failure(self, deps, audit_entries):
        deps.review_queue_gateway.forward.side_effect = ConnectionError("review queue down")

        with patch("workers.side_effect_worker.build_consumer_dependencies", return_value=deps), \
                patch.object(deliver_side_effect, "retry") as retry:
            result = deliver_side_effect.apply(
                kwargs={"consumer": "forward_to_review_queue", "payload": submission_payload()},
                retries=2,
            )
            with pytest.raises(SideEffectDeliveryFailed):
                result.get()

        retry.assert_not_called()
        entry, = audit_entries("forward_to_review_queue_failed")
        assert entry.metadata_json["attempt"] == 3

    def test_eager_retries_run_every_attempt(self, deps, audit_entries):
        deps.review_queue_gateway.forward.side_effect = ConnectionError("review queue down")

        with patch("workers.side_effect_worker.build_consumer_dependencies", return_value=deps):
            result = deliver_side_effect.apply(
                kwargs={"consumer": "forward_to_review_queue", "payload": submission_payload()}
            )

        assert result.failed()
        assert deps.review_queue_gateway.forward.call_count == 3
        entry, = audit_entries("forward_to_review_queue_failed")
        assert entry.metadata_json["attempt"] == 3
