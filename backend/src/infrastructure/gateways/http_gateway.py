"""Outbound HTTP gateways notified when an application is submitted.

Each gateway POSTs the submission snapshot and treats any transport error,
timeout or non-2xx answer as a GatewayError. Retrying is the dispatcher's
job, not the gateway's.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from domain.permohonan.events import SubmissionEvent

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Delivery to a downstream service failed."""

    def __init__(self, gateway: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{gateway}: {message}")
        self.gateway = gateway
        self.status_code = status_code


class HttpGateway:
    """POST a JSON body to ``{base_url}{path}`` with a bounded timeout."""

    name = "http"
    path = "/"

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def post(self, body: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
        if not self.configured:
            raise GatewayError(self.name, "base URL is not configured")

        headers = {"Accept": "application/json"}
        if request_id:
            headers["X-Request-ID"] = request_id

        url = f"{self.base_url}{self.path}"
        try:
            response = self._client.post(url, json=body, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise GatewayError(self.name, f"timed out after {self.timeout}s: {e}")
        except httpx.HTTPError as e:
            raise GatewayError(self.name, f"request failed: {e}")

        if response.status_code >= 300:
            raise GatewayError(
                self.name,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"{self.name} accepted request: url={url}, status={response.status_code}")
        try:
            return response.json()
        except ValueError:
            return {}


def submission_body(event: SubmissionEvent) -> Dict[str, Any]:
    return event.to_payload()


class NotificationGateway(HttpGateway):
    name = "notification"
    path = "/api/notifications/send"

    def send_submission_notice(self, event: SubmissionEvent, request_id: Optional[str] = None) -> Dict[str, Any]:
        body = submission_body(event)
        body["notification_type"] = "permohonan_diserahkan"
        return self.post(body, request_id=request_id)


class ReviewQueueGateway(HttpGateway):
    name = "review_queue"
    path = "/api/review-queue"

    def forward(self, event: SubmissionEvent, request_id: Optional[str] = None) -> Dict[str, Any]:
        return self.post(submission_body(event), request_id=request_id)
