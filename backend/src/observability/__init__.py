"""Observability: structured logging, request correlation, metrics, health."""

from .logging_config import configure_logging, get_logger
from .metrics import (
    dokumen_uploads_total,
    orphaned_blobs_total,
    permohonan_transitions_total,
    side_effect_attempts_total,
    side_effect_enqueue_failures_total,
    side_effect_exhausted_total,
)
from .request_id import (
    bound_request_id,
    current_request_id,
    generate_request_id,
    get_request_id,
    request_id_var,
    set_request_id,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "dokumen_uploads_total",
    "orphaned_blobs_total",
    "permohonan_transitions_total",
    "side_effect_attempts_total",
    "side_effect_enqueue_failures_total",
    "side_effect_exhausted_total",
    "bound_request_id",
    "current_request_id",
    "generate_request_id",
    "get_request_id",
    "request_id_var",
    "set_request_id",
    "RequestIDMiddleware",
]
