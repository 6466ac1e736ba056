"""Prometheus metrics for the licensing application backend."""

from prometheus_client import Counter

# Lifecycle transitions
permohonan_transitions_total = Counter(
    "permohonan_transitions_total",
    "Application status transitions",
    ["status"]  # status: Diserahkan|Dibatalkan
)

# Side-effect delivery
side_effect_attempts_total = Counter(
    "permohonan_side_effect_attempts_total",
    "Side-effect delivery attempts",
    ["consumer", "outcome"]  # outcome: success|retry|failed
)

side_effect_exhausted_total = Counter(
    "permohonan_side_effect_exhausted_total",
    "Side-effect units of work that exhausted their retries",
    ["consumer"]
)

side_effect_enqueue_failures_total = Counter(
    "permohonan_side_effect_enqueue_failures_total",
    "Side-effect tasks that could not be put on the queue",
    ["consumer"]
)

# Documents
dokumen_uploads_total = Counter(
    "permohonan_dokumen_uploads_total",
    "Document uploads",
    ["outcome"]  # outcome: stored|replaced|rejected
)

orphaned_blobs_total = Counter(
    "permohonan_orphaned_blobs_total",
    "Blobs left in storage after their document row was removed"
)
