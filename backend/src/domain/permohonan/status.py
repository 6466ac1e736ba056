"""Permohonan status state machine.

State Flow:
    Draf → Diserahkan
    Draf → Dibatalkan

Terminal States: Diserahkan, Dibatalkan
"""

from enum import Enum

from .errors import NotDraft


class ApplicationStatus(str, Enum):
    """Application status enumeration (stored values are the Malay labels)."""
    DRAFT = "Draf"
    SUBMITTED = "Diserahkan"
    CANCELLED = "Dibatalkan"


ALLOWED_TRANSITIONS = {
    ApplicationStatus.DRAFT: [ApplicationStatus.SUBMITTED, ApplicationStatus.CANCELLED],
    ApplicationStatus.SUBMITTED: [],  # Terminal state
    ApplicationStatus.CANCELLED: [],  # Terminal state
}


def validate_transition(
    current_status: ApplicationStatus,
    new_status: ApplicationStatus
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current application status
        new_status: Target status to transition to

    Raises:
        NotDraft: If transition is not allowed (only drafts can move)
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise NotDraft(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Application must be in draft status for this operation."
        )
