"""Verification status of an uploaded application document.

State flow:
    BelumSah → Disahkan

Disahkan is terminal. A verified document can no longer be deleted or
replaced by the applicant.
"""

from enum import Enum
from typing import Dict, List


class VerificationStatus(str, Enum):
    """Document verification status (stored values are the Malay labels)."""
    UNVERIFIED = "BelumSah"  # Uploaded, awaiting officer verification
    VERIFIED = "Disahkan"    # Verified by an officer (terminal)


ALLOWED_TRANSITIONS: Dict[VerificationStatus, List[VerificationStatus]] = {
    VerificationStatus.UNVERIFIED: [VerificationStatus.VERIFIED],
    VerificationStatus.VERIFIED: [],
}


def can_transition(from_status: VerificationStatus, to_status: VerificationStatus) -> bool:
    """Validate if status transition is allowed

    Example:
        >>> can_transition(VerificationStatus.UNVERIFIED, VerificationStatus.VERIFIED)
        True
        >>> can_transition(VerificationStatus.VERIFIED, VerificationStatus.UNVERIFIED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def is_deletable(status: VerificationStatus) -> bool:
    return status == VerificationStatus.UNVERIFIED
