"""Permohonan domain: application lifecycle states, records, policy and events."""

from .errors import (
    ApplicationNotFound,
    BusinessLogicError,
    CompanyNotOwned,
    DocumentAlreadyValidated,
    DocumentNotFound,
    ExternalServiceUnavailable,
    FeatureDisabled,
    InvalidBusinessDetails,
    FileSizeExceeded,
    IdentityNotVerified,
    Incomplete,
    IntegrityViolation,
    InvalidFileType,
    InvalidLicenseType,
    NotDraft,
    NotOwner,
    PermohonanNotDraft,
)
from .events import SubmissionEvent, UploadEvent
from .models import (
    Actor,
    Application,
    ApplicationDetail,
    ApplicationDocument,
    ApplicationFilters,
    BusinessDetails,
    Page,
    PageRequest,
    PremiseAddress,
    RequirementStatus,
)
from .status import ApplicationStatus, validate_transition

__all__ = [
    "Actor",
    "Application",
    "ApplicationDetail",
    "ApplicationDocument",
    "ApplicationFilters",
    "ApplicationNotFound",
    "ApplicationStatus",
    "BusinessDetails",
    "BusinessLogicError",
    "CompanyNotOwned",
    "DocumentAlreadyValidated",
    "DocumentNotFound",
    "ExternalServiceUnavailable",
    "FeatureDisabled",
    "FileSizeExceeded",
    "IdentityNotVerified",
    "Incomplete",
    "InvalidBusinessDetails",
    "IntegrityViolation",
    "InvalidFileType",
    "InvalidLicenseType",
    "NotDraft",
    "NotOwner",
    "Page",
    "PageRequest",
    "PermohonanNotDraft",
    "PremiseAddress",
    "RequirementStatus",
    "SubmissionEvent",
    "UploadEvent",
    "validate_transition",
]
