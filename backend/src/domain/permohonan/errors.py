"""Typed failures raised by the application lifecycle and document attachment.

Every failure carries a stable machine-readable error_code, a human-readable
message and the HTTP status the API answers with. Validation failures also
carry the specific missing or invalid items in ``details``.
"""

from typing import Any, Dict, List, Optional, Sequence


class BusinessLogicError(Exception):
    """Base class for user-facing business rule violations."""

    error_code = "BUSINESS_RULE_VIOLATION"
    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class NotOwner(BusinessLogicError):
    error_code = "NOT_OWNER"
    status_code = 403

    def __init__(self):
        super().__init__("You do not own this application.")


class NotDraft(BusinessLogicError):
    error_code = "PERMOHONAN_NOT_DRAFT"
    status_code = 422

    def __init__(self, message: str = "Application must be in draft status for this operation."):
        super().__init__(message)


class PermohonanNotDraft(NotDraft):
    """Document mutation attempted on an application that is no longer a draft."""

    def __init__(self):
        super().__init__(
            "Documents can only be changed while the application is in draft status."
        )


class Incomplete(BusinessLogicError):
    error_code = "PERMOHONAN_INCOMPLETE"
    status_code = 422

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = list(missing)
        super().__init__(
            "Application is incomplete and cannot be submitted.",
            details={"missing_requirements": self.missing},
        )

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["validation_errors"] = [
            f"Required document missing: {label}" for label in self.missing
        ]
        return body


class IdentityNotVerified(BusinessLogicError):
    error_code = "IDENTITY_NOT_VERIFIED"
    status_code = 403

    def __init__(self):
        super().__init__("User identity must be verified before submitting applications.")


class CompanyNotOwned(BusinessLogicError):
    error_code = "COMPANY_NOT_OWNED"
    status_code = 403

    def __init__(self):
        super().__init__("Company does not belong to authenticated user.")


class InvalidLicenseType(BusinessLogicError):
    error_code = "INVALID_JENIS_LESEN"
    status_code = 422

    def __init__(self, license_type_id: int):
        self.license_type_id = license_type_id
        super().__init__(
            f"Invalid jenis_lesen_id: {license_type_id}. License type does not exist.",
            details={"jenis_lesen_id": license_type_id},
        )


class InvalidFileType(BusinessLogicError):
    error_code = "INVALID_FILE_TYPE"
    status_code = 422

    def __init__(self, actual: str, allowed: Sequence[str]):
        self.actual = actual
        self.allowed = list(allowed)
        super().__init__(
            f"File type not allowed. Allowed types: {', '.join(t.upper() for t in self.allowed)}",
            details={"actual": actual, "allowed": self.allowed},
        )


class FileSizeExceeded(BusinessLogicError):
    error_code = "FILE_SIZE_EXCEEDED"
    status_code = 422

    def __init__(self, actual_size: int, max_size: int):
        self.actual_size = actual_size
        self.max_size = max_size
        actual_mb = round(actual_size / 1024 / 1024, 2)
        max_mb = round(max_size / 1024 / 1024, 2)
        super().__init__(
            f"File size ({actual_mb} MB) exceeds maximum allowed size ({max_mb} MB).",
            details={"actual_bytes": actual_size, "max_bytes": max_size},
        )


class DocumentAlreadyValidated(BusinessLogicError):
    error_code = "DOCUMENT_ALREADY_VALIDATED"
    status_code = 422

    def __init__(self):
        super().__init__("Cannot delete a validated document.")


class ExternalServiceUnavailable(BusinessLogicError):
    error_code = "EXTERNAL_SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(self, service_name: str, reason: Optional[str] = None):
        self.service_name = service_name
        self.reason = reason
        super().__init__(
            f"External service '{service_name}' is temporarily unavailable",
            details={"service": service_name},
        )


class ApplicationNotFound(BusinessLogicError):
    error_code = "PERMOHONAN_NOT_FOUND"
    status_code = 404

    def __init__(self, application_id: Any):
        super().__init__(f"Application {application_id} not found")


class DocumentNotFound(BusinessLogicError):
    error_code = "DOKUMEN_NOT_FOUND"
    status_code = 404

    def __init__(self, document_id: Any):
        super().__init__(f"Document {document_id} not found")


class IntegrityViolation(BusinessLogicError):
    """A storage-layer constraint rejected the write (foreign key or uniqueness)."""

    error_code = "INTEGRITY_VIOLATION"
    status_code = 409

    def __init__(self, message: str = "The change conflicts with existing data."):
        super().__init__(message)


class FeatureDisabled(BusinessLogicError):
    error_code = "FEATURE_DISABLED"
    status_code = 503

    def __init__(self, feature: str):
        super().__init__(f"Feature '{feature}' is currently disabled.")


class InvalidBusinessDetails(BusinessLogicError):
    error_code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        super().__init__(
            "Business details are invalid.",
            details={"fields": self.field_errors},
        )

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["validation_errors"] = [
            f"{field}: {message}" for field, message in self.field_errors.items()
        ]
        return body
