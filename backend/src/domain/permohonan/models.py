"""Plain data records for applications and their documents.

The repository returns these instead of ORM objects so that nothing in the
lifecycle can trigger a lazy load or a hidden catalog lookup. Derived
license-type data is attached explicitly by the caller (see ApplicationDetail).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from domain.catalog.models import LicenseType
from domain.documents.document_status import VerificationStatus

from .status import ApplicationStatus


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, passed explicitly into every operation."""
    user_id: UUID


@dataclass(frozen=True)
class PremiseAddress:
    line_1: Optional[str] = None
    line_2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    state: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alamat_1": self.line_1,
            "alamat_2": self.line_2,
            "bandar": self.city,
            "poskod": self.postcode,
            "negeri": self.state,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PremiseAddress":
        data = data or {}
        return cls(
            line_1=data.get("alamat_1"),
            line_2=data.get("alamat_2"),
            city=data.get("bandar"),
            postcode=data.get("poskod"),
            state=data.get("negeri"),
        )


@dataclass(frozen=True)
class BusinessDetails:
    """Butiran operasi: nested business-operation details of an application."""
    premise_address: PremiseAddress = field(default_factory=PremiseAddress)
    business_name: Optional[str] = None
    operation_type: Optional[str] = None
    employee_count: Optional[int] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alamat_premis": self.premise_address.to_dict(),
            "nama_perniagaan": self.business_name,
            "jenis_operasi": self.operation_type,
            "bilangan_pekerja": self.employee_count,
            "catatan": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BusinessDetails":
        data = data or {}
        return cls(
            premise_address=PremiseAddress.from_dict(data.get("alamat_premis")),
            business_name=data.get("nama_perniagaan"),
            operation_type=data.get("jenis_operasi"),
            employee_count=data.get("bilangan_pekerja"),
            notes=data.get("catatan"),
        )

    def validation_errors(self) -> Dict[str, str]:
        """Field errors keyed by the stored (dotted) field name.

        Premise address line 1, city, postcode, state and business name are
        required, on create and after every merge; the employee count may
        never be negative.
        """
        errors: Dict[str, str] = {}
        required = {
            "alamat_premis.alamat_1": self.premise_address.line_1,
            "alamat_premis.bandar": self.premise_address.city,
            "alamat_premis.poskod": self.premise_address.postcode,
            "alamat_premis.negeri": self.premise_address.state,
            "nama_perniagaan": self.business_name,
        }
        for name, value in required.items():
            if value is None or not str(value).strip():
                errors[name] = "is required"
        if self.employee_count is not None:
            if isinstance(self.employee_count, bool) or not isinstance(self.employee_count, int):
                errors["bilangan_pekerja"] = "must be an integer"
            elif self.employee_count < 0:
                errors["bilangan_pekerja"] = "must not be negative"
        return errors

    def merged(self, patch: Dict[str, Any]) -> "BusinessDetails":
        """Return a copy with the supplied leaves of ``patch`` overwritten.

        ``patch`` uses the stored (Malay) keys. Nested dicts merge key by key,
        so patching ``{"alamat_premis": {"poskod": "50000"}}`` keeps the rest
        of the address.
        """
        return BusinessDetails.from_dict(deep_merge(self.to_dict(), patch))


def deep_merge(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class Application:
    id: UUID
    user_id: UUID
    company_id: UUID
    license_type_id: int
    status: ApplicationStatus
    submitted_at: Optional[datetime]
    business_details: BusinessDetails
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.status == ApplicationStatus.DRAFT


@dataclass(frozen=True)
class ApplicationDocument:
    id: UUID
    application_id: UUID
    requirement_id: int
    filename: str
    mime_type: str
    size_bytes: int
    storage_locator: str
    uploaded_by: UUID
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED
    content_hash: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED


@dataclass(frozen=True)
class ApplicationDetail:
    """Application plus the catalog data resolved for it at read time."""
    application: Application
    license_type: Optional[LicenseType] = None
    documents: List[ApplicationDocument] = field(default_factory=list)


@dataclass(frozen=True)
class ApplicationFilters:
    status: Optional[ApplicationStatus] = None
    license_type_id: Optional[int] = None


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    per_page: int = 15

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass(frozen=True)
class Page:
    items: List[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page


@dataclass(frozen=True)
class RequirementStatus:
    """One row of the completeness checklist."""
    requirement_id: int
    name: str
    mandatory: bool
    satisfied: bool
    document_id: Optional[UUID] = None

    @property
    def blocking(self) -> bool:
        return self.mandatory and not self.satisfied
