"""Events emitted after a committed transition.

An event is a snapshot of the fields downstream consumers need, taken at the
moment of the transition. Retries replay the snapshot, never a live row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from .models import Application, ApplicationDocument


@dataclass(frozen=True)
class SubmissionEvent:
    application_id: UUID
    user_id: UUID
    company_id: UUID
    license_type_id: int
    submitted_at: datetime
    business_details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_application(cls, application: Application) -> "SubmissionEvent":
        return cls(
            application_id=application.id,
            user_id=application.user_id,
            company_id=application.company_id,
            license_type_id=application.license_type_id,
            submitted_at=application.submitted_at,
            business_details=application.business_details.to_dict(),
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe form carried on the task queue."""
        return {
            "permohonan_id": str(self.application_id),
            "user_id": str(self.user_id),
            "company_id": str(self.company_id),
            "jenis_lesen_id": self.license_type_id,
            "tarikh_serahan": self.submitted_at.isoformat(),
            "butiran_operasi": self.business_details,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SubmissionEvent":
        return cls(
            application_id=UUID(payload["permohonan_id"]),
            user_id=UUID(payload["user_id"]),
            company_id=UUID(payload["company_id"]),
            license_type_id=int(payload["jenis_lesen_id"]),
            submitted_at=datetime.fromisoformat(payload["tarikh_serahan"]),
            business_details=payload.get("butiran_operasi") or {},
        )


@dataclass(frozen=True)
class UploadEvent:
    document_id: UUID
    application_id: UUID
    requirement_id: int
    filename: str
    mime_type: str
    size_bytes: int
    storage_locator: str
    uploaded_by: UUID
    replaced_document_id: Optional[UUID] = None

    @classmethod
    def from_document(
        cls,
        document: ApplicationDocument,
        replaced_document_id: Optional[UUID] = None,
    ) -> "UploadEvent":
        return cls(
            document_id=document.id,
            application_id=document.application_id,
            requirement_id=document.requirement_id,
            filename=document.filename,
            mime_type=document.mime_type,
            size_bytes=document.size_bytes,
            storage_locator=document.storage_locator,
            uploaded_by=document.uploaded_by,
            replaced_document_id=replaced_document_id,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "dokumen_id": str(self.document_id),
            "permohonan_id": str(self.application_id),
            "keperluan_dokumen_id": self.requirement_id,
            "nama_fail": self.filename,
            "mime": self.mime_type,
            "saiz_bait": self.size_bytes,
            "url_storan": self.storage_locator,
            "uploaded_by": str(self.uploaded_by),
            "replaced_dokumen_id": str(self.replaced_document_id) if self.replaced_document_id else None,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "UploadEvent":
        replaced = payload.get("replaced_dokumen_id")
        return cls(
            document_id=UUID(payload["dokumen_id"]),
            application_id=UUID(payload["permohonan_id"]),
            requirement_id=int(payload["keperluan_dokumen_id"]),
            filename=payload["nama_fail"],
            mime_type=payload["mime"],
            size_bytes=int(payload["saiz_bait"]),
            storage_locator=payload["url_storan"],
            uploaded_by=UUID(payload["uploaded_by"]),
            replaced_document_id=UUID(replaced) if replaced else None,
        )
