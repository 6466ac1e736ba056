"""Pydantic schemas for Permohonan API

Request bodies use the stored (Malay) field names; responses are built from
the lifecycle's ApplicationDetail records.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.catalog.models import LicenseType
from domain.permohonan.models import (
    ApplicationDetail,
    ApplicationDocument,
    BusinessDetails,
    Page,
    RequirementStatus,
)


# ============================================================================
# Butiran Operasi (business details)
# ============================================================================

class AlamatPremis(BaseModel):
    """Premise address"""
    alamat_1: Optional[str] = Field(None, max_length=255)
    alamat_2: Optional[str] = Field(None, max_length=255)
    bandar: Optional[str] = Field(None, max_length=100)
    poskod: Optional[str] = Field(None, max_length=10)
    negeri: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(extra='forbid')


class ButiranOperasi(BaseModel):
    """Business-operation details; required fields are enforced by the lifecycle"""
    alamat_premis: AlamatPremis = Field(default_factory=AlamatPremis)
    nama_perniagaan: Optional[str] = Field(None, max_length=255)
    jenis_operasi: Optional[str] = Field(None, max_length=255)
    bilangan_pekerja: Optional[int] = Field(None, ge=0, description="Employee count must be >= 0")
    catatan: Optional[str] = None

    model_config = ConfigDict(extra='forbid')

    def to_domain(self) -> BusinessDetails:
        return BusinessDetails.from_dict(self.model_dump())


# ============================================================================
# Requests
# ============================================================================

class PermohonanCreate(BaseModel):
    """Schema for creating a draft (POST /permohonan)"""
    company_id: UUID
    jenis_lesen_id: int = Field(..., gt=0)
    butiran_operasi: ButiranOperasi

    model_config = ConfigDict(extra='forbid')


class PermohonanUpdate(BaseModel):
    """Schema for updating a draft (PATCH /permohonan/{id})

    butiran_operasi is merged at the leaves supplied, so only the keys present
    in the request body are changed.
    """
    company_id: Optional[UUID] = None
    jenis_lesen_id: Optional[int] = Field(None, gt=0)
    butiran_operasi: Optional[ButiranOperasi] = None

    model_config = ConfigDict(extra='forbid')

    def to_patch(self) -> Dict[str, Any]:
        patch: Dict[str, Any] = {}
        if self.company_id is not None:
            patch["company_id"] = self.company_id
        if self.jenis_lesen_id is not None:
            patch["license_type_id"] = self.jenis_lesen_id
        if self.butiran_operasi is not None:
            details = self.butiran_operasi.model_dump(exclude_unset=True)
            if details:
                patch["business_details"] = details
        return patch


class CancelRequest(BaseModel):
    """Schema for POST /permohonan/{id}/cancel"""
    reason: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# Responses
# ============================================================================

class JenisLesenResponse(BaseModel):
    """License type as resolved from the catalog"""
    id: int
    kod: Optional[str] = None
    nama: str
    keterangan: Optional[str] = None
    kategori: Optional[str] = None
    yuran_proses: Optional[Decimal] = None

    @classmethod
    def from_domain(cls, license_type: LicenseType) -> "JenisLesenResponse":
        return cls(
            id=license_type.id,
            kod=license_type.code,
            nama=license_type.name,
            keterangan=license_type.description,
            kategori=license_type.category,
            yuran_proses=license_type.processing_fee,
        )


class DokumenResponse(BaseModel):
    """Uploaded document"""
    id: UUID
    permohonan_id: UUID
    keperluan_dokumen_id: int
    nama_fail: str
    mime: str
    saiz_bait: int
    status_sah: str
    hash_fail: Optional[str] = None
    uploaded_by: UUID
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, document: ApplicationDocument) -> "DokumenResponse":
        return cls(
            id=document.id,
            permohonan_id=document.application_id,
            keperluan_dokumen_id=document.requirement_id,
            nama_fail=document.filename,
            mime=document.mime_type,
            saiz_bait=document.size_bytes,
            status_sah=document.verification_status.value,
            hash_fail=document.content_hash,
            uploaded_by=document.uploaded_by,
            created_at=document.created_at,
        )


class PermohonanResponse(BaseModel):
    """Application with catalog data and documents attached"""
    id: UUID
    user_id: UUID
    company_id: UUID
    jenis_lesen_id: int
    status: str
    tarikh_serahan: Optional[datetime] = None
    butiran_operasi: Dict[str, Any] = Field(default_factory=dict)
    jenis_lesen: Optional[JenisLesenResponse] = None
    dokumen: List[DokumenResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_detail(cls, detail: ApplicationDetail) -> "PermohonanResponse":
        application = detail.application
        return cls(
            id=application.id,
            user_id=application.user_id,
            company_id=application.company_id,
            jenis_lesen_id=application.license_type_id,
            status=application.status.value,
            tarikh_serahan=application.submitted_at,
            butiran_operasi=application.business_details.to_dict(),
            jenis_lesen=JenisLesenResponse.from_domain(detail.license_type) if detail.license_type else None,
            dokumen=[DokumenResponse.from_domain(document) for document in detail.documents],
            created_at=application.created_at,
            updated_at=application.updated_at,
        )


class PaginationMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int


class PermohonanListResponse(BaseModel):
    """Paginated list (GET /permohonan)"""
    data: List[PermohonanResponse]
    meta: PaginationMeta

    @classmethod
    def from_page(cls, page: Page) -> "PermohonanListResponse":
        return cls(
            data=[PermohonanResponse.from_detail(item) for item in page.items],
            meta=PaginationMeta(
                current_page=page.page,
                per_page=page.per_page,
                total=page.total,
                last_page=page.last_page,
            ),
        )


class KeperluanStatus(BaseModel):
    keperluan_dokumen_id: int
    nama: str
    wajib: bool
    lengkap: bool
    dokumen_id: Optional[UUID] = None


class KelengkapanResponse(BaseModel):
    """Requirement checklist (GET /permohonan/{id}/kelengkapan)"""
    permohonan_id: UUID
    lengkap: bool
    keperluan: List[KeperluanStatus]
    validation_errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_checklist(cls, application_id: UUID, checklist: List[RequirementStatus]) -> "KelengkapanResponse":
        missing = [item.name for item in checklist if item.blocking]
        return cls(
            permohonan_id=application_id,
            lengkap=not missing,
            keperluan=[
                KeperluanStatus(
                    keperluan_dokumen_id=item.requirement_id,
                    nama=item.name,
                    wajib=item.mandatory,
                    lengkap=item.satisfied,
                    dokumen_id=item.document_id,
                )
                for item in checklist
            ],
            validation_errors=[f"Required document missing: {name}" for name in missing],
        )
