"""Pydantic schemas for Catalog API"""

from typing import List, Optional

from pydantic import BaseModel

from domain.catalog.models import DocumentRequirement
from permohonan.schemas import JenisLesenResponse


class KeperluanDokumenResponse(BaseModel):
    """Document requirement of a license type"""
    id: int
    jenis_lesen_id: int
    nama: str
    keterangan: Optional[str] = None
    wajib: bool = True

    @classmethod
    def from_domain(cls, requirement: DocumentRequirement) -> "KeperluanDokumenResponse":
        return cls(**requirement.to_dict())


class JenisLesenListResponse(BaseModel):
    data: List[JenisLesenResponse]


class KeperluanDokumenListResponse(BaseModel):
    data: List[KeperluanDokumenResponse]
