"""Pydantic schemas for Dokumen API"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from permohonan.schemas import DokumenResponse


class DokumenUploadResponse(BaseModel):
    """Result of POST /permohonan/{id}/dokumen"""
    message: str
    data: DokumenResponse


class DokumenListResponse(BaseModel):
    data: List[DokumenResponse]


class DokumenDeleteResponse(BaseModel):
    message: str
    dokumen_id: UUID
    permohonan_id: Optional[UUID] = None
