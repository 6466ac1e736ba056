"""Dokumen API endpoints (nested under /permohonan/{id}/dokumen)"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from auth.dependencies import get_current_actor
from dependencies import get_attachment_manager, require_module_enabled
from domain.permohonan.models import Actor
from permohonan.schemas import DokumenResponse
from .schemas import DokumenDeleteResponse, DokumenListResponse, DokumenUploadResponse
from .service import DocumentAttachmentManager

router = APIRouter(
    prefix="/permohonan/{permohonan_id}/dokumen",
    tags=["dokumen"],
    dependencies=[Depends(require_module_enabled)],
)


@router.get("", response_model=DokumenListResponse)
def list_dokumen(
    permohonan_id: UUID,
    actor: Actor = Depends(get_current_actor),
    manager: DocumentAttachmentManager = Depends(get_attachment_manager),
):
    documents = manager.list_documents(permohonan_id, actor)
    return DokumenListResponse(data=[DokumenResponse.from_domain(d) for d in documents])


@router.post("", response_model=DokumenUploadResponse, status_code=status.HTTP_201_CREATED)
def upload_dokumen(
    permohonan_id: UUID,
    keperluan_dokumen_id: Annotated[int, Form(gt=0)],
    file: Annotated[UploadFile, File(...)],
    actor: Actor = Depends(get_current_actor),
    manager: DocumentAttachmentManager = Depends(get_attachment_manager),
):
    """
    Upload a document for one requirement of a draft application.

    A previous upload for the same requirement is replaced.

    Raises:
        422 PERMOHONAN_NOT_DRAFT: application already submitted or cancelled
        422 INVALID_FILE_TYPE / FILE_SIZE_EXCEEDED: file rejected
    """
    content = file.file.read()
    document = manager.upload(
        permohonan_id,
        requirement_id=keperluan_dokumen_id,
        filename=file.filename or "dokumen",
        mime_type=file.content_type,
        content=content,
        actor=actor,
    )
    return DokumenUploadResponse(
        message="Dokumen berjaya dimuat naik.",
        data=DokumenResponse.from_domain(document),
    )


@router.delete("/{dokumen_id}", response_model=DokumenDeleteResponse)
def delete_dokumen(
    permohonan_id: UUID,
    dokumen_id: UUID,
    actor: Actor = Depends(get_current_actor),
    manager: DocumentAttachmentManager = Depends(get_attachment_manager),
):
    """
    Delete an unverified document from a draft application.

    Raises:
        403 NOT_OWNER
        422 PERMOHONAN_NOT_DRAFT / DOCUMENT_ALREADY_VALIDATED
    """
    manager.delete(permohonan_id, dokumen_id, actor)
    return DokumenDeleteResponse(
        message="Dokumen berjaya dipadam.",
        dokumen_id=dokumen_id,
        permohonan_id=permohonan_id,
    )
