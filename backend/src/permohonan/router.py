"""Permohonan API endpoints

Thin HTTP layer over ApplicationLifecycle. Business rule violations are raised
as BusinessLogicError subclasses and turned into JSON by the handlers in
main.py.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth.dependencies import get_current_actor
from dependencies import get_lifecycle, require_module_enabled
from domain.permohonan.models import (
    Actor,
    ApplicationDetail,
    ApplicationFilters,
    PageRequest,
)
from domain.permohonan.status import ApplicationStatus
from .schemas import (
    CancelRequest,
    KelengkapanResponse,
    PermohonanCreate,
    PermohonanListResponse,
    PermohonanResponse,
    PermohonanUpdate,
)
from .service import ApplicationLifecycle

router = APIRouter(
    prefix="/permohonan",
    tags=["permohonan"],
    dependencies=[Depends(require_module_enabled)],
)


@router.get("", response_model=PermohonanListResponse)
def list_permohonan(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status", description="Filter by status"),
    jenis_lesen_id: Optional[int] = Query(None, gt=0, description="Filter by license type"),
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """List the caller's applications, newest first."""
    result = lifecycle.list_for_user(
        actor,
        ApplicationFilters(status=status_filter, license_type_id=jenis_lesen_id),
        PageRequest(page=page, per_page=per_page),
    )
    return PermohonanListResponse.from_page(result)


@router.post("", response_model=PermohonanResponse, status_code=status.HTTP_201_CREATED)
def create_permohonan(
    body: PermohonanCreate,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Create a draft application.

    Raises:
        403 COMPANY_NOT_OWNED: company belongs to someone else
        422 INVALID_JENIS_LESEN: license type not in the catalog
        422 VALIDATION_ERROR: required business details missing
    """
    application = lifecycle.create_draft(
        actor,
        company_id=body.company_id,
        license_type_id=body.jenis_lesen_id,
        business_details=body.butiran_operasi.to_domain(),
    )
    return PermohonanResponse.from_detail(ApplicationDetail(application=application))


@router.get("/{permohonan_id}", response_model=PermohonanResponse)
def get_permohonan(
    permohonan_id: UUID,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return PermohonanResponse.from_detail(lifecycle.get_application(permohonan_id, actor))


@router.patch("/{permohonan_id}", response_model=PermohonanResponse)
def update_permohonan(
    permohonan_id: UUID,
    body: PermohonanUpdate,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """Partially update a draft. Only the fields present in the body change."""
    application = lifecycle.update_draft(permohonan_id, actor, body.to_patch())
    return PermohonanResponse.from_detail(ApplicationDetail(application=application))


@router.get("/{permohonan_id}/kelengkapan", response_model=KelengkapanResponse)
def get_kelengkapan(
    permohonan_id: UUID,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """Document requirement checklist for the application's license type."""
    checklist = lifecycle.get_completeness(permohonan_id, actor)
    return KelengkapanResponse.from_checklist(permohonan_id, checklist)


@router.post("/{permohonan_id}/submit", response_model=PermohonanResponse)
def submit_permohonan(
    permohonan_id: UUID,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Submit a draft for review.

    Raises:
        403 NOT_OWNER / IDENTITY_NOT_VERIFIED / COMPANY_NOT_OWNED
        422 PERMOHONAN_NOT_DRAFT / PERMOHONAN_INCOMPLETE / INVALID_JENIS_LESEN
    """
    application = lifecycle.submit(permohonan_id, actor)
    return PermohonanResponse.from_detail(ApplicationDetail(application=application))


@router.post("/{permohonan_id}/cancel", response_model=PermohonanResponse)
def cancel_permohonan(
    permohonan_id: UUID,
    body: Optional[CancelRequest] = None,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    reason = body.reason if body else None
    application = lifecycle.cancel(permohonan_id, actor, reason=reason)
    return PermohonanResponse.from_detail(ApplicationDetail(application=application))
