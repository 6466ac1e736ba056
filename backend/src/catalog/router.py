"""License catalog API endpoints

Read-only views over the external catalog service (jenis lesen and their
document requirements).
"""

import logging

from fastapi import APIRouter, Depends, Path

from auth.dependencies import get_current_actor
from dependencies import get_catalog
from domain.catalog.ports import CatalogPort
from domain.permohonan.models import Actor
from permohonan.schemas import JenisLesenResponse
from .schemas import (
    JenisLesenListResponse,
    KeperluanDokumenListResponse,
    KeperluanDokumenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/jenis-lesen", response_model=JenisLesenListResponse)
def list_jenis_lesen(
    actor: Actor = Depends(get_current_actor),
    catalog: CatalogPort = Depends(get_catalog),
):
    """
    List license types.

    Raises:
        503 EXTERNAL_SERVICE_UNAVAILABLE: catalog unreachable and nothing cached
    """
    license_types = catalog.get_license_types()
    return JenisLesenListResponse(data=[JenisLesenResponse.from_domain(lt) for lt in license_types])


@router.get("/jenis-lesen/{jenis_lesen_id}/keperluan-dokumen", response_model=KeperluanDokumenListResponse)
def list_keperluan_dokumen(
    jenis_lesen_id: int = Path(..., gt=0),
    actor: Actor = Depends(get_current_actor),
    catalog: CatalogPort = Depends(get_catalog),
):
    """Document requirements of one license type (empty for an unknown type)."""
    requirements = catalog.get_document_requirements(jenis_lesen_id)
    logger.debug(
        f"Catalog returned {len(requirements)} requirements",
        extra={"jenis_lesen_id": jenis_lesen_id},
    )
    return KeperluanDokumenListResponse(
        data=[KeperluanDokumenResponse.from_domain(r) for r in requirements]
    )
