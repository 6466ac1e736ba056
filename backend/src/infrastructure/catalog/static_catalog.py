"""Built-in sample catalog.

Used in development when the catalog service is unreachable, and by the
test suite as a deterministic catalog.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from domain.catalog.models import DocumentRequirement, LicenseType
from domain.catalog.ports import CatalogPort

SAMPLE_LICENSE_TYPES: List[LicenseType] = [
    LicenseType(
        id=1,
        code="LPM",
        name="Lesen Perniagaan Makanan",
        description="Lesen untuk perniagaan makanan dan minuman",
        category="Berisiko",
        processing_fee=Decimal("150.00"),
    ),
    LicenseType(
        id=2,
        code="LKR",
        name="Lesen Kedai Runcit",
        description="Lesen untuk kedai runcit dan barangan am",
        category="Tidak Berisiko",
        processing_fee=Decimal("100.00"),
    ),
    LicenseType(
        id=3,
        code="LPK",
        name="Lesen Perkhidmatan",
        description="Lesen untuk perniagaan perkhidmatan",
        category="Tidak Berisiko",
        processing_fee=Decimal("120.00"),
    ),
]

SAMPLE_REQUIREMENTS: List[DocumentRequirement] = [
    DocumentRequirement(1, 1, "Salinan Pendaftaran SSM", "Sijil pendaftaran syarikat"),
    DocumentRequirement(2, 1, "Gambar Premis Perniagaan", "Gambar hadapan dan dalam premis"),
    DocumentRequirement(3, 1, "Sijil Kesihatan", "Sijil kesihatan pengendali makanan"),
    DocumentRequirement(4, 2, "Salinan Pendaftaran SSM", "Sijil pendaftaran syarikat"),
    DocumentRequirement(5, 2, "Pelan Susun Atur Kedai", "Pelan lantai premis"),
    DocumentRequirement(6, 3, "Salinan Pendaftaran SSM", "Sijil pendaftaran syarikat"),
    DocumentRequirement(7, 3, "Sijil Kelayakan", "Sijil kelayakan profesional"),
]


class StaticCatalog(CatalogPort):

    def __init__(
        self,
        license_types: Optional[Sequence[LicenseType]] = None,
        requirements: Optional[Sequence[DocumentRequirement]] = None,
    ):
        self._license_types = list(SAMPLE_LICENSE_TYPES if license_types is None else license_types)
        self._requirements: Dict[int, List[DocumentRequirement]] = {}
        for requirement in SAMPLE_REQUIREMENTS if requirements is None else requirements:
            self._requirements.setdefault(requirement.license_type_id, []).append(requirement)

    def get_license_types(self) -> List[LicenseType]:
        return list(self._license_types)

    def get_document_requirements(self, license_type_id: int) -> List[DocumentRequirement]:
        return list(self._requirements.get(license_type_id, []))
