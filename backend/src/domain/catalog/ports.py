"""Catalog Port - read access to license types and their document requirements.

Implementations are expected to be cache-backed: a stale answer is preferred
over blocking a request on the live catalog service.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import DocumentRequirement, LicenseType


class CatalogPort(ABC):

    @abstractmethod
    def get_license_types(self) -> List[LicenseType]:
        """Return every license type offered by the catalog.

        Raises:
            ExternalServiceUnavailable: catalog unreachable and nothing cached
        """

    @abstractmethod
    def get_document_requirements(self, license_type_id: int) -> List[DocumentRequirement]:
        """Return the document requirements of one license type (may be empty)."""

    def get_license_type(self, license_type_id: int) -> Optional[LicenseType]:
        for license_type in self.get_license_types():
            if license_type.id == license_type_id:
                return license_type
        return None

    def license_type_exists(self, license_type_id: int) -> bool:
        return self.get_license_type(license_type_id) is not None
