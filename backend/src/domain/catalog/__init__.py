"""License catalog domain: license types and document requirements."""

from .models import DocumentRequirement, LicenseType
from .ports import CatalogPort

__all__ = ["CatalogPort", "DocumentRequirement", "LicenseType"]
