from .http_catalog_client import HttpCatalogClient
from .static_catalog import StaticCatalog

__all__ = ["HttpCatalogClient", "StaticCatalog"]
