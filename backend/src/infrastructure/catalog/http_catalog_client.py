"""HTTP client for the license catalog service.

Answers are cached in-process for CATALOG_CACHE_TTL seconds. When a refresh
fails the last good answer is served (stale beats blocking); with nothing
cached the call falls back to the sample catalog outside production, and
otherwise fails with ExternalServiceUnavailable.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from domain.catalog.models import DocumentRequirement, LicenseType
from domain.catalog.ports import CatalogPort
from domain.permohonan.errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)


class HttpCatalogClient(CatalogPort):
    """Cache-backed catalog client.

    Endpoints:
        GET {base_url}/jenis-lesen
        GET {base_url}/jenis-lesen/{id}/keperluan-dokumen

    Both answer ``{"data": [...]}``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        cache_ttl: int = 900,
        fallback: Optional[CatalogPort] = None,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.fallback = fallback
        self._client = client or httpx.Client(timeout=timeout)
        self._clock = clock
        self._cache: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get_license_types(self) -> List[LicenseType]:
        return self._cached(
            "jenis-lesen",
            lambda: [LicenseType.from_dict(item) for item in self._fetch("/jenis-lesen")],
            lambda fallback: fallback.get_license_types(),
        )

    def get_document_requirements(self, license_type_id: int) -> List[DocumentRequirement]:
        return self._cached(
            f"keperluan-dokumen:{license_type_id}",
            lambda: [
                DocumentRequirement.from_dict(item)
                for item in self._fetch(f"/jenis-lesen/{license_type_id}/keperluan-dokumen")
            ],
            lambda fallback: fallback.get_document_requirements(license_type_id),
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _cached(self, key: str, load: Callable[[], Any], from_fallback: Callable[[CatalogPort], Any]):
        now = self._clock()
        with self._lock:
            entry = self._cache.get(key)
        if entry is not None and now - entry[0] < self.cache_ttl:
            return entry[1]

        try:
            value = load()
        except (httpx.HTTPError, ValueError, KeyError) as e:
            if entry is not None:
                logger.warning(f"Catalog refresh failed for {key}, serving stale data: {e}")
                return entry[1]
            if self.fallback is not None:
                logger.warning(f"Catalog unavailable for {key}, using built-in catalog: {e}")
                return from_fallback(self.fallback)
            logger.error(f"Catalog unavailable for {key}: {e}")
            raise ExternalServiceUnavailable("catalog", reason=str(e))

        with self._lock:
            self._cache[key] = (now, value)
        return value

    def _fetch(self, path: str) -> List[Dict[str, Any]]:
        response = self._client.get(
            f"{self.base_url}{path}",
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()
        data = body.get("data", []) if isinstance(body, dict) else body
        if not isinstance(data, list):
            raise ValueError(f"Unexpected catalog payload for {path}")
        return data
