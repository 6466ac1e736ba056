"""FastAPI dependencies wiring the lifecycle services to their collaborators.

Process-wide collaborators (catalog client, document store, task queue) are
built once and cached. Per-request services get the request's session. Tests
replace any of these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from audit.service import SessionAuditSink
from config import settings
from database import get_db
from domain.catalog.ports import CatalogPort
from domain.documents.ports.document_store_port import DocumentStore
from dokumen.service import DocumentAttachmentManager
from domain.permohonan.errors import FeatureDisabled
from infrastructure.catalog.http_catalog_client import HttpCatalogClient
from infrastructure.catalog.static_catalog import StaticCatalog
from infrastructure.repositories.permohonan_repository import (
    SqlAlchemyApplicationRepository,
    SqlAlchemyCompanyDirectory,
    UserIdentityVerifier,
)
from infrastructure.storage.storage_config import build_document_store
from permohonan.service import ApplicationLifecycle
from side_effects.dispatcher import SideEffectDispatcher
from side_effects.ports import TaskQueuePort
from workers.side_effect_worker import CeleryTaskQueue


@lru_cache()
def get_catalog() -> CatalogPort:
    """Cached catalog client; falls back to the sample catalog outside production."""
    fallback = None
    if settings.CATALOG_DEV_FALLBACK and not settings.is_production:
        fallback = StaticCatalog()
    return HttpCatalogClient(
        base_url=settings.CATALOG_BASE_URL,
        timeout=settings.CATALOG_TIMEOUT,
        cache_ttl=settings.CATALOG_CACHE_TTL,
        fallback=fallback,
    )


@lru_cache()
def get_document_store() -> DocumentStore:
    return build_document_store(settings)


@lru_cache()
def get_task_queue() -> TaskQueuePort:
    return CeleryTaskQueue(settings.SIDE_EFFECT_QUEUE)


def get_dispatcher(task_queue: TaskQueuePort = Depends(get_task_queue)) -> SideEffectDispatcher:
    return SideEffectDispatcher(task_queue, queue=settings.SIDE_EFFECT_QUEUE)


def get_lifecycle(
    db: Session = Depends(get_db),
    catalog: CatalogPort = Depends(get_catalog),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
) -> ApplicationLifecycle:
    return ApplicationLifecycle(
        db=db,
        repository=SqlAlchemyApplicationRepository(db),
        catalog=catalog,
        companies=SqlAlchemyCompanyDirectory(db),
        identity=UserIdentityVerifier(db),
        audit_sink=SessionAuditSink(db, enabled=settings.AUDIT_ENABLED),
        dispatcher=dispatcher,
    )


def get_attachment_manager(
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
) -> DocumentAttachmentManager:
    return DocumentAttachmentManager(
        db=db,
        repository=SqlAlchemyApplicationRepository(db),
        store=store,
        audit_sink=SessionAuditSink(db, enabled=settings.AUDIT_ENABLED),
        dispatcher=dispatcher,
        max_upload_size=settings.MAX_UPLOAD_SIZE,
        allowed_extensions=settings.allowed_file_extensions,
        hash_enabled=settings.FILE_INTEGRITY_HASH_ENABLED,
    )


def require_module_enabled() -> None:
    """Every application/document endpoint answers 503 while the module is off."""
    if not settings.PERMOHONAN_MODULE_ENABLED:
        raise FeatureDisabled("permohonan")
