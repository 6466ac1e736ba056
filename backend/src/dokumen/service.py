"""Document attachment - upload, replace, list and delete application documents.

Upload order: validate, store the new blob, then swap the rows in one
transaction (old row out, new row in). The old blob is removed only after the
commit, so a failed upload never loses the document it would have replaced.
Blob removal is best-effort: an orphaned blob is logged for cleanup, the
database row stays authoritative.
"""

import logging
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from audit.service import AuditSink
from database import transaction
from domain.documents.document_status import VerificationStatus
from domain.documents.ports.document_store_port import DocumentStore
from domain.documents.validation import (
    DEFAULT_ALLOWED_EXTENSIONS,
    build_storage_path,
    check_file_type,
)
from domain.permohonan.errors import DocumentNotFound, FileSizeExceeded, InvalidFileType
from domain.permohonan.events import UploadEvent
from domain.permohonan.models import Actor, ApplicationDocument
from domain.permohonan.policy import can_attach_document, can_delete_document, can_view
from domain.permohonan.ports import ApplicationRepository
from observability.metrics import dokumen_uploads_total, orphaned_blobs_total
from side_effects.dispatcher import SideEffectDispatcher

logger = logging.getLogger(__name__)


class DocumentAttachmentManager:

    def __init__(
        self,
        db: Session,
        repository: ApplicationRepository,
        store: DocumentStore,
        audit_sink: AuditSink,
        dispatcher: SideEffectDispatcher,
        max_upload_size: int = 10 * 1024 * 1024,
        allowed_extensions=DEFAULT_ALLOWED_EXTENSIONS,
        hash_enabled: bool = False,
    ):
        self.db = db
        self.repository = repository
        self.store = store
        self.audit_sink = audit_sink
        self.dispatcher = dispatcher
        self.max_upload_size = max_upload_size
        self.allowed_extensions = list(allowed_extensions)
        self.hash_enabled = hash_enabled

    def upload(
        self,
        application_id: UUID,
        requirement_id: int,
        filename: str,
        mime_type: Optional[str],
        content: bytes,
        actor: Actor,
    ) -> ApplicationDocument:
        """Attach a file to a draft for one document requirement.

        An existing document for the same requirement is replaced. The new
        document starts unverified.

        Raises:
            ApplicationNotFound, NotOwner
            PermohonanNotDraft: application is no longer a draft
            InvalidFileType: extension or MIME type not allowed
            FileSizeExceeded: content larger than the upload ceiling
            StorageError: the blob could not be stored
        """
        document_id = uuid4()
        path = build_storage_path(application_id, document_id, filename)
        stored = None
        replaced: Optional[ApplicationDocument] = None

        try:
            with transaction(self.db):
                application = self.repository.find_by_id(application_id, for_update=True)
                can_attach_document(actor, application).enforce()
                self._validate_file(filename, mime_type, len(content))

                stored = self.store.put(path, content, mime_type or "application/octet-stream")

                replaced = self.repository.find_document_for_requirement(application_id, requirement_id)
                if replaced is not None:
                    self.repository.delete_document(replaced.id)

                document = self.repository.add_document(
                    ApplicationDocument(
                        id=document_id,
                        application_id=application_id,
                        requirement_id=requirement_id,
                        filename=filename,
                        mime_type=mime_type or "application/octet-stream",
                        size_bytes=stored.size_bytes,
                        storage_locator=stored.storage_key,
                        uploaded_by=actor.user_id,
                        verification_status=VerificationStatus.UNVERIFIED,
                        content_hash=stored.sha256 if self.hash_enabled else None,
                    )
                )
        except Exception:
            dokumen_uploads_total.labels(outcome="rejected").inc()
            if stored is not None:
                self._discard_blob(stored.storage_key, document_id)
            raise

        if replaced is not None:
            self._discard_blob(replaced.storage_locator, replaced.id)

        dokumen_uploads_total.labels(outcome="replaced" if replaced else "stored").inc()
        logger.info(
            "Dokumen uploaded",
            extra={
                "permohonan_id": application_id,
                "dokumen_id": document.id,
                "user_id": actor.user_id,
                "storage_key": document.storage_locator,
            },
        )

        self.dispatcher.dispatch_upload(
            UploadEvent.from_document(document, replaced_document_id=replaced.id if replaced else None)
        )
        return document

    def delete(self, application_id: UUID, document_id: UUID, actor: Actor) -> None:
        """Remove an unverified document from a draft.

        Checks, first failure wins: owner, parent is a draft, document is
        unverified. The blob is removed best-effort; the row is always removed.
        If the transaction rolls back after the blob is gone, the row is left
        without its blob and an ERROR is logged for cleanup.

        Raises:
            ApplicationNotFound, DocumentNotFound, NotOwner,
            PermohonanNotDraft, DocumentAlreadyValidated
        """
        blob_removed = False
        try:
            with transaction(self.db):
                application = self.repository.find_by_id(application_id, for_update=True)
                document = self.repository.find_document(document_id)
                if document.application_id != application.id:
                    raise DocumentNotFound(document_id)

                can_delete_document(actor, application, document).enforce()

                blob_removed = self._discard_blob(document.storage_locator, document.id)
                self.repository.delete_document(document.id)
                self.audit_sink.record(
                    "dokumen_deleted",
                    "dokumen",
                    document.id,
                    actor_id=actor.user_id,
                    metadata={
                        "permohonan_id": str(application_id),
                        "keperluan_dokumen_id": document.requirement_id,
                        "nama_fail": document.filename,
                    },
                )
        except Exception as e:
            if blob_removed:
                logger.error(
                    f"Document delete rolled back after its blob was removed: {e}",
                    extra={"dokumen_id": document_id, "missing_storage_key": document.storage_locator},
                )
            raise

        logger.info(
            "Dokumen deleted",
            extra={"permohonan_id": application_id, "dokumen_id": document_id, "user_id": actor.user_id},
        )

    def list_documents(self, application_id: UUID, actor: Actor) -> List[ApplicationDocument]:
        application = self.repository.find_by_id(application_id)
        can_view(actor, application).enforce()
        return self.repository.list_documents(application_id)

    def _validate_file(self, filename: str, mime_type: Optional[str], size_bytes: int) -> None:
        valid, offending = check_file_type(filename, mime_type, self.allowed_extensions)
        if not valid:
            raise InvalidFileType(offending, self.allowed_extensions)
        if size_bytes > self.max_upload_size:
            raise FileSizeExceeded(size_bytes, self.max_upload_size)

    def _discard_blob(self, storage_key: str, document_id: UUID) -> bool:
        try:
            self.store.delete(storage_key)
        except Exception as e:
            orphaned_blobs_total.inc()
            logger.error(
                f"Failed to delete document blob, left for cleanup: {e}",
                extra={"dokumen_id": document_id, "orphaned_storage_key": storage_key},
            )
            return False
        return True
