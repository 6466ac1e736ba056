"""Permohonan repository for database operations"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.documents.document_status import VerificationStatus, can_transition
from domain.permohonan.errors import (
    ApplicationNotFound,
    DocumentAlreadyValidated,
    DocumentNotFound,
    IntegrityViolation,
    NotDraft,
)
from domain.permohonan.models import (
    Application,
    ApplicationDocument,
    ApplicationFilters,
    BusinessDetails,
    Page,
    PageRequest,
)
from domain.permohonan.ports import ApplicationRepository, CompanyDirectory, IdentityVerifier
from domain.permohonan.status import ApplicationStatus, validate_transition
from models.base import utcnow
from models.company import Company
from models.permohonan import Permohonan, PermohonanDokumen
from models.user import User

logger = logging.getLogger(__name__)

# Domain field -> column for the partial update path
_UPDATABLE_COLUMNS = {
    "company_id": "company_id",
    "license_type_id": "jenis_lesen_id",
    "business_details": "butiran_operasi",
}


def to_application(row: Permohonan) -> Application:
    return Application(
        id=row.id,
        user_id=row.user_id,
        company_id=row.company_id,
        license_type_id=row.jenis_lesen_id,
        status=ApplicationStatus(row.status),
        submitted_at=row.tarikh_serahan,
        business_details=BusinessDetails.from_dict(row.butiran_operasi),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_document(row: PermohonanDokumen) -> ApplicationDocument:
    return ApplicationDocument(
        id=row.id,
        application_id=row.permohonan_id,
        requirement_id=row.keperluan_dokumen_id,
        filename=row.nama_fail,
        mime_type=row.mime,
        size_bytes=row.saiz_bait,
        storage_locator=row.url_storan,
        uploaded_by=row.uploaded_by,
        verification_status=VerificationStatus(row.status_sah),
        content_hash=row.hash_fail,
        created_at=row.created_at,
    )


class SqlAlchemyApplicationRepository(ApplicationRepository):
    """Repository for permohonan and permohonan_dokumen rows.

    Works inside the caller's session and never commits; the service layer
    owns the transaction boundary. Writes are flushed immediately so that
    constraint violations surface as IntegrityViolation at the call site.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, application: Application) -> Application:
        row = Permohonan(
            id=application.id,
            user_id=application.user_id,
            company_id=application.company_id,
            jenis_lesen_id=application.license_type_id,
            status=application.status.value,
            tarikh_serahan=application.submitted_at,
            butiran_operasi=application.business_details.to_dict(),
        )
        self.db.add(row)
        self._flush("permohonan")
        return to_application(row)

    def update(self, application_id: UUID, patch: Dict[str, Any]) -> Application:
        values: Dict[str, Any] = {}
        for field_name, value in patch.items():
            column = _UPDATABLE_COLUMNS.get(field_name)
            if column is None:
                raise ValueError(f"Field '{field_name}' cannot be updated")
            if isinstance(value, BusinessDetails):
                value = value.to_dict()
            values[column] = value

        if not values:
            return self.find_by_id(application_id)

        values["updated_at"] = utcnow()
        self._conditional_update(application_id, ApplicationStatus.DRAFT, values)
        return self.find_by_id(application_id)

    def find_by_id(self, application_id: UUID, for_update: bool = False) -> Application:
        return to_application(self._get_row(application_id, for_update))

    def list_for_user(
        self,
        user_id: UUID,
        filters: ApplicationFilters,
        page: PageRequest,
    ) -> Page:
        conditions = [Permohonan.user_id == user_id]
        if filters.status is not None:
            conditions.append(Permohonan.status == filters.status.value)
        if filters.license_type_id is not None:
            conditions.append(Permohonan.jenis_lesen_id == filters.license_type_id)

        total = self.db.execute(
            select(func.count()).select_from(Permohonan).where(and_(*conditions))
        ).scalar_one()

        rows = self.db.execute(
            select(Permohonan)
            .where(and_(*conditions))
            .order_by(Permohonan.created_at.desc(), Permohonan.id)
            .offset(page.offset)
            .limit(page.per_page)
        ).scalars().all()

        return Page(
            items=[to_application(row) for row in rows],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )

    def transition(
        self,
        application_id: UUID,
        expected: ApplicationStatus,
        new_status: ApplicationStatus,
        submitted_at: Optional[datetime] = None,
    ) -> Application:
        validate_transition(expected, new_status)
        values = {"status": new_status.value, "updated_at": utcnow()}
        if submitted_at is not None:
            values["tarikh_serahan"] = submitted_at
        self._conditional_update(application_id, expected, values)
        return self.find_by_id(application_id)

    def list_documents(self, application_id: UUID) -> List[ApplicationDocument]:
        rows = self.db.execute(
            select(PermohonanDokumen)
            .where(PermohonanDokumen.permohonan_id == application_id)
            .order_by(PermohonanDokumen.keperluan_dokumen_id)
        ).scalars().all()
        return [to_document(row) for row in rows]

    def find_document(self, document_id: UUID) -> ApplicationDocument:
        row = self.db.get(PermohonanDokumen, document_id)
        if row is None:
            raise DocumentNotFound(document_id)
        return to_document(row)

    def find_document_for_requirement(
        self,
        application_id: UUID,
        requirement_id: int,
    ) -> Optional[ApplicationDocument]:
        row = self.db.execute(
            select(PermohonanDokumen).where(
                and_(
                    PermohonanDokumen.permohonan_id == application_id,
                    PermohonanDokumen.keperluan_dokumen_id == requirement_id,
                )
            )
        ).scalar_one_or_none()
        return to_document(row) if row is not None else None

    def add_document(self, document: ApplicationDocument) -> ApplicationDocument:
        row = PermohonanDokumen(
            id=document.id,
            permohonan_id=document.application_id,
            keperluan_dokumen_id=document.requirement_id,
            nama_fail=document.filename,
            mime=document.mime_type,
            saiz_bait=document.size_bytes,
            url_storan=document.storage_locator,
            hash_fail=document.content_hash,
            status_sah=document.verification_status.value,
            uploaded_by=document.uploaded_by,
        )
        self.db.add(row)
        self._flush("permohonan_dokumen")
        return to_document(row)

    def delete_document(self, document_id: UUID) -> None:
        row = self.db.get(PermohonanDokumen, document_id)
        if row is None:
            raise DocumentNotFound(document_id)
        self.db.delete(row)
        self.db.flush()

    def mark_document_verified(self, document_id: UUID) -> ApplicationDocument:
        """Officer verification: set a document to Disahkan. Not exposed over HTTP.

        Raises:
            DocumentNotFound, DocumentAlreadyValidated
        """
        row = self.db.get(PermohonanDokumen, document_id)
        if row is None:
            raise DocumentNotFound(document_id)
        if not can_transition(VerificationStatus(row.status_sah), VerificationStatus.VERIFIED):
            raise DocumentAlreadyValidated()
        row.status_sah = VerificationStatus.VERIFIED.value
        self.db.flush()
        return to_document(row)

    def _get_row(self, application_id: UUID, for_update: bool = False) -> Permohonan:
        query = select(Permohonan).where(Permohonan.id == application_id)
        if for_update:
            query = query.with_for_update()
        # Always re-read from the database, never a stale identity-map copy
        query = query.execution_options(populate_existing=True)
        row = self.db.execute(query).scalar_one_or_none()
        if row is None:
            raise ApplicationNotFound(application_id)
        return row

    def _conditional_update(
        self,
        application_id: UUID,
        expected: ApplicationStatus,
        values: Dict[str, Any],
    ) -> None:
        """UPDATE ... WHERE id = :id AND status = :expected.

        A zero rowcount means another transaction moved the row first (or it
        never existed), so the losing write fails instead of overwriting.
        """
        result = self.db.execute(
            update(Permohonan)
            .where(
                and_(
                    Permohonan.id == application_id,
                    Permohonan.status == expected.value,
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Distinguish a missing row from a lost race
            self._get_row(application_id)
            logger.info(
                "Conditional update rejected",
                extra={"permohonan_id": str(application_id), "expected_status": expected.value},
            )
            raise NotDraft()
        self.db.flush()

    def _flush(self, table: str) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Integrity violation on {table}: {e.orig}")
            raise IntegrityViolation()


class SqlAlchemyCompanyDirectory(CompanyDirectory):
    def __init__(self, db: Session):
        self.db = db

    def is_owned_by(self, company_id: UUID, user_id: UUID) -> bool:
        owner_id = self.db.execute(
            select(Company.owner_user_id).where(Company.id == company_id)
        ).scalar_one_or_none()
        return owner_id is not None and owner_id == user_id


class UserIdentityVerifier(IdentityVerifier):
    """Reads the verification flag set by the external identity check."""

    def __init__(self, db: Session):
        self.db = db

    def is_verified(self, user_id: UUID) -> bool:
        verified = self.db.execute(
            select(User.identity_verified).where(User.id == user_id)
        ).scalar_one_or_none()
        return bool(verified)
