"""Application lifecycle - business logic for permohonan operations.

State flow: Draf → Diserahkan | Dibatalkan (both terminal).

Every mutating operation re-reads the application under a row lock inside one
transaction, checks its preconditions in a fixed order, and then writes with
an UPDATE conditional on the expected status. A concurrent transition that
lands first makes the conditional write fail with NotDraft instead of being
overwritten. Side effects are dispatched only after the commit.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from audit.service import AuditSink
from database import transaction
from domain.catalog.ports import CatalogPort
from domain.permohonan.errors import (
    CompanyNotOwned,
    Incomplete,
    InvalidBusinessDetails,
    InvalidLicenseType,
)
from domain.permohonan.events import SubmissionEvent
from domain.permohonan.models import (
    Actor,
    Application,
    ApplicationDetail,
    ApplicationFilters,
    BusinessDetails,
    Page,
    PageRequest,
    RequirementStatus,
)
from domain.permohonan.policy import can_cancel, can_submit, can_update, can_view
from domain.permohonan.ports import ApplicationRepository, CompanyDirectory, IdentityVerifier
from domain.permohonan.status import ApplicationStatus
from models.base import utcnow
from observability.metrics import permohonan_transitions_total
from side_effects.dispatcher import SideEffectDispatcher

logger = logging.getLogger(__name__)


class ApplicationLifecycle:
    """Creates, updates, submits and cancels license applications."""

    def __init__(
        self,
        db: Session,
        repository: ApplicationRepository,
        catalog: CatalogPort,
        companies: CompanyDirectory,
        identity: IdentityVerifier,
        audit_sink: AuditSink,
        dispatcher: SideEffectDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repository = repository
        self.catalog = catalog
        self.companies = companies
        self.identity = identity
        self.audit_sink = audit_sink
        self.dispatcher = dispatcher
        self.clock = clock

    def create_draft(
        self,
        actor: Actor,
        company_id: UUID,
        license_type_id: int,
        business_details: BusinessDetails,
    ) -> Application:
        """Create a new application in Draf status.

        Raises:
            InvalidBusinessDetails: required business fields missing
            CompanyNotOwned: company does not belong to the actor
            InvalidLicenseType: license type not in the catalog
        """
        errors = business_details.validation_errors()
        if errors:
            raise InvalidBusinessDetails(errors)

        with transaction(self.db):
            if not self.companies.is_owned_by(company_id, actor.user_id):
                raise CompanyNotOwned()
            if not self.catalog.license_type_exists(license_type_id):
                raise InvalidLicenseType(license_type_id)

            application = self.repository.create(
                Application(
                    id=uuid4(),
                    user_id=actor.user_id,
                    company_id=company_id,
                    license_type_id=license_type_id,
                    status=ApplicationStatus.DRAFT,
                    submitted_at=None,
                    business_details=business_details,
                )
            )
            self.audit_sink.record(
                "permohonan_created",
                "permohonan",
                application.id,
                actor_id=actor.user_id,
                metadata={"jenis_lesen_id": license_type_id, "company_id": str(company_id)},
            )

        logger.info(
            "Permohonan created",
            extra={"permohonan_id": application.id, "user_id": actor.user_id},
        )
        return application

    def update_draft(self, application_id: UUID, actor: Actor, patch: Dict[str, Any]) -> Application:
        """Partially update a draft.

        ``patch`` may contain ``company_id``, ``license_type_id`` and
        ``business_details`` (a dict with stored keys, merged at the leaves
        supplied). Omitted fields are left alone.

        Raises:
            NotOwner, NotDraft, CompanyNotOwned, InvalidLicenseType,
            InvalidBusinessDetails
        """
        with transaction(self.db):
            application = self.repository.find_by_id(application_id, for_update=True)
            can_update(actor, application).enforce()

            changes: Dict[str, Any] = {}
            if patch.get("company_id") is not None:
                if not self.companies.is_owned_by(patch["company_id"], actor.user_id):
                    raise CompanyNotOwned()
                changes["company_id"] = patch["company_id"]

            if patch.get("license_type_id") is not None:
                if not self.catalog.license_type_exists(patch["license_type_id"]):
                    raise InvalidLicenseType(patch["license_type_id"])
                changes["license_type_id"] = patch["license_type_id"]

            if patch.get("business_details"):
                details = application.business_details.merged(patch["business_details"])
                errors = details.validation_errors()
                if errors:
                    raise InvalidBusinessDetails(errors)
                changes["business_details"] = details

            updated = self.repository.update(application_id, changes)
            if changes:
                self.audit_sink.record(
                    "permohonan_updated",
                    "permohonan",
                    application_id,
                    actor_id=actor.user_id,
                    metadata={"fields": sorted(changes)},
                )

        logger.info(
            "Permohonan updated",
            extra={"permohonan_id": application_id, "user_id": actor.user_id},
        )
        return updated

    def evaluate_completeness(self, application: Application) -> List[RequirementStatus]:
        """Checklist of the license type's document requirements.

        Only mandatory requirements block submission; optional ones are
        reported for information.
        """
        requirements = self.catalog.get_document_requirements(application.license_type_id)
        uploaded = {
            document.requirement_id: document.id
            for document in self.repository.list_documents(application.id)
        }
        return [
            RequirementStatus(
                requirement_id=requirement.id,
                name=requirement.name,
                mandatory=requirement.mandatory,
                satisfied=requirement.id in uploaded,
                document_id=uploaded.get(requirement.id),
            )
            for requirement in requirements
        ]

    def get_completeness(self, application_id: UUID, actor: Actor) -> List[RequirementStatus]:
        application = self.repository.find_by_id(application_id)
        can_view(actor, application).enforce()
        return self.evaluate_completeness(application)

    def submit(self, application_id: UUID, actor: Actor) -> Application:
        """Move a draft to Diserahkan.

        Preconditions, first failure wins: owner, draft, identity verified,
        mandatory documents present. The company must still belong to the
        actor and the license type must still resolve in the catalog.

        The transition is durable once committed; dispatch problems are
        contained by the dispatcher.

        Raises:
            NotOwner, NotDraft, IdentityNotVerified, Incomplete,
            CompanyNotOwned, InvalidLicenseType, ExternalServiceUnavailable
        """
        with transaction(self.db):
            application = self.repository.find_by_id(application_id, for_update=True)
            can_submit(
                actor,
                application,
                identity_verified=self.identity.is_verified(actor.user_id),
            ).enforce()

            missing = [status.name for status in self.evaluate_completeness(application) if status.blocking]
            if missing:
                raise Incomplete(missing)

            if not self.companies.is_owned_by(application.company_id, actor.user_id):
                raise CompanyNotOwned()
            if not self.catalog.license_type_exists(application.license_type_id):
                raise InvalidLicenseType(application.license_type_id)

            submitted = self.repository.transition(
                application_id,
                expected=ApplicationStatus.DRAFT,
                new_status=ApplicationStatus.SUBMITTED,
                submitted_at=self.clock(),
            )

        permohonan_transitions_total.labels(status=ApplicationStatus.SUBMITTED.value).inc()
        logger.info(
            "Permohonan submitted",
            extra={"permohonan_id": application_id, "user_id": actor.user_id},
        )

        self.dispatcher.dispatch_submission(SubmissionEvent.from_application(submitted))
        return submitted

    def cancel(self, application_id: UUID, actor: Actor, reason: Optional[str] = None) -> Application:
        """Move a draft to Dibatalkan.

        The reason goes to the audit entry, written in the same transaction;
        if the audit write fails the cancellation is rolled back.

        Raises:
            NotOwner, NotDraft
        """
        with transaction(self.db):
            application = self.repository.find_by_id(application_id, for_update=True)
            can_cancel(actor, application).enforce()

            cancelled = self.repository.transition(
                application_id,
                expected=ApplicationStatus.DRAFT,
                new_status=ApplicationStatus.CANCELLED,
            )
            self.audit_sink.record(
                "permohonan_cancelled",
                "permohonan",
                application_id,
                actor_id=actor.user_id,
                metadata={"reason": reason, "previous_status": application.status.value},
            )

        permohonan_transitions_total.labels(status=ApplicationStatus.CANCELLED.value).inc()
        logger.info(
            "Permohonan cancelled",
            extra={"permohonan_id": application_id, "user_id": actor.user_id},
        )
        return cancelled

    def get_application(self, application_id: UUID, actor: Actor) -> ApplicationDetail:
        """Owner-only read with license type and documents attached.

        Raises:
            ApplicationNotFound, NotOwner, ExternalServiceUnavailable
        """
        application = self.repository.find_by_id(application_id)
        can_view(actor, application).enforce()
        return ApplicationDetail(
            application=application,
            license_type=self.catalog.get_license_type(application.license_type_id),
            documents=self.repository.list_documents(application_id),
        )

    def list_for_user(
        self,
        actor: Actor,
        filters: Optional[ApplicationFilters] = None,
        page: Optional[PageRequest] = None,
    ) -> Page:
        """The actor's applications, newest first, as ApplicationDetail items.

        License types are fetched once for the whole page.
        """
        result = self.repository.list_for_user(
            actor.user_id,
            filters or ApplicationFilters(),
            page or PageRequest(),
        )
        license_types = {license_type.id: license_type for license_type in self.catalog.get_license_types()}
        return Page(
            items=[
                ApplicationDetail(application=item, license_type=license_types.get(item.license_type_id))
                for item in result.items
            ],
            total=result.total,
            page=result.page,
            per_page=result.per_page,
        )
