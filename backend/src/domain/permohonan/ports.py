"""Ports consumed by the application lifecycle.

ApplicationRepository owns persistence of applications and documents and the
storage-level invariants (foreign keys, one document per requirement,
conditional status transitions). The remaining ports are thin views onto
collaborators that live outside this module.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from .models import (
    Application,
    ApplicationDocument,
    ApplicationFilters,
    Page,
    PageRequest,
)
from .status import ApplicationStatus


class ApplicationRepository(ABC):

    @abstractmethod
    def create(self, application: Application) -> Application:
        """Insert a new application.

        Raises:
            IntegrityViolation: owning user or company does not exist
        """

    @abstractmethod
    def update(self, application_id: UUID, patch: Dict[str, Any]) -> Application:
        """Overwrite the supplied columns of a draft application.

        The write is conditional on the row still being a draft.

        Raises:
            ApplicationNotFound: no such application
            NotDraft: the row left draft status before the write landed
        """

    @abstractmethod
    def find_by_id(self, application_id: UUID, for_update: bool = False) -> Application:
        """Load one application.

        ``for_update`` takes a row lock for the rest of the transaction where
        the database supports it.

        Raises:
            ApplicationNotFound: no such application
        """

    @abstractmethod
    def list_for_user(
        self,
        user_id: UUID,
        filters: ApplicationFilters,
        page: PageRequest,
    ) -> Page:
        """Newest first page of the user's applications."""

    @abstractmethod
    def transition(
        self,
        application_id: UUID,
        expected: ApplicationStatus,
        new_status: ApplicationStatus,
        submitted_at: Optional[datetime] = None,
    ) -> Application:
        """Atomically move an application from ``expected`` to ``new_status``.

        Raises:
            NotDraft: the current status is no longer ``expected``
        """

    @abstractmethod
    def list_documents(self, application_id: UUID) -> List[ApplicationDocument]:
        pass

    @abstractmethod
    def find_document(self, document_id: UUID) -> ApplicationDocument:
        """Raises DocumentNotFound."""

    @abstractmethod
    def find_document_for_requirement(
        self,
        application_id: UUID,
        requirement_id: int,
    ) -> Optional[ApplicationDocument]:
        pass

    @abstractmethod
    def add_document(self, document: ApplicationDocument) -> ApplicationDocument:
        """Insert a document row.

        Raises:
            IntegrityViolation: a document for the same requirement exists
        """

    @abstractmethod
    def delete_document(self, document_id: UUID) -> None:
        pass


class CompanyDirectory(ABC):
    """Answers whether a company is currently owned by a user."""

    @abstractmethod
    def is_owned_by(self, company_id: UUID, user_id: UUID) -> bool:
        pass


class IdentityVerifier(ABC):
    """External identity verification, treated as an opaque yes/no."""

    @abstractmethod
    def is_verified(self, user_id: UUID) -> bool:
        pass
