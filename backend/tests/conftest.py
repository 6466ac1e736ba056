"""Pytest fixtures for the licensing application backend.

Provides:
- SQLite in-memory database (foreign keys on) with a fresh schema per test
- Applicants with and without verified identity, and their companies
- In-memory fakes for the document store, task queue and audit sink
- Wired ApplicationLifecycle / DocumentAttachmentManager instances
- A TestClient with dependencies overridden and a bearer-token helper

Usage:
    def test_submit(lifecycle, make_draft, upload_required, applicant_actor):
        draft = make_draft()
        upload_required(draft)
        assert lifecycle.submit(draft.id, applicant_actor).status == ApplicationStatus.SUBMITTED
"""

import hashlib
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

# Set environment variables BEFORE any application imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ["AV_SCAN_ENABLED"] = "false"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["FILESYSTEM_DISK"] = "local"

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import database  # noqa: F401  registers the SQLite foreign-key pragma listener
from audit.service import AuditSink, SessionAuditSink
from auth.jwt import create_access_token
from domain.documents.ports.document_store_port import DocumentStore, StorageError, StoredFile
from domain.documents.validation import DEFAULT_ALLOWED_EXTENSIONS
from domain.permohonan.models import Actor, BusinessDetails, PremiseAddress
from dokumen.service import DocumentAttachmentManager
from infrastructure.catalog.static_catalog import StaticCatalog
from infrastructure.repositories.permohonan_repository import (
    SqlAlchemyApplicationRepository,
    SqlAlchemyCompanyDirectory,
    UserIdentityVerifier,
)
from models.audit_log import AuditLog
from models.base import Base
from models.company import Company
from models.user import User
from permohonan.service import ApplicationLifecycle
from side_effects.dispatcher import SideEffectDispatcher
from side_effects.ports import TaskQueuePort

SUBMITTED_AT = datetime(2026, 9, 1, 8, 30, tzinfo=timezone.utc)
PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\nsijil\n"


# ============================================================================
# Fakes
# ============================================================================

class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store; flip fail_puts / fail_deletes to simulate outages."""

    def __init__(self):
        self.blobs = {}
        self.fail_puts = False
        self.fail_deletes = False

    def put(self, path, content, mime_type="application/octet-stream"):
        if self.fail_puts:
            raise StorageError("storage unreachable")
        self.blobs[path] = content
        return StoredFile(
            storage_key=path,
            sha256=hashlib.sha256(content).hexdigest(),
            size_bytes=len(content),
        )

    def delete(self, storage_key):
        if self.fail_deletes:
            raise StorageError("storage unreachable")
        return self.blobs.pop(storage_key, None) is not None

    def exists(self, storage_key):
        return storage_key in self.blobs

    def read(self, storage_key):
        if storage_key not in self.blobs:
            raise FileNotFoundError(storage_key)
        return self.blobs[storage_key]


class RecordingTaskQueue(TaskQueuePort):
    """Keeps enqueued units of work; consumers listed in fail_for raise."""

    def __init__(self):
        self.enqueued = []
        self.fail_for = set()

    def enqueue(self, consumer, payload, queue=None):
        if consumer in self.fail_for:
            raise ConnectionError("broker unreachable")
        self.enqueued.append((consumer, payload, queue))

    @property
    def consumers(self):
        return [consumer for consumer, _, _ in self.enqueued]

    def payload_for(self, consumer):
        return next(payload for name, payload, _ in self.enqueued if name == consumer)


class RecordingAuditSink(AuditSink):
    """Audit sink keeping entries in memory; actions in fail_actions raise."""

    def __init__(self):
        self.entries = []
        self.fail_actions = set()

    def record(self, action, entity_type, entity_id, actor_id=None, metadata=None):
        if action in self.fail_actions:
            raise RuntimeError(f"audit write failed for {action}")
        entry = {
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "actor_id": actor_id,
            "metadata": metadata or {},
        }
        self.entries.append(entry)
        return entry

    def has_entry(self, action, entity_id):
        return any(e["action"] == action and e["entity_id"] == entity_id for e in self.entries)

    def actions(self):
        return [e["action"] for e in self.entries]


# ============================================================================
# Database
# ============================================================================

@pytest.fixture(scope="function")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Fresh session on a fresh schema for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _create_user(db: Session, email: str, verified: bool) -> User:
    user = User(name=email.split("@")[0].title(), email=email, identity_verified=verified)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _create_company(db: Session, owner: User, ssm_number: str) -> Company:
    company = Company(owner_user_id=owner.id, ssm_number=ssm_number, name=f"Syarikat {ssm_number}")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def applicant(db_session) -> User:
    return _create_user(db_session, "aminah@example.com", verified=True)


@pytest.fixture
def unverified_applicant(db_session) -> User:
    return _create_user(db_session, "belum@example.com", verified=False)


@pytest.fixture
def other_user(db_session) -> User:
    return _create_user(db_session, "lain@example.com", verified=True)


@pytest.fixture
def applicant_actor(applicant) -> Actor:
    return Actor(user_id=applicant.id)


@pytest.fixture
def other_actor(other_user) -> Actor:
    return Actor(user_id=other_user.id)


@pytest.fixture
def company(db_session, applicant) -> Company:
    return _create_company(db_session, applicant, "202401000001")


@pytest.fixture
def other_company(db_session, other_user) -> Company:
    return _create_company(db_session, other_user, "202401000002")


@pytest.fixture
def audit_entries(db_session):
    """Committed audit_logs rows, oldest first."""
    def _entries(action=None):
        query = select(AuditLog).order_by(AuditLog.created_at)
        if action is not None:
            query = query.where(AuditLog.action == action)
        return db_session.execute(query).scalars().all()
    return _entries


# ============================================================================
# Collaborators
# ============================================================================

@pytest.fixture
def catalog() -> StaticCatalog:
    return StaticCatalog()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def task_queue() -> RecordingTaskQueue:
    return RecordingTaskQueue()


@pytest.fixture
def dispatcher(task_queue) -> SideEffectDispatcher:
    return SideEffectDispatcher(task_queue, queue="side-effects")


@pytest.fixture
def repository(db_session) -> SqlAlchemyApplicationRepository:
    return SqlAlchemyApplicationRepository(db_session)


@pytest.fixture
def lifecycle(db_session, repository, catalog, dispatcher) -> ApplicationLifecycle:
    return ApplicationLifecycle(
        db=db_session,
        repository=repository,
        catalog=catalog,
        companies=SqlAlchemyCompanyDirectory(db_session),
        identity=UserIdentityVerifier(db_session),
        audit_sink=SessionAuditSink(db_session),
        dispatcher=dispatcher,
        clock=lambda: SUBMITTED_AT,
    )


@pytest.fixture
def manager(db_session, repository, document_store, dispatcher) -> DocumentAttachmentManager:
    return DocumentAttachmentManager(
        db=db_session,
        repository=repository,
        store=document_store,
        audit_sink=SessionAuditSink(db_session),
        dispatcher=dispatcher,
        max_upload_size=10 * 1024 * 1024,
        allowed_extensions=DEFAULT_ALLOWED_EXTENSIONS,
        hash_enabled=True,
    )


@pytest.fixture
def business_details() -> BusinessDetails:
    return BusinessDetails(
        premise_address=PremiseAddress(
            line_1="No. 12, Jalan Bunga Raya",
            city="Shah Alam",
            postcode="40000",
            state="Selangor",
        ),
        business_name="Kedai Makan Aminah",
        operation_type="Restoran",
        employee_count=4,
    )


@pytest.fixture
def make_draft(lifecycle, applicant_actor, company, business_details):
    """Factory creating a draft owned by the applicant (license type 1 by default)."""
    def _make(actor=None, company_id=None, license_type_id=1, details=None):
        return lifecycle.create_draft(
            actor or applicant_actor,
            company_id=company_id or company.id,
            license_type_id=license_type_id,
            business_details=details or business_details,
        )
    return _make


@pytest.fixture
def upload_required(manager, catalog, applicant_actor):
    """Factory uploading one PDF per mandatory requirement of the draft."""
    def _upload(application, actor=None):
        documents = []
        for requirement in catalog.get_document_requirements(application.license_type_id):
            if requirement.mandatory:
                documents.append(
                    manager.upload(
                        application.id,
                        requirement.id,
                        f"keperluan-{requirement.id}.pdf",
                        "application/pdf",
                        PDF_BYTES,
                        actor or applicant_actor,
                    )
                )
        return documents
    return _upload


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def client(db_session, catalog, document_store, task_queue) -> Generator[TestClient, None, None]:
    """TestClient with the database, catalog, store and queue replaced by test doubles."""
    from database import get_db
    from dependencies import get_catalog, get_document_store, get_task_queue
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_document_store] = lambda: document_store
    app.dependency_overrides[get_task_queue] = lambda: task_queue

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user."""
    def _headers(user: User):
        return {"Authorization": f"Bearer {create_access_token(user.id, email=user.email)}"}
    return _headers


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def submitted_at() -> datetime:
    return SUBMITTED_AT


@pytest.fixture
def recording_audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()
