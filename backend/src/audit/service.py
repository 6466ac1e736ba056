"""Audit logging for application and document events.

Entries are append-only. Two sinks share one writer:

- SessionAuditSink writes inside the caller's transaction. Lifecycle
  operations that audit synchronously (create, update, cancel, document
  delete) use it, so a failed audit write rolls the operation back and the
  failure is visible to the caller.
- DatabaseAuditSink opens its own short transaction. Side-effect workers use
  it, so a delivery result is recorded whatever happened to the request that
  triggered it.

Audit actions:
- permohonan_created, permohonan_updated, permohonan_cancelled
- permohonan_submitted, dokumen_uploaded, dokumen_deleted
- queue_av_scan, av_scan_completed, av_scan_threat_detected
- send_submission_notification, forward_to_review_queue
- <action>_failed after side-effect retries are exhausted
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create an audit log entry.

    All parameters are stored as-is. This function does not validate action
    names or entity types.

    Args:
        db: Database session
        action: Event action (e.g., "permohonan_cancelled")
        actor_id: User who performed the action (None for system events)
        entity_type: Type of entity affected ("permohonan", "dokumen")
        entity_id: ID of affected entity
        metadata: Additional context as JSON (e.g., {"reason": "..."})

    Returns:
        AuditLog: The created audit log entry
    """
    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


class AuditSink(ABC):

    @abstractmethod
    def record(
        self,
        action: str,
        entity_type: Optional[str],
        entity_id: Optional[UUID],
        actor_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Append one entry. Returns None when auditing is disabled."""

    @abstractmethod
    def has_entry(self, action: str, entity_id: Optional[UUID]) -> bool:
        """True if an entry for (action, entity) was already written."""


class SessionAuditSink(AuditSink):
    """Writes into the caller's session; the caller commits."""

    def __init__(self, db: Session, enabled: bool = True):
        self.db = db
        self.enabled = enabled

    def record(self, action, entity_type, entity_id, actor_id=None, metadata=None):
        if not self.enabled:
            return None
        return log_audit_event(
            db=self.db,
            action=action,
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )

    def has_entry(self, action, entity_id):
        return _has_entry(self.db, action, entity_id)


class DatabaseAuditSink(AuditSink):
    """Commits each entry in its own session."""

    def __init__(self, session_factory: Callable[[], Session], enabled: bool = True):
        self.session_factory = session_factory
        self.enabled = enabled

    def record(self, action, entity_type, entity_id, actor_id=None, metadata=None):
        if not self.enabled:
            return None
        db = self.session_factory()
        try:
            entry = log_audit_event(
                db=db,
                action=action,
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata=metadata,
            )
            db.commit()
            db.refresh(entry)
            return entry
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def has_entry(self, action, entity_id):
        db = self.session_factory()
        try:
            return _has_entry(db, action, entity_id)
        finally:
            db.close()


def _has_entry(db: Session, action: str, entity_id: Optional[UUID]) -> bool:
    return db.execute(
        select(AuditLog.id)
        .where(AuditLog.action == action, AuditLog.entity_id == entity_id)
        .limit(1)
    ).first() is not None
