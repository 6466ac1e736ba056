"""Authorization predicates for application and document operations.

Each predicate takes the acting user and the entity and returns a
PolicyDecision. Callers invoke them explicitly at the top of an operation and
call ``enforce()`` to turn a denial into its typed error.
"""

from dataclasses import dataclass
from typing import Optional

from domain.documents.document_status import is_deletable

from .errors import (
    BusinessLogicError,
    DocumentAlreadyValidated,
    IdentityNotVerified,
    NotDraft,
    NotOwner,
    PermohonanNotDraft,
)
from .models import Actor, Application, ApplicationDocument


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[BusinessLogicError] = None

    def enforce(self) -> None:
        if not self.allowed:
            raise self.reason

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = PolicyDecision(True)


def deny(reason: BusinessLogicError) -> PolicyDecision:
    return PolicyDecision(False, reason)


def is_owner(actor: Actor, application: Application) -> bool:
    return application.user_id == actor.user_id


def can_view(actor: Actor, application: Application) -> PolicyDecision:
    if not is_owner(actor, application):
        return deny(NotOwner())
    return ALLOW


def can_update(actor: Actor, application: Application) -> PolicyDecision:
    if not is_owner(actor, application):
        return deny(NotOwner())
    if not application.is_draft:
        return deny(NotDraft())
    return ALLOW


def can_submit(actor: Actor, application: Application, identity_verified: bool) -> PolicyDecision:
    """Owner, then draft, then verified identity. First failure wins."""
    decision = can_update(actor, application)
    if not decision:
        return decision
    if not identity_verified:
        return deny(IdentityNotVerified())
    return ALLOW


def can_cancel(actor: Actor, application: Application) -> PolicyDecision:
    return can_update(actor, application)


def can_attach_document(actor: Actor, application: Application) -> PolicyDecision:
    if not is_owner(actor, application):
        return deny(NotOwner())
    if not application.is_draft:
        return deny(PermohonanNotDraft())
    return ALLOW


def can_delete_document(
    actor: Actor,
    application: Application,
    document: ApplicationDocument,
) -> PolicyDecision:
    decision = can_attach_document(actor, application)
    if not decision:
        return decision
    if not is_deletable(document.verification_status):
        return deny(DocumentAlreadyValidated())
    return ALLOW
