"""SQLAlchemy models for the licensing application backend"""

from .base import Base
from .user import User
from .company import Company
from .audit_log import AuditLog
from .permohonan import Permohonan, PermohonanDokumen

__all__ = [
    "Base",
    "User",
    "Company",
    "AuditLog",
    "Permohonan",
    "PermohonanDokumen",
]
