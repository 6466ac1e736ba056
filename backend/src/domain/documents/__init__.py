"""Documents domain module - upload validation, verification status, storage ports"""

from .document_status import VerificationStatus, can_transition, is_deletable, ALLOWED_TRANSITIONS
from .validation import (
    DEFAULT_ALLOWED_EXTENSIONS,
    build_storage_path,
    check_file_type,
    file_extension,
    sanitize_filename,
)

__all__ = [
    "VerificationStatus",
    "can_transition",
    "is_deletable",
    "ALLOWED_TRANSITIONS",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "build_storage_path",
    "check_file_type",
    "file_extension",
    "sanitize_filename",
]
