"""File validation utilities for document uploads.

The allow-list is expressed as file extensions (pdf, jpg, jpeg, png); the
declared MIME type must agree with the extension so a renamed executable is
not accepted just because its name ends in ``.pdf``.
"""

import os
import re
from typing import Dict, Iterable, List, Optional, Tuple


# MIME types accepted for each allowed extension
EXTENSION_MIME_TYPES: Dict[str, Tuple[str, ...]] = {
    "pdf": ("application/pdf",),
    "jpg": ("image/jpeg", "image/pjpeg"),
    "jpeg": ("image/jpeg", "image/pjpeg"),
    "png": ("image/png",),
}

DEFAULT_ALLOWED_EXTENSIONS: Tuple[str, ...] = ("pdf", "jpg", "jpeg", "png")


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot ('' when there is none).

    Example:
        >>> file_extension('Sijil.PDF')
        'pdf'
    """
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def check_file_type(
    filename: str,
    mime_type: Optional[str],
    allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
) -> Tuple[bool, str]:
    """Check a file against the extension allow-list and its MIME type.

    Args:
        filename: Original filename as sent by the client
        mime_type: Declared content type (may be None)
        allowed_extensions: Extensions accepted, without dots

    Returns:
        Tuple of (is_valid, offending_value). offending_value is the
        extension, or the MIME type when the extension is fine but the
        declared type does not match it.
    """
    allowed: List[str] = [ext.lower().lstrip(".") for ext in allowed_extensions]
    extension = file_extension(filename)

    if extension not in allowed:
        return False, extension or "(none)"

    if mime_type:
        base_type = mime_type.split(";")[0].strip().lower()
        expected = EXTENSION_MIME_TYPES.get(extension)
        # octet-stream means the client did not know; the extension decides
        if base_type != "application/octet-stream" and expected is not None and base_type not in expected:
            return False, base_type

    return True, extension


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('../../sijil.pdf')
        'sijil.pdf'
        >>> sanitize_filename('pelan kedai (1).pdf')
        'pelan_kedai_1_.pdf'
    """
    # Remove path components (both separators, whatever the client OS)
    filename = filename.replace("\\", "/").split("/")[-1]

    filename = re.sub(r"[^\w\s.-]", "_", filename)
    filename = re.sub(r"[\s_]+", "_", filename)
    filename = filename.lstrip(".")

    if len(filename) > 200:
        name, ext = os.path.splitext(filename)
        filename = name[:200 - len(ext)] + ext

    return filename or "dokumen"


def build_storage_path(application_id, document_id, filename: str) -> str:
    """Blob path of an uploaded document.

    Example:
        >>> build_storage_path('a1', 'b2', 'ssm.pdf')
        'permohonan/a1/dokumen/b2_ssm.pdf'
    """
    return f"permohonan/{application_id}/dokumen/{document_id}_{sanitize_filename(filename)}"
