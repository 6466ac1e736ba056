"""Unit tests for upload file validation utilities"""

import pytest

from domain.documents.validation import (
    DEFAULT_ALLOWED_EXTENSIONS,
    build_storage_path,
    check_file_type,
    file_extension,
    sanitize_filename,
)


class TestFileType:
    """Extension allow-list plus MIME agreement"""

    @pytest.mark.parametrize("filename,mime", [
        ("sijil.pdf", "application/pdf"),
        ("premis.JPG", "image/jpeg"),
        ("premis.jpeg", "image/jpeg"),
        ("pelan.png", "image/png"),
    ])
    def test_allowed_types(self, filename, mime):
        assert check_file_type(filename, mime) == (True, file_extension(filename))

    def test_extension_not_allowed(self):
        assert check_file_type("setup.exe", "application/x-msdownload") == (False, "exe")

    def test_missing_extension(self):
        assert check_file_type("README", "application/pdf") == (False, "(none)")

    def test_mime_must_match_extension(self):
        assert check_file_type("sijil.pdf", "image/png") == (False, "image/png")

    def test_mime_parameters_ignored(self):
        assert check_file_type("sijil.pdf", "application/pdf; charset=binary")[0] is True

    def test_octet_stream_defers_to_extension(self):
        assert check_file_type("sijil.pdf", "application/octet-stream")[0] is True

    def test_missing_mime_defers_to_extension(self):
        assert check_file_type("sijil.pdf", None)[0] is True

    def test_custom_allow_list(self):
        assert check_file_type("sijil.pdf", "application/pdf", ["png"]) == (False, "pdf")
        assert check_file_type("pelan.png", "image/png", [".PNG"])[0] is True

    def test_default_allow_list(self):
        assert set(DEFAULT_ALLOWED_EXTENSIONS) == {"pdf", "jpg", "jpeg", "png"}


class TestFilenameSanitization:

    def test_strips_path_components(self):
        assert sanitize_filename("../../etc/passwd.pdf") == "passwd.pdf"
        assert sanitize_filename("C:\\Users\\aminah\\ssm.pdf") == "ssm.pdf"

    def test_replaces_unsafe_characters(self):
        assert sanitize_filename("pelan kedai (1).pdf") == "pelan_kedai_1_.pdf"

    def test_hidden_file_prefix_removed(self):
        assert sanitize_filename(".htaccess") == "htaccess"

    def test_truncates_long_names_keeping_extension(self):
        result = sanitize_filename("a" * 300 + ".pdf")
        assert len(result) == 200
        assert result.endswith(".pdf")

    def test_empty_name_gets_default(self):
        assert sanitize_filename("...") == "dokumen"


class TestStoragePath:

    def test_layout(self):
        assert build_storage_path("a1", "b2", "Sijil SSM.pdf") == "permohonan/a1/dokumen/b2_Sijil_SSM.pdf"
