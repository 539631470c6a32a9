"""Tests for resume signature and extension helpers."""

import pytest

from app.utils.file_validators import (
    SIGNATURE_PROBE_BYTES,
    get_extension,
    is_allowed_extension,
    validate_file_signature,
)

ALLOWED = {".pdf", ".doc", ".docx"}


class TestExtensions:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("resume.pdf", ".pdf"),
            ("Resume.PDF", ".pdf"),
            ("cv.final.docx", ".docx"),
            ("noext", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_get_extension(self, filename, expected) -> None:
        assert get_extension(filename) == expected

    @pytest.mark.parametrize("filename", ["a.pdf", "b.DOC", "c.docx"])
    def test_allowed(self, filename: str) -> None:
        assert is_allowed_extension(filename, ALLOWED) is True

    @pytest.mark.parametrize("filename", ["a.exe", "b.txt", "c.pdf.exe", "noext"])
    def test_rejected(self, filename: str) -> None:
        assert is_allowed_extension(filename, ALLOWED) is False


class TestSignatures:
    def test_valid_pdf(self) -> None:
        assert validate_file_signature(b"%PDF-1.7\n...", ".pdf") is True

    def test_valid_docx(self) -> None:
        assert validate_file_signature(b"PK\x03\x04rest", ".docx") is True

    def test_valid_doc(self) -> None:
        assert validate_file_signature(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1\x00", ".doc") is True

    def test_executable_renamed_as_pdf(self) -> None:
        assert validate_file_signature(b"MZ\x90\x00\x03", ".pdf") is False

    def test_pdf_renamed_as_docx(self) -> None:
        assert validate_file_signature(b"%PDF-1.4", ".docx") is False

    def test_empty_data(self) -> None:
        assert validate_file_signature(b"", ".pdf") is False

    def test_unknown_extension_is_not_checked(self) -> None:
        assert validate_file_signature(b"anything", ".rtf") is True

    def test_probe_covers_longest_signature(self) -> None:
        assert SIGNATURE_PROBE_BYTES == 8
