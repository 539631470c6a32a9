"""File validation utilities for content security.

Validates file signatures (magic numbers) so a renamed executable can't be
relayed to HR as a "resume".
"""

from __future__ import annotations

import logging
from pathlib import PurePath

logger = logging.getLogger(__name__)

# Magic number signatures for accepted resume formats
SIGNATURES: dict[str, list[bytes]] = {
    ".pdf": [b"%PDF-"],
    ".doc": [b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"],  # OLE2 compound document
    ".docx": [b"PK\x03\x04"],  # DOCX is ZIP-based
}

# Bytes needed to check the longest signature above
SIGNATURE_PROBE_BYTES = max(len(sig) for sigs in SIGNATURES.values() for sig in sigs)


def get_extension(filename: str | None) -> str:
    """Return the lower-cased extension of ``filename`` including the dot.

    Examples:
        >>> get_extension("Resume.PDF")
        '.pdf'
        >>> get_extension("notes")
        ''
    """
    if not filename:
        return ""
    return PurePath(filename).suffix.lower()


def is_allowed_extension(filename: str | None, allowed: set[str]) -> bool:
    return get_extension(filename) in allowed


def validate_file_signature(data: bytes, extension: str) -> bool:
    """Validate file magic numbers against the declared extension.

    Extensions without a known signature are accepted as-is.

    Args:
        data: Leading bytes of the file.
        extension: Lower-cased extension including the dot.

    Returns:
        True if the signature matches (or none is known), False otherwise.
    """
    signatures = SIGNATURES.get(extension)
    if not signatures:
        return True

    for sig in signatures:
        if data.startswith(sig):
            return True

    logger.warning(
        "file_signature.invalid",
        extra={
            "expected_extension": extension,
            "actual_prefix": data[:8] if data else "EMPTY",
        },
    )
    return False
