"""Provides SHA-256 checksum calculation and verification helpers for file content."""

import hashlib

from common.constants import DEFAULT_ENCODING


def encode_content(content: str) -> bytes:
    """
    Encode text content the way it is measured and hashed.

    Args:
        content: File text

    Returns:
        UTF-8 bytes of the content
    """
    return content.encode(DEFAULT_ENCODING)


def content_size(content: str) -> int:
    """
    Byte length of content in its encoded form.
    """
    return len(encode_content(content))


def compute_checksum(content: str) -> str:
    """
    Compute SHA-256 checksum for given file content.

    Args:
        content: File text to compute checksum for

    Returns:
        Hexadecimal string representation of SHA-256 hash
    """
    return hashlib.sha256(encode_content(content)).hexdigest()


def verify_checksum(content: str, expected: str) -> bool:
    """
    Verify that content matches expected checksum.

    Args:
        content: File text to verify
        expected: Expected SHA-256 checksum (hex string, any case)

    Returns:
        True if checksum matches, False otherwise
    """
    return compute_checksum(content) == expected.lower()
