"""Unit tests for content checksums."""

import hashlib

import pytest

from filestore.checksum_validator import compute_checksum, content_size, verify_checksum

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestComputeChecksum:
    """Test checksum computation."""

    def test_empty_content(self):
        assert compute_checksum("") == EMPTY_SHA256

    def test_matches_sha256_of_utf8_bytes(self):
        content = "héllo wörld"
        assert compute_checksum(content) == hashlib.sha256(content.encode("utf-8")).hexdigest()

    def test_hex_digest_length(self):
        assert len(compute_checksum("Hello world")) == 64

    @pytest.mark.parametrize("content", ["", "Hello world", "a\nb\n", "ünïcode"])
    def test_deterministic(self, content):
        assert compute_checksum(content) == compute_checksum(content)

    @pytest.mark.parametrize("changed", ["Hello World", "Hello world ", "Hello worle", "hello world"])
    def test_single_change_alters_checksum(self, changed):
        assert compute_checksum("Hello world") != compute_checksum(changed)


class TestVerifyChecksum:
    """Test checksum verification."""

    def test_matching(self):
        assert verify_checksum("Hello world", compute_checksum("Hello world"))

    def test_case_insensitive(self):
        assert verify_checksum("Hello world", compute_checksum("Hello world").upper())

    def test_mismatch(self):
        assert not verify_checksum("Hello world", compute_checksum("Hello"))


class TestContentSize:
    """Test encoded size."""

    def test_ascii(self):
        assert content_size("Hello world") == 11

    def test_multibyte(self):
        assert content_size("héllo") == 6
