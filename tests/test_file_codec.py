"""Tests for reference file compression and size limits."""

import base64
import os
import zlib

import pytest

from analyst_pro.core.errors import FileDecodeError, FileTooLargeError
from analyst_pro.core.file_codec import FileUpload, decode, encode, ingest_files
from analyst_pro.core.schemas_documents import ReferenceFile

LIMIT = 716800


class TestEncode:
    """Tests for encode()."""

    def test_round_trip_restores_original_bytes(self):
        raw = b"Checkout redesign requirements\n" * 200
        ref = encode(raw, "text/plain", "notes.txt", limit=LIMIT)

        assert ref.is_compressed is True
        assert ref.original_size == len(raw)
        assert ref.encoded_size == len(base64.b64decode(ref.payload))
        assert ref.encoded_size < len(raw)
        assert decode(ref) == raw

    def test_missing_mime_type_defaults_to_octet_stream(self):
        ref = encode(b"abc", None, "blob", limit=LIMIT)
        assert ref.mime_type == "application/octet-stream"

    def test_incompressible_file_over_limit_is_rejected(self):
        raw = os.urandom(2 * 1024 * 1024)

        with pytest.raises(FileTooLargeError) as exc_info:
            encode(raw, "application/octet-stream", "random.bin", limit=LIMIT)

        assert exc_info.value.name == "random.bin"
        assert exc_info.value.compressed_size > LIMIT
        assert "random.bin" in str(exc_info.value)

    def test_large_compressible_file_is_accepted(self):
        """The ceiling applies to compressed bytes, not the original size."""
        raw = b"a" * (5 * 1024 * 1024)
        ref = encode(raw, "text/plain", "repetitive.txt", limit=LIMIT)

        assert ref.original_size == len(raw)
        assert ref.encoded_size <= LIMIT

    def test_limit_defaults_to_settings(self, monkeypatch):
        monkeypatch.setenv("MAX_COMPRESSED_FILE_BYTES", "64")
        from analyst_pro.core.config import get_settings

        get_settings.cache_clear()
        with pytest.raises(FileTooLargeError):
            encode(os.urandom(1024), None, "small.bin")


class TestDecode:
    """Tests for decode()."""

    def test_corrupt_base64_raises(self):
        ref = ReferenceFile(name="bad.txt", original_size=3, payload="***not base64***")
        with pytest.raises(FileDecodeError):
            decode(ref)

    def test_non_zlib_payload_raises(self):
        payload = base64.b64encode(b"plain bytes").decode("ascii")
        ref = ReferenceFile(name="bad.txt", original_size=11, payload=payload, is_compressed=True)
        with pytest.raises(FileDecodeError):
            decode(ref)

    def test_uncompressed_payload_is_returned_as_is(self):
        payload = base64.b64encode(b"legacy").decode("ascii")
        ref = ReferenceFile(name="old.txt", original_size=6, payload=payload, is_compressed=False)
        assert decode(ref) == b"legacy"

    def test_payload_is_zlib_stream(self):
        ref = encode(b"hello", "text/plain", "hello.txt", limit=LIMIT)
        assert zlib.decompress(base64.b64decode(ref.payload)) == b"hello"


class TestIngestFiles:
    """Tests for batch ingestion."""

    def test_oversized_file_is_rejected_others_kept_in_order(self):
        uploads = [
            FileUpload(name="a.txt", mime_type="text/plain", data=b"first"),
            FileUpload(name="huge.bin", mime_type=None, data=os.urandom(2 * 1024 * 1024)),
            FileUpload(name="b.txt", mime_type="text/plain", data=b"second"),
        ]

        result = ingest_files(uploads, limit=LIMIT)

        assert [f.name for f in result.accepted] == ["a.txt", "b.txt"]
        assert [r.name for r in result.rejected] == ["huge.bin"]
        assert "huge.bin" in result.error_message

    def test_empty_batch(self):
        result = ingest_files([], limit=LIMIT)
        assert result.accepted == []
        assert result.rejected == []
        assert result.error_message == ""
