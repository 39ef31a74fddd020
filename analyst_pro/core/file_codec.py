"""Compression and size limits for uploaded reference files.

Files are deflated at maximum compression before the size check and are
never stored uncompressed. The ceiling applies to the compressed bytes; the
original size is kept for display only.
"""

import base64
import binascii
import zlib
from dataclasses import dataclass, field

from analyst_pro.core.config import get_settings
from analyst_pro.core.errors import FileDecodeError, FileTooLargeError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import ReferenceFile

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
COMPRESSION_LEVEL = 9


@dataclass
class FileUpload:
    """Raw upload as received from the file input boundary."""

    name: str
    mime_type: str | None
    data: bytes


@dataclass
class RejectedFile:
    name: str
    reason: str


@dataclass
class IngestResult:
    """Outcome of a batch ingestion."""

    accepted: list[ReferenceFile] = field(default_factory=list)
    rejected: list[RejectedFile] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        return "\n".join(r.reason for r in self.rejected)


def _size_limit(limit: int | None) -> int:
    if limit is not None:
        return limit
    return get_settings().MAX_COMPRESSED_FILE_BYTES


def encode(
    raw_bytes: bytes,
    mime_type: str | None,
    name: str,
    limit: int | None = None,
) -> ReferenceFile:
    """
    Compress a file and wrap it as a ReferenceFile.

    Args:
        raw_bytes: Original file bytes
        mime_type: Declared MIME type (may be None)
        name: Original filename
        limit: Compressed-size ceiling override (defaults to settings)

    Returns:
        ReferenceFile with a base64 payload of the compressed bytes

    Raises:
        FileTooLargeError: If the compressed bytes exceed the ceiling
    """
    ceiling = _size_limit(limit)
    compressed = zlib.compress(raw_bytes, COMPRESSION_LEVEL)

    if len(compressed) > ceiling:
        logger.info(
            f"Rejected {name}: compressed {len(compressed)} bytes > {ceiling}",
            extra={"file_name": name, "original_size": len(raw_bytes)},
        )
        raise FileTooLargeError(name, len(compressed), ceiling)

    return ReferenceFile(
        name=name,
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        original_size=len(raw_bytes),
        payload=base64.b64encode(compressed).decode("ascii"),
        is_compressed=True,
        encoded_size=len(compressed),
    )


def decode(ref: ReferenceFile) -> bytes:
    """
    Recover the original bytes of a ReferenceFile.

    Raises:
        FileDecodeError: If the payload is not valid base64 or not a zlib stream
    """
    try:
        data = base64.b64decode(ref.payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FileDecodeError(f'File "{ref.name}" has a corrupt payload: {e}') from e

    if not ref.is_compressed:
        return data

    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise FileDecodeError(f'File "{ref.name}" could not be decompressed: {e}') from e


def ingest_files(uploads: list[FileUpload], limit: int | None = None) -> IngestResult:
    """
    Encode a batch of uploads independently.

    Oversized or unreadable files are reported in ``rejected`` and never appear
    in ``accepted``; accepted files keep upload order.
    """
    result = IngestResult()
    for upload in uploads:
        try:
            result.accepted.append(encode(upload.data, upload.mime_type, upload.name, limit))
        except FileTooLargeError as e:
            result.rejected.append(RejectedFile(name=upload.name, reason=str(e)))
        except (zlib.error, MemoryError) as e:
            logger.error(f"Failed to process {upload.name}: {e}")
            result.rejected.append(
                RejectedFile(name=upload.name, reason=f'Failed to process "{upload.name}".')
            )
    return result
