"""Upload validation: presence, declared type, size ceiling and magic bytes.

Each PDF endpoint validates with one of the named profiles below instead of
repeating its own checks. The profiles differ the same way the upload
endpoints always have: some look at the filename, some at the declared media
type, and only the inspection path reads the `%PDF-` signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from study_buddy.models.ingest_models import UploadedDocument
from study_buddy.services.errors import ErrorKind, UploadRejected

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
PDF_MEDIA_TYPE = "application/pdf"
PDF_SIGNATURE = "%PDF-"

_CHUNK_SIZE = 8 * 1024  # 8 KB


@dataclass(frozen=True)
class ValidationProfile:
    name: str
    expected_media_type: str | None = None
    expected_extension: str | None = None
    check_signature: bool = False
    max_size: int = MAX_FILE_SIZE
    type_error: str = "File must be a PDF"


FILENAME_PROFILE = ValidationProfile(
    name="filename",
    expected_extension=".pdf",
    type_error="Only PDF files are supported",
)
MEDIA_TYPE_PROFILE = ValidationProfile(
    name="media_type",
    expected_media_type=PDF_MEDIA_TYPE,
)
SIGNATURE_PROFILE = ValidationProfile(
    name="signature",
    expected_media_type=PDF_MEDIA_TYPE,
    check_signature=True,
)

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_FILE_PROVIDED: "No file provided",
    ErrorKind.TOO_LARGE: f"File size exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit",
    ErrorKind.BAD_SIGNATURE: "The file does not appear to be a valid PDF",
}


def check_upload(
    upload: UploadedDocument | None, profile: ValidationProfile
) -> ErrorKind | None:
    """Return the first rejection reason for `upload`, or None if accepted."""
    if upload is None:
        return ErrorKind.NO_FILE_PROVIDED

    if profile.expected_media_type is not None:
        if upload.media_type != profile.expected_media_type:
            return ErrorKind.WRONG_MEDIA_TYPE
    if profile.expected_extension is not None:
        if not upload.filename.lower().endswith(profile.expected_extension):
            return ErrorKind.WRONG_MEDIA_TYPE

    if upload.byte_size > profile.max_size:
        return ErrorKind.TOO_LARGE

    if profile.check_signature:
        header = upload.head.decode("latin-1")
        if header != PDF_SIGNATURE:
            return ErrorKind.BAD_SIGNATURE

    return None


def validate_upload(
    upload: UploadedDocument | None, profile: ValidationProfile
) -> UploadedDocument:
    """Raise UploadRejected unless `upload` passes every check in `profile`."""
    if upload is None:
        reason = ErrorKind.NO_FILE_PROVIDED
    else:
        reason = check_upload(upload, profile)
        if reason is None:
            return upload

    if reason == ErrorKind.WRONG_MEDIA_TYPE:
        message = profile.type_error
    else:
        message = _MESSAGES[reason]
    logger.info("Upload rejected (%s profile): %s", profile.name, reason.value)
    raise UploadRejected(reason, message)


def pdf_version(upload: UploadedDocument) -> str:
    """Return the version digits following the signature, e.g. '1.7'."""
    return upload.content[5:8].decode("latin-1")


async def read_upload(file: UploadFile | None, max_size: int = MAX_FILE_SIZE) -> UploadedDocument | None:
    """Buffer an UploadFile in chunks, stopping once the ceiling is passed.

    A file over the ceiling is not read to the end; its `byte_size` is the
    number of bytes read so far, which is already enough to reject it.
    """
    if file is None:
        return None

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        chunks.append(chunk)
        if total > max_size:
            break

    filename = Path(file.filename or "").name
    return UploadedDocument(
        content=b"".join(chunks),
        media_type=file.content_type or "",
        filename=filename,
        byte_size=total,
    )
