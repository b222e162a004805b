"""Resolve a mind-map submission (raw text or one file) into plain text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from study_buddy.models.ingest_models import DocumentMetadata, UploadedDocument
from study_buddy.models.llm_models import Attachment
from study_buddy.services.errors import ErrorKind, ModelCallFailed, NoContentProvided, UploadRejected
from study_buddy.services.generation import generate
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.prompts import build_image_transcription_prompt
from study_buddy.services.text_extractor import (
    PdfExtractor,
    decode_text_file,
    extract_document,
)
from study_buddy.services.upload_validator import (
    MAX_FILE_SIZE,
    MEDIA_TYPE_PROFILE,
    PDF_MEDIA_TYPE,
    validate_upload,
)

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".txt", ".md"}
TEXT_MEDIA_TYPES = {"text/plain", "text/markdown"}


@dataclass
class LoadedContent:
    text: str
    source: str  # "text" | "pdf" | "notes" | "image"
    metadata: DocumentMetadata | None = None


def _is_text_file(upload: UploadedDocument) -> bool:
    return (
        upload.media_type in TEXT_MEDIA_TYPES
        or Path(upload.filename).suffix.lower() in TEXT_EXTENSIONS
    )


def _check_size(upload: UploadedDocument) -> None:
    if upload.byte_size > MAX_FILE_SIZE:
        raise UploadRejected(ErrorKind.TOO_LARGE, "File size exceeds 10MB limit")


async def load_content(
    text: str | None,
    upload: UploadedDocument | None,
    extractor: PdfExtractor,
    provider: BaseLLMProvider | None = None,
    allow_images: bool = False,
) -> LoadedContent:
    """Return the text to analyze.

    A file wins over text when both are sent. Images are transcribed by the
    model, so they are only accepted with `allow_images`, and need a provider.
    """
    if upload is not None:
        if upload.media_type == PDF_MEDIA_TYPE:
            validate_upload(upload, MEDIA_TYPE_PROFILE)
            result = await extract_document(upload, extractor)
            return LoadedContent(text=result.text, source="pdf", metadata=result.metadata)

        if _is_text_file(upload):
            _check_size(upload)
            return LoadedContent(text=decode_text_file(upload.content), source="notes")

        if upload.media_type.startswith("image/") and allow_images:
            _check_size(upload)
            if provider is None:
                raise ModelCallFailed("LLM provider is misconfigured")
            attachment = Attachment(
                mime_type=upload.media_type, data=upload.content, filename=upload.filename
            )
            transcript = await generate(
                provider,
                build_image_transcription_prompt(),
                attachments=[attachment],
                error_message="Failed to read image content",
            )
            return LoadedContent(text=transcript, source="image")

        logger.info("Unsupported upload type: %s", upload.media_type or "<none>")
        raise UploadRejected(
            ErrorKind.WRONG_MEDIA_TYPE,
            f"Unsupported file type: {upload.media_type or 'unknown'}",
        )

    if text is not None and text.strip():
        return LoadedContent(text=text, source="text")

    raise NoContentProvided()
