"""Shape pipeline results and errors into response bodies."""

from __future__ import annotations

import random

from study_buddy.models.ingest_models import (
    DocumentMetadata,
    ExtractionResult,
    OutlineLine,
    OutlineResponse,
    PdfInspectResponse,
    PdfUploadResponse,
    UploadedDocument,
)
from study_buddy.services.errors import StudyBuddyError
from study_buddy.services.outline_segmenter import group_by_level, main_topics
from study_buddy.services.structure_builder import build_structure, layout_structure
from study_buddy.services.text_extractor import preview_text
from study_buddy.services.upload_validator import pdf_version


def error_body(exc: StudyBuddyError) -> dict[str, str]:
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return body


def assemble_extraction(
    document: UploadedDocument, result: ExtractionResult, preview: bool = False
) -> PdfUploadResponse:
    text = preview_text(result.text) if preview else result.text
    return PdfUploadResponse(
        filename=document.filename,
        page_count=result.page_count,
        word_count=result.word_count,
        text_content=text,
        metadata=result.metadata,
    )


def assemble_inspection(document: UploadedDocument) -> PdfInspectResponse:
    return PdfInspectResponse(
        filename=document.filename,
        size=document.byte_size,
        version=pdf_version(document),
        type=document.media_type,
    )


def assemble_outline(
    lines: list[OutlineLine],
    rng: random.Random | None = None,
    metadata: DocumentMetadata | None = None,
) -> OutlineResponse:
    structure = layout_structure(build_structure(lines), rng)
    return OutlineResponse(
        lines=lines,
        levels=group_by_level(lines),
        main_topics=main_topics(lines),
        structure=structure,
        metadata=metadata,
    )
