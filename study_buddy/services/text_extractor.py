"""Text extraction from validated PDF bytes.

The parsing itself is delegated to an extraction capability (`PdfExtractor`);
this module normalizes what comes back, recomputes the word count and turns
every extractor fault into `ExtractionFailed`.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Protocol

import pypdf

from study_buddy.models.ingest_models import (
    DocumentMetadata,
    ExtractionResult,
    RawExtraction,
    UploadedDocument,
)
from study_buddy.services.errors import ExtractionFailed

logger = logging.getLogger(__name__)
# pypdf warns loudly about malformed cross-reference tables
logging.getLogger("pypdf").setLevel(logging.ERROR)

PREVIEW_LENGTH = 1000


class PdfExtractor(Protocol):
    async def extract(self, data: bytes) -> RawExtraction: ...


class PypdfExtractor:
    """Extraction capability backed by pypdf."""

    async def extract(self, data: bytes) -> RawExtraction:
        return await asyncio.to_thread(self._extract_sync, data)

    @staticmethod
    def _extract_sync(data: bytes) -> RawExtraction:
        reader = pypdf.PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]

        info: dict[str, str | None] = {}
        meta = reader.metadata
        if meta is not None:
            info["title"] = meta.title
            info["author"] = meta.author
            raw_date = meta.get("/CreationDate")
            info["creation_date"] = str(raw_date) if raw_date else None

        return RawExtraction(text="\n".join(pages), page_count=len(pages), info=info)


def get_extractor() -> PdfExtractor:
    """FastAPI dependency; tests override it with a fake."""
    return PypdfExtractor()


def count_words(text: str) -> int:
    """Number of non-empty whitespace-delimited tokens."""
    return len(text.split())


def preview_text(text: str, limit: int = PREVIEW_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def decode_text_file(content: bytes) -> str:
    """Decode an uploaded notes file (.txt/.md).

    UTF-8 (BOM tolerated) first; anything else is read as Latin-1, which maps
    every byte to a character and so always succeeds.
    """
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _clean_info_value(value: object) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


async def extract_document(
    document: UploadedDocument, extractor: PdfExtractor
) -> ExtractionResult:
    """Run the extractor over `document` and build an ExtractionResult."""
    try:
        raw = await extractor.extract(document.content)
    except Exception as exc:
        logger.exception("PDF extraction failed for %s", document.filename or "<unnamed>")
        raise ExtractionFailed(details=str(exc) or exc.__class__.__name__) from exc

    if not isinstance(raw, RawExtraction) or not isinstance(raw.text, str):
        logger.error("Extractor returned malformed data: %r", type(raw).__name__)
        raise ExtractionFailed(details="Extractor returned malformed data")

    text = raw.text
    page_count = raw.page_count if raw.page_count and raw.page_count > 0 else 0
    word_count = count_words(text)
    info = raw.info or {}

    metadata = DocumentMetadata(
        title=_clean_info_value(info.get("title")) or document.filename,
        author=_clean_info_value(info.get("author")) or "Unknown",
        creation_date=_clean_info_value(info.get("creation_date")),
        page_count=page_count,
        word_count=word_count,
    )
    logger.info(
        "Extracted %s: %d pages, %d words", document.filename or "<unnamed>", page_count, word_count
    )
    return ExtractionResult(
        text=text,
        page_count=page_count,
        word_count=word_count,
        metadata=metadata,
    )
