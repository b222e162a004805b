"""PDF upload, extraction and question endpoints."""

import logging
import random

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from study_buddy.models.ingest_models import (
    OutlineResponse,
    PdfInspectResponse,
    PdfQueryRequest,
    PdfQueryResponse,
    PdfUploadResponse,
)
from study_buddy.rate_limit import MODEL_LIMIT, PARSE_LIMIT, limiter
from study_buddy.services.errors import NoContentProvided
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.llm.registry import get_llm_provider
from study_buddy.services.outline_segmenter import segment_text
from study_buddy.services.response_assembler import (
    assemble_extraction,
    assemble_inspection,
    assemble_outline,
)
from study_buddy.services.structure_builder import get_layout_rng
from study_buddy.services.study_tools import (
    answer_direct_query,
    answer_pdf_query,
    require_query,
)
from study_buddy.services.text_extractor import PdfExtractor, extract_document, get_extractor
from study_buddy.services.upload_validator import (
    FILENAME_PROFILE,
    MEDIA_TYPE_PROFILE,
    SIGNATURE_PROFILE,
    read_upload,
    validate_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pdf", tags=["pdf"])


@router.post("/upload", response_model=PdfUploadResponse)
@limiter.limit(PARSE_LIMIT)
async def upload_pdf(
    request: Request,
    file: UploadFile | None = File(None),
    extractor: PdfExtractor = Depends(get_extractor),
) -> PdfUploadResponse:
    """Extract the full text and metadata of an uploaded PDF."""
    document = validate_upload(await read_upload(file), FILENAME_PROFILE)
    result = await extract_document(document, extractor)
    return assemble_extraction(document, result)


@router.post("/preview", response_model=PdfUploadResponse)
@limiter.limit(PARSE_LIMIT)
async def preview_pdf(
    request: Request,
    file: UploadFile | None = File(None),
    extractor: PdfExtractor = Depends(get_extractor),
) -> PdfUploadResponse:
    """Like /upload, but the text is cut to a short preview."""
    document = validate_upload(await read_upload(file), MEDIA_TYPE_PROFILE)
    result = await extract_document(document, extractor)
    return assemble_extraction(document, result, preview=True)


@router.post("/inspect", response_model=PdfInspectResponse)
@limiter.limit(PARSE_LIMIT)
async def inspect_pdf(
    request: Request,
    file: UploadFile | None = File(None),
) -> PdfInspectResponse:
    """Check the signature and report size and version without parsing."""
    document = validate_upload(await read_upload(file), SIGNATURE_PROFILE)
    logger.info("Inspected %s: %d bytes", document.filename, document.byte_size)
    return assemble_inspection(document)


@router.post("/outline", response_model=OutlineResponse)
@limiter.limit(PARSE_LIMIT)
async def outline_pdf(
    request: Request,
    file: UploadFile | None = File(None),
    extractor: PdfExtractor = Depends(get_extractor),
    rng: random.Random = Depends(get_layout_rng),
) -> OutlineResponse:
    """Extract a PDF and return its inferred outline and mind-map layout."""
    document = validate_upload(await read_upload(file), MEDIA_TYPE_PROFILE)
    result = await extract_document(document, extractor)
    lines = segment_text(result.text)
    if not lines:
        raise NoContentProvided("No text could be extracted from the PDF")
    return assemble_outline(lines, rng, metadata=result.metadata)


@router.post("/query", response_model=PdfQueryResponse)
@limiter.limit(MODEL_LIMIT)
async def query_pdf(
    body: PdfQueryRequest,
    request: Request,
    provider: BaseLLMProvider = Depends(get_llm_provider),
) -> PdfQueryResponse:
    """Answer a question using previously extracted PDF text."""
    answer = await answer_pdf_query(body.query, body.pdf_text, provider)
    logger.info("PDF query answered for %s", body.filename or "Unknown")
    return PdfQueryResponse(query=body.query, answer=answer)


@router.post("/direct-query", response_model=PdfQueryResponse)
@limiter.limit(MODEL_LIMIT)
async def direct_query_pdf(
    request: Request,
    query: str = Form(""),
    file: UploadFile | None = File(None),
    provider: BaseLLMProvider = Depends(get_llm_provider),
) -> PdfQueryResponse:
    """Answer a question by sending the PDF itself to the model."""
    query = require_query(query)
    document = validate_upload(await read_upload(file), SIGNATURE_PROFILE)
    answer = await answer_direct_query(query, document, provider)
    return PdfQueryResponse(query=query, answer=answer)
