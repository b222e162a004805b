"""Mind-map endpoints: deterministic outlines and model-generated maps."""

import logging
import random

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from study_buddy.models.ingest_models import OutlineResponse
from study_buddy.models.mindmap_models import MindMapResponse
from study_buddy.rate_limit import MODEL_LIMIT, PARSE_LIMIT, limiter
from study_buddy.services.content_loader import load_content
from study_buddy.services.errors import NoContentProvided
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.llm.registry import get_optional_llm_provider
from study_buddy.services.mindmap_generator import generate_mindmap
from study_buddy.services.outline_segmenter import segment_text
from study_buddy.services.response_assembler import assemble_outline
from study_buddy.services.structure_builder import get_layout_rng
from study_buddy.services.text_extractor import PdfExtractor, get_extractor
from study_buddy.services.upload_validator import read_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mind-map", tags=["mind-map"])


@router.post("/outline", response_model=OutlineResponse)
@limiter.limit(PARSE_LIMIT)
async def outline(
    request: Request,
    text: str | None = Form(None),
    file: UploadFile | None = File(None),
    extractor: PdfExtractor = Depends(get_extractor),
    rng: random.Random = Depends(get_layout_rng),
) -> OutlineResponse:
    """Segment text or a PDF/notes file into an outline and lay it out. No model call."""
    content = await load_content(text, await read_upload(file), extractor)
    lines = segment_text(content.text)
    if not lines:
        raise NoContentProvided()
    logger.info("Outline from %s: %d lines", content.source, len(lines))
    return assemble_outline(lines, rng, metadata=content.metadata)


@router.post("/analyze", response_model=MindMapResponse)
@limiter.limit(MODEL_LIMIT)
async def analyze(
    request: Request,
    text: str | None = Form(None),
    file: UploadFile | None = File(None),
    extractor: PdfExtractor = Depends(get_extractor),
    provider: BaseLLMProvider | None = Depends(get_optional_llm_provider),
    rng: random.Random = Depends(get_layout_rng),
) -> MindMapResponse:
    """Build a mind map of the submitted content with the generative model.

    A misconfigured provider is treated like a failed model call, so text
    and documents can still fall back to the outline.
    """
    content = await load_content(
        text, await read_upload(file), extractor, provider, allow_images=True
    )
    logger.info("Mind map requested from %s content (%d chars)", content.source, len(content.text))
    return await generate_mindmap(content.text, provider, rng)
