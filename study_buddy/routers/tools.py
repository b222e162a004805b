"""Study tool endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from study_buddy.models.tool_models import (
    QuizRequest,
    QuizResponse,
    SummarizeRequest,
    SummarizeResponse,
)
from study_buddy.rate_limit import MODEL_LIMIT, limiter
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.llm.registry import get_llm_provider
from study_buddy.services.study_tools import generate_quiz, summarize
from study_buddy.services.text_extractor import count_words

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tools", tags=["tools"])


@router.post("/summarize", response_model=SummarizeResponse)
@limiter.limit(MODEL_LIMIT)
async def summarize_text(
    body: SummarizeRequest,
    request: Request,
    provider: BaseLLMProvider = Depends(get_llm_provider),
) -> SummarizeResponse:
    summary = await summarize(body, provider)
    word_count = count_words(body.text)
    logger.info(
        "Summarize: %d words, %s length, %s style",
        word_count,
        body.summary_length,
        body.summary_style,
    )
    return SummarizeResponse(summary=summary, word_count=word_count)


@router.post("/quiz", response_model=QuizResponse, response_model_by_alias=True)
@limiter.limit(MODEL_LIMIT)
async def quiz(
    body: QuizRequest,
    request: Request,
    provider: BaseLLMProvider = Depends(get_llm_provider),
) -> QuizResponse:
    """Multiple-choice questions on one or more topics."""
    questions = await generate_quiz(body, provider)
    logger.info("Quiz: returning %d questions", len(questions))
    return QuizResponse(quiz=questions)
