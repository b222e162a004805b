"""Generative-model status endpoint."""

import logging

from fastapi import APIRouter, Depends, Request

from study_buddy.models.llm_models import LLMStatusResponse
from study_buddy.rate_limit import STATUS_LIMIT, limiter
from study_buddy.services.errors import ModelCallFailed
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.llm.registry import (
    API_KEY_ENV_VARS,
    default_llm_config,
    get_llm_provider,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/llm", tags=["llm"])


@router.get("/status", response_model=LLMStatusResponse)
@limiter.limit(STATUS_LIMIT)
async def llm_status(
    request: Request,
    provider: BaseLLMProvider = Depends(get_llm_provider),
) -> LLMStatusResponse:
    """Check that the configured model provider is reachable with the current key."""
    config = default_llm_config()
    if not provider.api_key and config.provider in API_KEY_ENV_VARS:
        raise ModelCallFailed("API key not configured")
    try:
        await provider.test_connection()
    except Exception as exc:
        logger.exception("Status check failed for provider %s", config.provider.value)
        raise ModelCallFailed(f"Failed to connect to {config.provider.value} API") from exc
    return LLMStatusResponse(
        status="connected",
        message=f"Successfully connected to {provider.model or config.provider.value}",
        provider=config.provider,
        model=provider.model,
    )
