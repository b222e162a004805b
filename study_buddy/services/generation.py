"""Single call site for the generative model.

Every provider failure leaves this module as ModelCallFailed; nothing is
retried.
"""

from __future__ import annotations

import logging
import os
import re

from study_buddy.models.llm_models import Attachment
from study_buddy.services.errors import ModelCallFailed
from study_buddy.services.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)


def debug_enabled() -> bool:
    return os.environ.get("STUDY_BUDDY_DEBUG", "").lower() == "true"


def strip_markdown_fences(text: str) -> str:
    """Remove markdown code fences from model output."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*\n?", "", text)
    text = re.sub(r"\n?```\s*$", "", text)
    return text.strip()


async def generate(
    provider: BaseLLMProvider,
    messages: list[dict],
    attachments: list[Attachment] | None = None,
    error_message: str = "Failed to process content",
    **kwargs,
) -> str:
    """Run one completion and return its text."""
    try:
        text = await provider.complete(messages, attachments=attachments, **kwargs)
    except Exception as exc:
        logger.exception("Model call failed (%s)", provider.__class__.__name__)
        details = str(exc) if debug_enabled() else None
        raise ModelCallFailed(error_message, details=details) from exc

    if not text or not text.strip():
        logger.warning("Model returned an empty response (%s)", provider.__class__.__name__)
        raise ModelCallFailed(error_message, details="Empty model response" if debug_enabled() else None)
    logger.info("Model response received: %d chars", len(text))
    return text
