"""Anthropic Claude provider."""

import base64
import logging

import anthropic

from study_buddy.models.llm_models import Attachment
from study_buddy.services.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)


def _attachment_block(attachment: Attachment) -> dict:
    block_type = "image" if attachment.mime_type.startswith("image/") else "document"
    return {
        "type": block_type,
        "source": {
            "type": "base64",
            "media_type": attachment.mime_type,
            "data": base64.b64encode(attachment.data).decode("ascii"),
        },
    }


class AnthropicProvider(BaseLLMProvider):
    """Provider for Anthropic Claude models."""

    async def test_connection(self) -> bool:
        client = anthropic.AsyncAnthropic(api_key=self.api_key)
        resp = await client.messages.create(
            model=self.model or "claude-haiku-4-5-20251001",
            max_tokens=1,
            messages=[{"role": "user", "content": "Hi"}],
        )
        return resp.id is not None

    async def complete(
        self,
        messages: list[dict],
        attachments: list[Attachment] | None = None,
        **kwargs,
    ) -> str:
        if not self.model:
            raise ValueError("No model selected")
        client = anthropic.AsyncAnthropic(api_key=self.api_key)
        kwargs.pop("json_output", None)

        # Anthropic API requires system messages as a separate parameter
        system_text = None
        non_system = []
        for msg in messages:
            if msg.get("role") == "system":
                system_text = msg["content"]
            else:
                non_system.append(dict(msg))

        if attachments:
            blocks = [_attachment_block(a) for a in attachments]
            if non_system and non_system[-1]["role"] == "user":
                non_system[-1]["content"] = blocks + [
                    {"type": "text", "text": non_system[-1]["content"]}
                ]
            else:
                non_system.append({"role": "user", "content": blocks})

        create_kwargs = {
            "model": self.model,
            "messages": non_system,
            "max_tokens": kwargs.pop("max_tokens", 4096),
            **kwargs,
        }
        if system_text:
            create_kwargs["system"] = system_text

        resp = await client.messages.create(**create_kwargs)
        texts = [block.text for block in resp.content if getattr(block, "type", "") == "text"]
        if not texts:
            logger.warning("Anthropic response had no text blocks (stop_reason=%s)", resp.stop_reason)
        return "".join(texts)
