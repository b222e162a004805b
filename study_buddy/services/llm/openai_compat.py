"""OpenAI-compatible provider. Covers OpenAI, Ollama and custom servers."""

import base64

import openai

from study_buddy.models.llm_models import Attachment
from study_buddy.services.llm.base import BaseLLMProvider


def _attachment_part(attachment: Attachment) -> dict:
    encoded = base64.b64encode(attachment.data).decode("ascii")
    data_url = f"data:{attachment.mime_type};base64,{encoded}"
    if attachment.mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url}}
    return {
        "type": "file",
        "file": {"filename": attachment.filename or "document.pdf", "file_data": data_url},
    }


def _with_attachments(messages: list[dict], attachments: list[Attachment]) -> list[dict]:
    """Rewrite the last user message into multi-part content."""
    out = [dict(m) for m in messages]
    for msg in reversed(out):
        if msg.get("role") == "user":
            msg["content"] = [{"type": "text", "text": msg["content"]}] + [
                _attachment_part(a) for a in attachments
            ]
            return out
    out.append({"role": "user", "content": [_attachment_part(a) for a in attachments]})
    return out


class OpenAICompatProvider(BaseLLMProvider):
    """Provider for any OpenAI-compatible API."""

    def _client(self) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(api_key=self.api_key or "unused", base_url=self.base_url)

    async def test_connection(self) -> bool:
        client = self._client()
        if self.model:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Hi"}],
                max_tokens=1,
            )
            return bool(resp.choices)
        await client.models.list()
        return True

    async def complete(
        self,
        messages: list[dict],
        attachments: list[Attachment] | None = None,
        **kwargs,
    ) -> str:
        if not self.model:
            raise ValueError("No model selected")
        if kwargs.pop("json_output", False):
            kwargs["response_format"] = {"type": "json_object"}
        if attachments:
            messages = _with_attachments(messages, attachments)
        resp = await self._client().chat.completions.create(
            model=self.model,
            messages=messages,
            **kwargs,
        )
        return resp.choices[0].message.content or ""
