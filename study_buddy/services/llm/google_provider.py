"""Google Gemini provider (direct HTTP, no heavy SDK).

Attachments (PDFs, photos of notes) travel as base64 `inline_data` parts of
the last user turn.
"""

import base64
import logging
import re

import httpx

from study_buddy.models.llm_models import Attachment
from study_buddy.services.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

_BASE_HOST = "https://generativelanguage.googleapis.com"
_API_VERSIONS = ["v1beta", "v1"]

# "gemini-2.5-flash-preview-05-20" graduates to "gemini-2.5-flash"
_PREVIEW_SUFFIX = re.compile(r"-preview-\d{2}-\d{2}$")

_SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def _model_candidates(model: str) -> list[str]:
    """Model IDs to try: as configured, then with the preview suffix dropped."""
    stripped = _PREVIEW_SUFFIX.sub("", model)
    return [model] if stripped == model else [model, stripped]


def _generate_urls(base_url: str, model: str) -> list[str]:
    """generateContent endpoints in the order they are tried on 404."""
    urls: list[str] = []
    for candidate in _model_candidates(model):
        options = [f"{base_url}/models/{candidate}:generateContent"] + [
            f"{_BASE_HOST}/{version}/models/{candidate}:generateContent"
            for version in _API_VERSIONS
        ]
        for url in options:
            if url not in urls:
                urls.append(url)
    return urls


def _build_request_body(
    messages: list[dict], attachments: list[Attachment] | None, options: dict
) -> dict:
    system_text = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
    contents = [
        {
            "role": "user" if m["role"] == "user" else "model",
            "parts": [{"text": m["content"]}],
        }
        for m in messages
        if m.get("role") != "system"
    ]

    if attachments:
        if not contents or contents[-1]["role"] != "user":
            contents.append({"role": "user", "parts": []})
        for attachment in attachments:
            contents[-1]["parts"].append(
                {
                    "inline_data": {
                        "mime_type": attachment.mime_type,
                        "data": base64.b64encode(attachment.data).decode("ascii"),
                    }
                }
            )

    body: dict = {"contents": contents, "safetySettings": _SAFETY_SETTINGS}
    if system_text:
        body["system_instruction"] = {"parts": [{"text": system_text}]}

    config: dict = {}
    if "temperature" in options:
        config["temperature"] = options["temperature"]
    if "max_tokens" in options:
        config["maxOutputTokens"] = options["max_tokens"]
    if options.get("json_output"):
        config["responseMimeType"] = "application/json"
    if config:
        body["generationConfig"] = config
    return body


def _response_text(data: dict) -> str:
    """Join the text parts of the first candidate; blocked or empty answers raise."""
    candidates = data.get("candidates") or []
    if not candidates:
        reason = data.get("promptFeedback", {}).get("blockReason", "unknown")
        raise ValueError(f"Gemini returned no candidates (blockReason={reason})")
    parts = candidates[0].get("content", {}).get("parts", [])
    texts = [p["text"] for p in parts if "text" in p]
    if not texts:
        finish = candidates[0].get("finishReason", "UNKNOWN")
        raise ValueError(f"Gemini returned no text (finishReason={finish})")
    return "".join(texts)


class GoogleProvider(BaseLLMProvider):
    """Provider for Google Gemini models via REST API."""

    def _headers(self) -> dict[str, str]:
        # Key goes in a header, never in the query string
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    async def test_connection(self) -> bool:
        url = f"{self.base_url}/models/{self.model}" if self.model else f"{self.base_url}/models"
        async with httpx.AsyncClient() as client:
            resp = await client.get(url, headers=self._headers(), timeout=15)
        resp.raise_for_status()
        return True

    async def complete(
        self,
        messages: list[dict],
        attachments: list[Attachment] | None = None,
        **kwargs,
    ) -> str:
        if not self.model:
            raise ValueError("No model selected")

        body = _build_request_body(messages, attachments, kwargs)
        resp = None
        async with httpx.AsyncClient() as client:
            for url in _generate_urls(self.base_url, self.model):
                resp = await client.post(url, headers=self._headers(), json=body, timeout=120)
                if resp.status_code != 404:
                    break
                logger.info("Gemini 404 on %s, trying next", url)

        if resp is None:
            raise RuntimeError("No Gemini endpoint to call")
        if resp.status_code != 200:
            logger.error("Gemini API error %s: %s", resp.status_code, resp.text[:500])
            resp.raise_for_status()
        return _response_text(resp.json())
