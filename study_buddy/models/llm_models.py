"""Pydantic models for generative-model provider integration."""

from enum import Enum

from pydantic import BaseModel


class LLMProviderType(str, Enum):
    GOOGLE = "google"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    CUSTOM = "custom"


class LLMConfig(BaseModel):
    provider: LLMProviderType
    api_key: str | None = None
    base_url: str | None = None
    model: str | None = None


class Attachment(BaseModel):
    """Binary content sent alongside a prompt (PDF pages, photos of notes)."""

    mime_type: str
    data: bytes
    filename: str | None = None


class LLMStatusResponse(BaseModel):
    status: str  # "connected"
    message: str
    provider: LLMProviderType
    model: str | None = None
