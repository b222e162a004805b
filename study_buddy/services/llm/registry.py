"""Provider factory, defaults, and the FastAPI dependency that builds one per request."""

import ipaddress
import logging
import os
from urllib.parse import urlparse

from fastapi import Depends

from study_buddy.models.llm_models import LLMConfig, LLMProviderType
from study_buddy.services.auth import extract_llm_api_key
from study_buddy.services.errors import ModelCallFailed
from study_buddy.services.generation import debug_enabled
from study_buddy.services.llm.anthropic_provider import AnthropicProvider
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.llm.google_provider import GoogleProvider
from study_buddy.services.llm.openai_compat import OpenAICompatProvider

logger = logging.getLogger(__name__)

# Default base URLs per provider
DEFAULT_BASE_URLS: dict[LLMProviderType, str] = {
    LLMProviderType.GOOGLE: "https://generativelanguage.googleapis.com/v1beta",
    LLMProviderType.OPENAI: "https://api.openai.com/v1",
    LLMProviderType.ANTHROPIC: "https://api.anthropic.com",
    LLMProviderType.OLLAMA: "http://localhost:11434/v1",
    LLMProviderType.CUSTOM: "http://localhost:8080/v1",
}

# Default model per provider (used when none configured)
DEFAULT_MODELS: dict[LLMProviderType, str] = {
    LLMProviderType.GOOGLE: "gemini-2.0-flash",
    LLMProviderType.OPENAI: "gpt-4o",
    LLMProviderType.ANTHROPIC: "claude-sonnet-4-5-20250929",
    LLMProviderType.OLLAMA: "",
    LLMProviderType.CUSTOM: "",
}

# Environment variable holding the server-side key for each provider
API_KEY_ENV_VARS: dict[LLMProviderType, str] = {
    LLMProviderType.GOOGLE: "GEMINI_API_KEY",
    LLMProviderType.OPENAI: "OPENAI_API_KEY",
    LLMProviderType.ANTHROPIC: "ANTHROPIC_API_KEY",
}

_OPENAI_COMPAT_PROVIDERS = {
    LLMProviderType.OPENAI,
    LLMProviderType.OLLAMA,
    LLMProviderType.CUSTOM,
}

# Allowed domains for cloud providers (configured base_url must match)
_ALLOWED_DOMAINS: dict[LLMProviderType, list[str]] = {
    LLMProviderType.GOOGLE: ["generativelanguage.googleapis.com"],
    LLMProviderType.OPENAI: ["api.openai.com"],
    LLMProviderType.ANTHROPIC: ["api.anthropic.com"],
}

# Providers that intentionally target localhost (skip SSRF checks)
_LOCAL_PROVIDERS = {
    LLMProviderType.OLLAMA,
    LLMProviderType.CUSTOM,
}

_BLOCKED_HOSTNAMES = {
    "metadata.google.internal",
    "metadata",
}


def _validate_base_url(url: str, provider_type: LLMProviderType) -> None:
    """Validate a base URL to prevent SSRF attacks.

    Cloud providers are restricted to their known domains; private,
    loopback and link-local addresses are rejected for them.
    """
    if provider_type in _LOCAL_PROVIDERS:
        return

    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()

    if not hostname:
        raise ValueError(f"Invalid base URL: {url}")

    if hostname in _BLOCKED_HOSTNAMES:
        raise ValueError("Base URL must not target cloud metadata endpoints")

    try:
        addr = ipaddress.ip_address(hostname)
    except ValueError:
        addr = None
    if addr is not None and (
        addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved
    ):
        raise ValueError("Base URL must not target private or internal network addresses")

    allowed = _ALLOWED_DOMAINS.get(provider_type)
    if allowed and not any(hostname == d or hostname.endswith(f".{d}") for d in allowed):
        raise ValueError(
            f'Base URL hostname "{hostname}" is not allowed for provider '
            f'"{provider_type.value}". Allowed domains: {", ".join(allowed)}'
        )


def default_llm_config() -> LLMConfig:
    """Build the server-wide LLM configuration from the environment."""
    provider = LLMProviderType(os.environ.get("STUDY_BUDDY_LLM_PROVIDER", "google").lower())
    env_var = API_KEY_ENV_VARS.get(provider)
    return LLMConfig(
        provider=provider,
        api_key=os.environ.get(env_var) if env_var else None,
        base_url=os.environ.get("STUDY_BUDDY_LLM_BASE_URL") or None,
        model=os.environ.get("STUDY_BUDDY_LLM_MODEL") or DEFAULT_MODELS[provider] or None,
    )


def get_provider(
    provider_type: LLMProviderType,
    api_key: str | None = None,
    base_url: str | None = None,
    model: str | None = None,
) -> BaseLLMProvider:
    """Create a provider instance from the given configuration."""
    resolved_url = base_url or DEFAULT_BASE_URLS[provider_type]

    # Validate configured base_url against SSRF (skip for default URLs)
    if base_url is not None:
        _validate_base_url(base_url, provider_type)

    if provider_type in _OPENAI_COMPAT_PROVIDERS:
        return OpenAICompatProvider(api_key=api_key, base_url=resolved_url, model=model)
    elif provider_type == LLMProviderType.ANTHROPIC:
        return AnthropicProvider(api_key=api_key, base_url=resolved_url, model=model)
    elif provider_type == LLMProviderType.GOOGLE:
        return GoogleProvider(api_key=api_key, base_url=resolved_url, model=model)
    raise ValueError(f"Unsupported provider: {provider_type}")


def build_llm_provider(api_key: str | None = None) -> BaseLLMProvider:
    """Build the configured provider, with a per-request key if given.

    An unknown provider name or a rejected base URL in the environment raises
    ModelCallFailed; the reason is only returned in debug mode.
    """
    try:
        config = default_llm_config()
        return get_provider(
            provider_type=config.provider,
            api_key=api_key or config.api_key,
            base_url=config.base_url,
            model=config.model,
        )
    except ValueError as exc:
        logger.error("LLM provider configuration rejected: %s", exc)
        details = str(exc) if debug_enabled() else None
        raise ModelCallFailed("LLM provider is misconfigured", details=details) from exc


def get_llm_provider(api_key: str | None = Depends(extract_llm_api_key)) -> BaseLLMProvider:
    """FastAPI dependency: the configured provider."""
    return build_llm_provider(api_key)


def get_optional_llm_provider(
    api_key: str | None = Depends(extract_llm_api_key),
) -> BaseLLMProvider | None:
    """FastAPI dependency: the configured provider, or None when it is misconfigured.

    For endpoints that can still answer without a model.
    """
    try:
        return build_llm_provider(api_key)
    except ModelCallFailed:
        return None
