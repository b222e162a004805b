"""Tests for LLM provider registry, adapters and the status endpoint."""

import base64
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from study_buddy.main import app
from study_buddy.models.llm_models import Attachment, LLMProviderType
from study_buddy.services.errors import ModelCallFailed
from study_buddy.services.generation import generate
from study_buddy.services.llm.anthropic_provider import AnthropicProvider, _attachment_block
from study_buddy.services.llm.google_provider import GoogleProvider, _model_candidates
from study_buddy.services.llm.openai_compat import OpenAICompatProvider, _with_attachments
from study_buddy.services.llm.registry import (
    API_KEY_ENV_VARS,
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    build_llm_provider,
    default_llm_config,
    get_llm_provider,
    get_optional_llm_provider,
    get_provider,
)

_REAL_ASYNC_CLIENT = httpx.AsyncClient


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _mock_http(handler):
    """Patch httpx.AsyncClient so GoogleProvider talks to `handler`."""
    return patch(
        "study_buddy.services.llm.google_provider.httpx.AsyncClient",
        lambda *a, **kw: _REAL_ASYNC_CLIENT(transport=httpx.MockTransport(handler)),
    )


# --- Registry unit tests ---


def test_all_providers_have_metadata():
    """Every provider type should have a default URL and model entry."""
    for p in LLMProviderType:
        assert p in DEFAULT_BASE_URLS, f"Missing default URL for {p}"
        assert p in DEFAULT_MODELS, f"Missing default model for {p}"


def test_get_provider_google():
    provider = get_provider(LLMProviderType.GOOGLE, api_key="AIza-test", model="gemini-2.0-flash")
    assert isinstance(provider, GoogleProvider)
    assert provider.base_url == "https://generativelanguage.googleapis.com/v1beta"


def test_get_provider_openai():
    provider = get_provider(LLMProviderType.OPENAI, api_key="sk-test")
    assert isinstance(provider, OpenAICompatProvider)
    assert provider.base_url == "https://api.openai.com/v1"


def test_get_provider_anthropic():
    provider = get_provider(LLMProviderType.ANTHROPIC, api_key="sk-ant-test")
    assert isinstance(provider, AnthropicProvider)
    assert provider.base_url == "https://api.anthropic.com"


def test_get_provider_ollama():
    provider = get_provider(LLMProviderType.OLLAMA)
    assert isinstance(provider, OpenAICompatProvider)
    assert provider.base_url == "http://localhost:11434/v1"


def test_get_provider_custom_url():
    provider = get_provider(
        LLMProviderType.CUSTOM,
        base_url="http://my-server:9000/v1",
        model="my-model",
    )
    assert provider.base_url == "http://my-server:9000/v1"
    assert provider.model == "my-model"


def test_cloud_providers_have_key_env_vars():
    assert API_KEY_ENV_VARS[LLMProviderType.GOOGLE] == "GEMINI_API_KEY"
    assert LLMProviderType.OLLAMA not in API_KEY_ENV_VARS


# --- Base URL validation ---


@pytest.mark.parametrize(
    "provider_type, url",
    [
        (LLMProviderType.GOOGLE, "http://169.254.169.254/latest"),
        (LLMProviderType.OPENAI, "http://127.0.0.1:8000/v1"),
        (LLMProviderType.OPENAI, "https://10.0.0.5/v1"),
        (LLMProviderType.ANTHROPIC, "https://evil.example.com"),
        (LLMProviderType.GOOGLE, "http://metadata.google.internal/"),
        (LLMProviderType.OPENAI, "not a url"),
    ],
)
def test_cloud_base_url_rejected(provider_type, url):
    with pytest.raises(ValueError):
        get_provider(provider_type, api_key="k", base_url=url)


def test_cloud_subdomain_allowed():
    provider = get_provider(
        LLMProviderType.OPENAI, api_key="k", base_url="https://eu.api.openai.com/v1"
    )
    assert provider.base_url == "https://eu.api.openai.com/v1"


def test_local_provider_may_target_localhost():
    provider = get_provider(LLMProviderType.OLLAMA, base_url="http://127.0.0.1:11434/v1")
    assert provider.base_url == "http://127.0.0.1:11434/v1"


# --- Environment configuration ---


def test_default_config_is_gemini():
    with patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}, clear=True):
        config = default_llm_config()
    assert config.provider == LLMProviderType.GOOGLE
    assert config.model == "gemini-2.0-flash"
    assert config.api_key == "env-key"
    assert config.base_url is None


def test_config_from_env():
    env = {
        "STUDY_BUDDY_LLM_PROVIDER": "Anthropic",
        "STUDY_BUDDY_LLM_MODEL": "claude-haiku-4-5-20251001",
        "ANTHROPIC_API_KEY": "sk-ant",
    }
    with patch.dict("os.environ", env, clear=True):
        config = default_llm_config()
    assert config.provider == LLMProviderType.ANTHROPIC
    assert config.model == "claude-haiku-4-5-20251001"
    assert config.api_key == "sk-ant"


def test_local_provider_without_default_model():
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "ollama"}, clear=True):
        config = default_llm_config()
    assert config.model is None
    assert config.api_key is None


def test_request_key_overrides_env_key():
    with patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}, clear=True):
        assert get_llm_provider(api_key="caller-key").api_key == "caller-key"
        assert get_llm_provider(api_key=None).api_key == "env-key"


def test_unknown_provider_name_is_a_model_failure():
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "bard"}, clear=True):
        with pytest.raises(ModelCallFailed) as exc_info:
            get_llm_provider(api_key="k")
    assert exc_info.value.message == "LLM provider is misconfigured"
    assert exc_info.value.status_code == 502
    assert exc_info.value.details is None


def test_rejected_base_url_is_a_model_failure():
    env = {"STUDY_BUDDY_LLM_BASE_URL": "http://169.254.169.254/v1beta", "STUDY_BUDDY_DEBUG": "true"}
    with patch.dict("os.environ", env, clear=True):
        with pytest.raises(ModelCallFailed) as exc_info:
            build_llm_provider()
    assert exc_info.value.message == "LLM provider is misconfigured"
    assert "private or internal" in exc_info.value.details


def test_optional_provider_is_none_when_misconfigured():
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "bard"}, clear=True):
        assert get_optional_llm_provider(api_key="k") is None
    with patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}, clear=True):
        assert get_optional_llm_provider(api_key=None).api_key == "env-key"


# --- Attachment formatting ---

PDF_ATTACHMENT = Attachment(mime_type="application/pdf", data=b"%PDF-1.4", filename="notes.pdf")
PNG_ATTACHMENT = Attachment(mime_type="image/png", data=b"\x89PNG")


def test_openai_attachments_rewrite_last_user_message():
    messages = [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "What is on page 2?"},
    ]
    out = _with_attachments(messages, [PDF_ATTACHMENT, PNG_ATTACHMENT])

    assert out[0] == messages[0]
    assert messages[1]["content"] == "What is on page 2?"
    parts = out[1]["content"]
    assert parts[0] == {"type": "text", "text": "What is on page 2?"}
    assert parts[1]["type"] == "file"
    assert parts[1]["file"]["filename"] == "notes.pdf"
    assert parts[1]["file"]["file_data"].startswith("data:application/pdf;base64,")
    assert parts[2]["type"] == "image_url"
    assert parts[2]["image_url"]["url"].startswith("data:image/png;base64,")


def test_anthropic_attachment_blocks():
    document = _attachment_block(PDF_ATTACHMENT)
    image = _attachment_block(PNG_ATTACHMENT)
    assert document["type"] == "document"
    assert base64.b64decode(document["source"]["data"]) == b"%PDF-1.4"
    assert image["type"] == "image"
    assert image["source"]["media_type"] == "image/png"


def test_google_model_candidates():
    assert _model_candidates("gemini-2.5-flash-preview-05-20") == [
        "gemini-2.5-flash-preview-05-20",
        "gemini-2.5-flash",
    ]
    assert _model_candidates("gemini-2.0-flash") == ["gemini-2.0-flash"]


# --- Google provider over mocked HTTP ---


@pytest.mark.anyio
async def test_google_complete_sends_inline_data_and_config():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        assert request.headers["x-goog-api-key"] == "AIza-test"
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": "An "}, {"text": "answer"}]}}]}
        )

    provider = get_provider(LLMProviderType.GOOGLE, api_key="AIza-test", model="gemini-2.0-flash")
    with _mock_http(handler):
        text = await provider.complete(
            [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Q?"}],
            attachments=[PDF_ATTACHMENT],
            temperature=0.2,
            max_tokens=1000,
            json_output=True,
        )

    assert text == "An answer"
    body = seen[0]
    assert body["system_instruction"]["parts"][0]["text"] == "Be brief."
    parts = body["contents"][-1]["parts"]
    assert parts[0] == {"text": "Q?"}
    assert parts[1]["inline_data"]["mime_type"] == "application/pdf"
    assert body["generationConfig"] == {
        "temperature": 0.2,
        "maxOutputTokens": 1000,
        "responseMimeType": "application/json",
    }


@pytest.mark.anyio
async def test_google_complete_retries_on_404():
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        if len(urls) == 1:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    provider = get_provider(LLMProviderType.GOOGLE, api_key="k", model="gemini-2.0-flash")
    with _mock_http(handler):
        assert await provider.complete([{"role": "user", "content": "Hi"}]) == "ok"
    assert urls[0].endswith("/v1beta/models/gemini-2.0-flash:generateContent")
    assert urls[1].endswith("/v1/models/gemini-2.0-flash:generateContent")


@pytest.mark.anyio
async def test_google_blocked_prompt_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    provider = get_provider(LLMProviderType.GOOGLE, api_key="k", model="gemini-2.0-flash")
    with _mock_http(handler):
        with pytest.raises(ValueError, match="SAFETY"):
            await provider.complete([{"role": "user", "content": "Hi"}])


@pytest.mark.anyio
async def test_google_http_error_becomes_model_call_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "quota"})

    provider = get_provider(LLMProviderType.GOOGLE, api_key="k", model="gemini-2.0-flash")
    with _mock_http(handler):
        with pytest.raises(ModelCallFailed) as exc_info:
            await generate(
                provider,
                [{"role": "user", "content": "Hi"}],
                error_message="Failed to generate summary",
            )
    assert exc_info.value.message == "Failed to generate summary"
    assert exc_info.value.status_code == 502


@pytest.mark.anyio
async def test_provider_without_model_fails():
    provider = get_provider(LLMProviderType.OLLAMA)
    with pytest.raises(ValueError, match="No model selected"):
        await provider.complete([{"role": "user", "content": "Hi"}])


# --- Status endpoint ---


def _status_provider(api_key: str | None = "AIza-test", error: Exception | None = None) -> AsyncMock:
    provider = AsyncMock()
    provider.api_key = api_key
    provider.model = "gemini-2.0-flash"
    if error is not None:
        provider.test_connection.side_effect = error
    else:
        provider.test_connection.return_value = True
    return provider


@pytest.mark.anyio
async def test_status_connected(client: AsyncClient):
    app.dependency_overrides[get_llm_provider] = lambda: _status_provider()
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "google"}):
        resp = await client.get("/api/llm/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "connected"
    assert data["provider"] == "google"
    assert data["model"] == "gemini-2.0-flash"


@pytest.mark.anyio
async def test_status_connection_failure(client: AsyncClient):
    app.dependency_overrides[get_llm_provider] = lambda: _status_provider(
        error=httpx.ConnectError("unreachable")
    )
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "google"}):
        resp = await client.get("/api/llm/status")
    assert resp.status_code == 502
    assert resp.json() == {"error": "Failed to connect to google API"}


@pytest.mark.anyio
async def test_status_missing_key(client: AsyncClient):
    app.dependency_overrides[get_llm_provider] = lambda: _status_provider(api_key=None)
    with patch.dict("os.environ", {"STUDY_BUDDY_LLM_PROVIDER": "google"}):
        resp = await client.get("/api/llm/status")
    assert resp.status_code == 502
    assert resp.json()["error"] == "API key not configured"
