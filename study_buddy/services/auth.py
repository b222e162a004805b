"""API key extraction from request headers."""

from __future__ import annotations

from fastapi import Request


def extract_bearer_token(request: Request) -> str | None:
    """Extract the token from an Authorization: Bearer header."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[7:] or None
    return None


def extract_llm_api_key(request: Request) -> str | None:
    """Extract a caller-supplied model API key from X-LLM-Api-Key."""
    return request.headers.get("X-LLM-Api-Key") or None
