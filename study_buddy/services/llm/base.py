"""Abstract base class for generative-model providers."""

from abc import ABC, abstractmethod

from study_buddy.models.llm_models import Attachment


class BaseLLMProvider(ABC):
    def __init__(self, api_key: str | None, base_url: str, model: str | None = None):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test that the provider is reachable and credentials are valid."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[dict],
        attachments: list[Attachment] | None = None,
        **kwargs,
    ) -> str:
        """Send a chat completion request and return the response text.

        Attachments are sent with the last user message.
        """
        ...
