"""Abstract base class for LLM service providers.

Defines the contract for the large-language-model backend that answers
repair questions and analyses photos of vehicle components.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: repair_assistant/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the chat and image-analysis flows.

    Providers must support plain text completion; vision is optional and
    declared via :meth:`supports_vision`.
    """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user turn, including any retrieved manual passages.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.  May be empty if the model produced
            no text; callers decide how to present that.

        Raises
        ------
        repair_assistant.utils.errors.LLMError
            If the API call fails.
        """

    @abstractmethod
    async def vision_extract(
        self,
        image_bytes: bytes,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Analyse an image using the model's vision capability.

        Parameters
        ----------
        image_bytes:
            Raw bytes of the image (JPEG, PNG or WEBP).
        prompt:
            The user instruction that accompanies the image.
        system_prompt:
            Optional system message describing the analyst persona.

        Returns
        -------
        str
            The model's description of the image.

        Raises
        ------
        repair_assistant.utils.errors.LLMError
            If the provider lacks vision or the API call fails.
        """

    @abstractmethod
    def supports_vision(self) -> bool:
        """Return ``True`` if this provider can process image inputs."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
