"""Model client implementations.

The orchestrator talks to the model through the ModelClient protocol, so the
provider can be swapped without touching the pipeline. `generate` returns the
provider's raw response (the interpreter normalizes it); `complete` is a
plain text-in/text-out call used for nutrition and recipe extraction.
"""

import os
from typing import Any, Protocol

from google import genai
from google.genai import types
from groq import AsyncGroq

from ..config import PROVIDER_GROQ, GenerationSettings, ModelConfig
from ..errors import ModelNotConfiguredError
from .response import extract_text


class ModelClient(Protocol):
    """What the orchestrator needs from a model provider."""

    @property
    def model(self) -> str: ...

    async def generate(self, prompt: str, tools: list[dict[str, Any]] | None = None) -> Any: ...

    async def complete(self, prompt: str) -> str: ...


class GeminiModelClient:
    """ModelClient backed by the google-genai async client.

    Example:
        from google import genai
        from compadre.llm import GeminiModelClient

        llm = GeminiModelClient(client=genai.Client(api_key="..."))
        response = await llm.generate(prompt, tools=registry.get_declarations())
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.5-pro",
        settings: GenerationSettings | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Gemini client wrapper.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY.
            model: The model to use for all calls.
            settings: Sampling and safety parameters.
            client: Pre-built genai.Client (tests pass a mock).
        """
        self._client = client or genai.Client(api_key=api_key or os.getenv("GEMINI_API_KEY"))
        self._model = model
        self.settings = settings or GenerationSettings()

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def build_config(self, tools: list[dict[str, Any]] | None = None) -> types.GenerateContentConfig:
        """Build the request config: sampling, safety thresholds and tools."""
        s = self.settings
        options: dict[str, Any] = {
            "temperature": s.temperature,
            "top_k": s.top_k,
            "top_p": s.top_p,
            "max_output_tokens": s.max_output_tokens,
            "candidate_count": s.candidate_count,
            "safety_settings": [
                types.SafetySetting(category=category, threshold=threshold)
                for category, threshold in s.safety_thresholds.items()
            ],
        }
        if tools:
            options["tools"] = [
                types.Tool(
                    function_declarations=[types.FunctionDeclaration(**d) for d in tools]
                )
            ]
            options["tool_config"] = types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode="AUTO")
            )
        return types.GenerateContentConfig(**options)

    async def generate(self, prompt: str, tools: list[dict[str, Any]] | None = None) -> Any:
        return await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt,
            config=self.build_config(tools),
        )

    async def complete(self, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt,
        )
        return extract_text(response)


class GroqModelClient:
    """ModelClient backed by AsyncGroq chat completions.

    Chat completions have no top-k or safety threshold parameters; those
    settings are ignored for this provider.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "llama-3.3-70b-versatile",
        settings: GenerationSettings | None = None,
        client: AsyncGroq | None = None,
    ) -> None:
        self._client = client or AsyncGroq(api_key=api_key or os.getenv("GROQ_API_KEY"))
        self._model = model
        self.settings = settings or GenerationSettings()

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    async def generate(self, prompt: str, tools: list[dict[str, Any]] | None = None) -> Any:
        s = self.settings
        request: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": s.temperature,
            "top_p": s.top_p,
            "max_tokens": s.max_output_tokens,
            "n": s.candidate_count,
        }
        if tools:
            request["tools"] = [{"type": "function", "function": d} for d in tools]
            request["tool_choice"] = "auto"
        return await self._client.chat.completions.create(**request)

    async def complete(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.choices[0].message.content or ""


def create_model_client(config: ModelConfig) -> ModelClient:
    """Build the client for the configured provider."""
    if not config.is_configured:
        raise ModelNotConfiguredError(f"No API key configured for provider '{config.provider}'")

    if config.provider == PROVIDER_GROQ:
        return GroqModelClient(
            api_key=config.api_key,
            model=config.model,
            settings=config.generation,
        )
    return GeminiModelClient(
        api_key=config.api_key,
        model=config.model,
        settings=config.generation,
    )
