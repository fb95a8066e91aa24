"""Tests for the provider model clients."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.genai import types

from compadre.config import PROVIDER_GROQ, GenerationSettings, ModelConfig
from compadre.errors import ModelNotConfiguredError
from compadre.llm import GeminiModelClient, GroqModelClient, create_model_client

DECLARATIONS = [
    {
        "name": "show_reference_images",
        "description": "Show images",
        "parameters": {
            "type": "object",
            "properties": {"query": {"type": "string", "description": "Search query"}},
            "required": ["query"],
        },
    }
]


@pytest.fixture
def genai_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text="hello"))
    return client


@pytest.fixture
def groq_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="hola", tool_calls=None))]
        )
    )
    return client


class TestGeminiModelClient:
    def test_build_config_without_tools(self, genai_client):
        config = GeminiModelClient(client=genai_client).build_config()

        assert config.temperature == 0.7
        assert config.top_k == 40
        assert config.top_p == 0.95
        assert config.max_output_tokens == 8192
        assert config.candidate_count == 1
        assert len(config.safety_settings) == 4
        assert config.tools is None

    def test_build_config_with_tools(self, genai_client):
        config = GeminiModelClient(client=genai_client).build_config(DECLARATIONS)

        declaration = config.tools[0].function_declarations[0]
        assert declaration.name == "show_reference_images"
        assert config.tool_config.function_calling_config.mode == types.FunctionCallingConfigMode.AUTO

    @pytest.mark.asyncio
    async def test_generate(self, genai_client):
        llm = GeminiModelClient(client=genai_client, model="gemini-test")
        response = await llm.generate("prompt", tools=DECLARATIONS)

        assert response.text == "hello"
        kwargs = genai_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].tools

    @pytest.mark.asyncio
    async def test_complete_returns_text(self, genai_client):
        llm = GeminiModelClient(client=genai_client)
        assert await llm.complete("estimate nutrition") == "hello"
        assert "config" not in genai_client.aio.models.generate_content.call_args.kwargs


class TestGroqModelClient:
    @pytest.mark.asyncio
    async def test_generate_request(self, groq_client):
        settings = GenerationSettings(temperature=0.2, max_output_tokens=1024)
        llm = GroqModelClient(client=groq_client, model="llama-test", settings=settings)
        await llm.generate("prompt", tools=DECLARATIONS)

        kwargs = groq_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-test"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 1024
        assert kwargs["tools"] == [{"type": "function", "function": DECLARATIONS[0]}]
        assert kwargs["tool_choice"] == "auto"
        assert "top_k" not in kwargs

    @pytest.mark.asyncio
    async def test_generate_without_tools(self, groq_client):
        await GroqModelClient(client=groq_client).generate("prompt")
        kwargs = groq_client.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    @pytest.mark.asyncio
    async def test_complete(self, groq_client):
        assert await GroqModelClient(client=groq_client).complete("prompt") == "hola"


class TestCreateModelClient:
    def test_requires_api_key(self):
        with pytest.raises(ModelNotConfiguredError):
            create_model_client(ModelConfig(api_key=None))

    def test_gemini(self):
        with patch("compadre.llm.client.genai.Client") as client_cls:
            llm = create_model_client(ModelConfig(api_key="key", model="gemini-2.5-flash"))

        assert isinstance(llm, GeminiModelClient)
        assert llm.model == "gemini-2.5-flash"
        client_cls.assert_called_once_with(api_key="key")

    def test_groq(self):
        with patch("compadre.llm.client.AsyncGroq") as client_cls:
            llm = create_model_client(
                ModelConfig(provider=PROVIDER_GROQ, model="llama-3.3-70b-versatile", api_key="key")
            )

        assert isinstance(llm, GroqModelClient)
        client_cls.assert_called_once_with(api_key="key")
