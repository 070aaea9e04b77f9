"""
LLM Provider Implementations
Chat-completion backends behind a single `generate` interface.
"""
import httpx
import logging
from abc import ABC, abstractmethod
from maps_assistant.core.logger import logs

class BaseLLMProvider(ABC):
    """Base class for all LLM providers"""

    @abstractmethod
    async def generate(
        self,
        messages: list,
        temperature: float = 0.7,
        max_tokens: int = 800,
        timeout: float = 30.0
    ) -> str:
        """Generate a single completion for an OpenAI-style message list"""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the name of the provider"""
        pass


class OpenAICompatibleProvider(BaseLLMProvider):
    """Providers speaking the OpenAI /chat/completions dialect."""

    base_url = ""
    provider_name = ""

    def __init__(self, api_key: str, model: str, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.model = model
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def generate(
        self,
        messages: list,
        temperature: float = 0.7,
        max_tokens: int = 800,
        timeout: float = 30.0
    ) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens
        }

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.post(
                    self.base_url,
                    json=payload,
                    headers=self.headers,
                    timeout=timeout
                )
                response.raise_for_status()
                data = response.json()
                content = data["choices"][0]["message"].get("content") or ""
                return content.strip()
            except Exception as e:
                logs.log(logging.ERROR, f"{self.provider_name} API error: {str(e)}")
                raise

    def get_provider_name(self) -> str:
        return self.provider_name


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI Provider (GPT-3.5, GPT-4, etc.)"""
    base_url = "https://api.openai.com/v1/chat/completions"
    provider_name = "OpenAI"


class MistralProvider(OpenAICompatibleProvider):
    """Mistral AI Provider"""
    base_url = "https://api.mistral.ai/v1/chat/completions"
    provider_name = "Mistral AI"


class GroqProvider(OpenAICompatibleProvider):
    """Groq Provider (Fast inference with Llama, Mixtral, etc.)"""
    base_url = "https://api.groq.com/openai/v1/chat/completions"
    provider_name = "Groq"


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude Provider"""

    def __init__(self, api_key: str, model: str, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.model = model
        self.transport = transport
        self.base_url = "https://api.anthropic.com/v1/messages"
        self.headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json"
        }

    async def generate(
        self,
        messages: list,
        temperature: float = 0.7,
        max_tokens: int = 800,
        timeout: float = 30.0
    ) -> str:
        # The system prompt travels outside the message list
        system_message = None
        converted_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_message = msg["content"]
            else:
                converted_messages.append({
                    "role": msg["role"],
                    "content": msg["content"]
                })

        payload = {
            "model": self.model,
            "messages": converted_messages,
            "temperature": temperature,
            "max_tokens": max_tokens
        }

        if system_message:
            payload["system"] = system_message

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.post(
                    self.base_url,
                    json=payload,
                    headers=self.headers,
                    timeout=timeout
                )
                response.raise_for_status()
                data = response.json()
                blocks = [block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"]
                return "".join(blocks).strip()
            except Exception as e:
                logs.log(logging.ERROR, f"Anthropic API error: {str(e)}")
                raise

    def get_provider_name(self) -> str:
        return "Anthropic Claude"
