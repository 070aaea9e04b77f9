import logging
from maps_assistant.core.config import Settings, settings as default_settings
from maps_assistant.core.logger import logs
from maps_assistant.core.llm_providers import (
    BaseLLMProvider,
    MistralProvider,
    OpenAIProvider,
    AnthropicProvider,
    GroqProvider
)

class LLMService:
    """
    Chat-completion entry point used by the analysis engine and the assistant.
    Errors from the provider are raised to the caller untouched.
    """

    def __init__(self, provider: BaseLLMProvider | None = None, config: Settings | None = None):
        self.config = config or default_settings
        self.provider = provider or self._initialize_provider()
        logs.log(logging.INFO, f"🤖 LLM Provider initialized: {self.provider.get_provider_name()}")

    def _initialize_provider(self) -> BaseLLMProvider:
        """Initialize the selected LLM provider based on settings"""
        provider = self.config.LLM_PROVIDER.lower()

        if provider == "mistral":
            return MistralProvider(
                api_key=self.config.MISTRAL_API_KEY,
                model=self.config.MISTRAL_MODEL
            )
        elif provider == "anthropic":
            return AnthropicProvider(
                api_key=self.config.ANTHROPIC_API_KEY,
                model=self.config.ANTHROPIC_MODEL
            )
        elif provider == "groq":
            return GroqProvider(
                api_key=self.config.GROQ_API_KEY,
                model=self.config.GROQ_MODEL
            )
        elif provider != "openai":
            logs.log(logging.WARNING, f"Unknown provider '{provider}', defaulting to OpenAI")
        return OpenAIProvider(
            api_key=self.config.OPENAI_API_KEY,
            model=self.config.OPENAI_MODEL
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int
    ) -> str:
        """Send one system + user exchange and return the completion text."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ]
        return await self.provider.generate(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=self.config.LLM_TIMEOUT
        )
