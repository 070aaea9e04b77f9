from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    LOGGER: int = 20
    LOG_DIRECTORY: str = "logs"

    # Google Maps Platform
    GOOGLE_MAPS_API_KEY: str = ""
    GEO_TIMEOUT: float = 10.0

    # Location acquisition (bounded wait, then default position)
    LOCATION_TIMEOUT: float = 10.0
    LOCATION_MAX_AGE: float = 300.0
    DEFAULT_LAT: float = 48.8566  # Paris
    DEFAULT_LNG: float = 2.3522

    # LLM Provider Selection
    LLM_PROVIDER: str = "openai"  # Options: openai, mistral, anthropic, groq
    LLM_TIMEOUT: float = 30.0

    # OpenAI Configuration
    OPENAI_API_KEY: str = "your-key-here"
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    # Mistral Configuration
    MISTRAL_API_KEY: str = "your-key-here"
    MISTRAL_MODEL: str = "mistral-tiny"

    # Anthropic Configuration
    ANTHROPIC_API_KEY: str = "your-key-here"
    ANTHROPIC_MODEL: str = "claude-3-haiku-20240307"

    # Groq Configuration
    GROQ_API_KEY: str = "your-key-here"
    GROQ_MODEL: str = "llama3-8b-8192"

    model_config = SettingsConfigDict(
        # Look for .env in the current folder OR the parent folder
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
