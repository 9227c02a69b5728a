"""Configuration management for the recipe generation pipeline.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Pipeline configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Provider selection: "auto" probes the local provider first, then falls back to the hosted one.
        # "ollama" or "openai" pins the backend and skips probing.
        self.AI_PROVIDER: str = os.getenv("AI_PROVIDER", "auto").lower()

        # Local streaming provider (Ollama)
        self.OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
        self.OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:1b")
        self.OLLAMA_TEMPERATURE: float = float(os.getenv("OLLAMA_TEMPERATURE", "0.7"))

        # Hosted provider (OpenAI chat completions). Empty key means the hosted backend is unavailable.
        self.OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
        self.OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4")
        self.OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
        # Max Output Tokens: 2000 fits a batch of six recipes with instructions
        self.OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "2000"))

        # Retry Configuration
        # MAX_ATTEMPTS: full prompt -> transport -> parse runs per generation call
        self.MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "2"))
        # RETRY_DELAY_SECONDS: fixed wait between attempts (no backoff)
        self.RETRY_DELAY_SECONDS: float = float(os.getenv("RETRY_DELAY_SECONDS", "2"))

        # Timeouts (seconds)
        # PROBE_TIMEOUT_SECONDS bounds the local provider reachability check, independent of caller timeouts
        self.PROBE_TIMEOUT_SECONDS: float = float(os.getenv("PROBE_TIMEOUT_SECONDS", "3"))
        # REQUEST_TIMEOUT_SECONDS bounds each HTTP request (local models can be slow)
        self.REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))

        # Recipe count per request
        self.DEFAULT_RECIPE_COUNT: int = int(os.getenv("DEFAULT_RECIPE_COUNT", "6"))
        self.MAX_RECIPE_COUNT: int = int(os.getenv("MAX_RECIPE_COUNT", "20"))

    @property
    def has_openai_credentials(self) -> bool:
        """True when the hosted provider has an API key configured."""
        return bool(self.OPENAI_API_KEY.strip())

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any value is out of range or not one of the allowed options.
        """
        if self.AI_PROVIDER not in ("auto", "ollama", "openai"):
            raise ValueError(f"AI_PROVIDER must be 'auto', 'ollama' or 'openai', got: {self.AI_PROVIDER}")
        for name in ("OLLAMA_TEMPERATURE", "OPENAI_TEMPERATURE"):
            value = getattr(self, name)
            if not (0.0 <= value <= 2.0):
                raise ValueError(f"{name} must be between 0.0 and 2.0, got: {value}")
        if self.OPENAI_MAX_TOKENS < 256:
            raise ValueError(f"OPENAI_MAX_TOKENS must be at least 256, got: {self.OPENAI_MAX_TOKENS}")
        if self.MAX_ATTEMPTS < 1:
            raise ValueError(f"MAX_ATTEMPTS must be at least 1, got: {self.MAX_ATTEMPTS}")
        if self.RETRY_DELAY_SECONDS < 0:
            raise ValueError(f"RETRY_DELAY_SECONDS must not be negative, got: {self.RETRY_DELAY_SECONDS}")
        if self.PROBE_TIMEOUT_SECONDS <= 0:
            raise ValueError(f"PROBE_TIMEOUT_SECONDS must be positive, got: {self.PROBE_TIMEOUT_SECONDS}")
        if self.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError(f"REQUEST_TIMEOUT_SECONDS must be positive, got: {self.REQUEST_TIMEOUT_SECONDS}")
        if self.MAX_RECIPE_COUNT < 1:
            raise ValueError(f"MAX_RECIPE_COUNT must be at least 1, got: {self.MAX_RECIPE_COUNT}")
        if not (1 <= self.DEFAULT_RECIPE_COUNT <= self.MAX_RECIPE_COUNT):
            raise ValueError(
                f"DEFAULT_RECIPE_COUNT must be between 1 and MAX_RECIPE_COUNT ({self.MAX_RECIPE_COUNT}), "
                f"got: {self.DEFAULT_RECIPE_COUNT}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
