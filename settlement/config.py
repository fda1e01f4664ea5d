"""
Settlement Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # Local LLM (Ollama) endpoint, only consulted when LLM_PROVIDER=ollama
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://127.0.0.1:11434")

    # Seconds before a collaborator call is abandoned (agent falls back to rules)
    LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", "120"))
    OLLAMA_TIMEOUT: float = float(os.getenv("OLLAMA_TIMEOUT", "120"))

    # World geometry and movement
    TILE_SIZE: int = int(os.getenv("TILE_SIZE", "32"))
    NPC_SPEED: float = float(os.getenv("NPC_SPEED", "1.5"))
    FOLLOW_DISTANCE: int = int(os.getenv("FOLLOW_DISTANCE", "2"))
    WANDER_RADIUS: int = int(os.getenv("WANDER_RADIUS", "8"))

    # Agent memory windows
    MAX_MEMORIES: int = int(os.getenv("MAX_MEMORIES", "50"))
    MAX_PERCEIVED_EVENTS: int = int(os.getenv("MAX_PERCEIVED_EVENTS", "20"))

    # Simulation clock. 1 real second = 1 game minute by default.
    NEEDS_TICK_MS: int = int(os.getenv("NEEDS_TICK_MS", "1000"))
    GAME_MINUTES_PER_SECOND: float = float(os.getenv("GAME_MINUTES_PER_SECOND", "1"))

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = PROJECT_ROOT / "examples" / "scenarios"

    @classmethod
    def validate(cls, provider: str | None = None) -> None:
        """Validate configuration and raise errors if required values are missing.

        ``provider`` overrides ``LLM_PROVIDER`` for the API key check.
        """
        for name in ("TILE_SIZE", "NEEDS_TICK_MS", "MAX_MEMORIES", "MAX_PERCEIVED_EVENTS"):
            if getattr(cls, name) <= 0:
                raise ValueError(f"{name} must be a positive integer")
        if cls.GAME_MINUTES_PER_SECOND <= 0:
            raise ValueError("GAME_MINUTES_PER_SECOND must be positive")

        provider = (provider or cls.LLM_PROVIDER).lower()
        if provider == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if provider == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "For local LLMs, set LLM_PROVIDER=ollama instead."
            )
