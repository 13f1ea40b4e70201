"""Configuration management for the MyChef resolution engine.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Engine configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Spoonacular API Key: required by the live catalog client only
        self.SPOONACULAR_API_KEY: str = os.getenv("SPOONACULAR_API_KEY", "")
        self.SPOONACULAR_BASE_URL: str = os.getenv("SPOONACULAR_BASE_URL", "https://api.spoonacular.com")
        # Gemini API Key: required by the intent analyzer only
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Analysis Model: handles text and image input in one call
        self.ANALYSIS_MODEL: str = os.getenv("ANALYSIS_MODEL", "gemini-2.5-flash")
        # Temperature for intent extraction (0.0 = deterministic, 1.0 = max randomness)
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "1024"))
        # Retries for the analysis call only. Catalog calls are never retried outside the ladder.
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))

        # Per-call timeouts (seconds)
        self.CATALOG_TIMEOUT_SECONDS: float = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "10"))
        self.ANALYSIS_TIMEOUT_SECONDS: float = float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "30"))

        # Result cache time-to-live. Default: 30 minutes
        self.CACHE_TTL_MINUTES: int = int(os.getenv("CACHE_TTL_MINUTES", "30"))
        # Number of recipes requested per catalog call. Default: 20
        self.PAGE_SIZE: int = int(os.getenv("PAGE_SIZE", "20"))

        # Dedup only runs when a search returns more than DEDUP_MIN_RESULTS items
        # and at least DEDUP_MIN_REMAINING would survive the filter
        self.DEDUP_MIN_RESULTS: int = int(os.getenv("DEDUP_MIN_RESULTS", "10"))
        self.DEDUP_MIN_REMAINING: int = int(os.getenv("DEDUP_MIN_REMAINING", "5"))
        # Re-run intent analysis on every Nth regeneration. Default: 3
        self.REANALYZE_EVERY: int = int(os.getenv("REANALYZE_EVERY", "3"))

        # Image handling for the analyzer
        self.MAX_IMAGES: int = int(os.getenv("MAX_IMAGES", "3"))
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))

    def validate(self) -> None:
        """Validate configuration values.

        API keys are checked by the clients that need them, so the engine can
        run against an in-memory catalog without any credentials.

        Raises:
            ValueError: If invalid values provided.
        """
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 256:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 256, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}"
            )
        if self.CATALOG_TIMEOUT_SECONDS <= 0 or self.ANALYSIS_TIMEOUT_SECONDS <= 0:
            raise ValueError("CATALOG_TIMEOUT_SECONDS and ANALYSIS_TIMEOUT_SECONDS must be positive")
        if self.CACHE_TTL_MINUTES < 1:
            raise ValueError(
                f"CACHE_TTL_MINUTES must be at least 1, got: {self.CACHE_TTL_MINUTES}"
            )
        if not (1 <= self.PAGE_SIZE <= 100):
            raise ValueError(
                f"PAGE_SIZE must be between 1 and 100, got: {self.PAGE_SIZE}"
            )
        if self.DEDUP_MIN_REMAINING < 0 or self.DEDUP_MIN_RESULTS < 0:
            raise ValueError("DEDUP_MIN_RESULTS and DEDUP_MIN_REMAINING must not be negative")
        if self.REANALYZE_EVERY < 1:
            raise ValueError(
                f"REANALYZE_EVERY must be at least 1, got: {self.REANALYZE_EVERY}"
            )
        if self.MAX_IMAGES < 0:
            raise ValueError(
                f"MAX_IMAGES must not be negative, got: {self.MAX_IMAGES}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
