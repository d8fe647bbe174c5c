"""Configuration management for Fridge Planner.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Model used for interpretation, ranking and planning
        # Default: gemini-2.5-flash (fast, follows JSON-only instructions well)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Server Port
        self.PORT: int = int(os.getenv("PORT", "8080"))

        # Recipe cache (Elasticsearch REST endpoint and index name)
        self.ES_URL: str = os.getenv("ES_URL", "http://localhost:9200").rstrip("/")
        self.ES_INDEX: str = os.getenv("ES_INDEX", "meals-lab")
        # Upstream recipe catalog (TheMealDB v1 JSON API)
        self.MEALDB_URL: str = os.getenv("MEALDB_URL", "https://www.themealdb.com/api/json/v1/1").rstrip("/")

        # Candidate selection: default and hard upper bound for the per-request "max"
        self.DEFAULT_MAX_CANDIDATES: int = int(os.getenv("DEFAULT_MAX_CANDIDATES", "25"))
        self.MAX_CANDIDATES_LIMIT: int = int(os.getenv("MAX_CANDIDATES_LIMIT", "50"))
        # Ranking: how many cached documents to pull back, and how many hits to keep
        self.SEARCH_SIZE: int = int(os.getenv("SEARCH_SIZE", "25"))
        self.MAX_HITS: int = int(os.getenv("MAX_HITS", "10"))
        # Number of top hits shown to the model in the rank stage
        self.RANK_CONTEXT_SIZE: int = int(os.getenv("RANK_CONTEXT_SIZE", "5"))

        # LLM Model Parameters
        # Temperature: 0.0 = deterministic decoding, the output is parsed as strict JSON
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.0"))
        # Output token budgets per model call
        self.INTERPRET_MAX_TOKENS: int = int(os.getenv("INTERPRET_MAX_TOKENS", "120"))
        self.RANK_MAX_TOKENS: int = int(os.getenv("RANK_MAX_TOKENS", "320"))
        self.PLAN_MAX_TOKENS: int = int(os.getenv("PLAN_MAX_TOKENS", "600"))
        # Thinking tokens count against the output budget on 2.5 models; 0 disables thinking, -1 lets the model decide
        self.THINKING_BUDGET: int = int(os.getenv("THINKING_BUDGET", "0"))

        # Timeouts (seconds). Catalog and cache calls are short; model calls are the slowest step.
        self.CATALOG_TIMEOUT_SECONDS: float = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "10"))
        self.CACHE_TIMEOUT_SECONDS: float = float(os.getenv("CACHE_TIMEOUT_SECONDS", "10"))
        self.MODEL_TIMEOUT_SECONDS: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "300"))

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        if not self.ES_INDEX:
            raise ValueError("ES_INDEX must not be empty")
        if not (1 <= self.DEFAULT_MAX_CANDIDATES <= self.MAX_CANDIDATES_LIMIT):
            raise ValueError(
                f"DEFAULT_MAX_CANDIDATES must be between 1 and {self.MAX_CANDIDATES_LIMIT}, "
                f"got: {self.DEFAULT_MAX_CANDIDATES}"
            )
        if self.MAX_HITS < 1:
            raise ValueError(f"MAX_HITS must be at least 1, got: {self.MAX_HITS}")
        if self.SEARCH_SIZE < self.MAX_HITS:
            raise ValueError(
                f"SEARCH_SIZE must be at least MAX_HITS ({self.MAX_HITS}), got: {self.SEARCH_SIZE}"
            )
        if self.RANK_CONTEXT_SIZE < 1:
            raise ValueError(f"RANK_CONTEXT_SIZE must be at least 1, got: {self.RANK_CONTEXT_SIZE}")
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}"
            )
        for name in ("INTERPRET_MAX_TOKENS", "RANK_MAX_TOKENS", "PLAN_MAX_TOKENS"):
            if getattr(self, name) < 64:
                raise ValueError(f"{name} must be at least 64, got: {getattr(self, name)}")
        if self.THINKING_BUDGET < -1:
            raise ValueError(f"THINKING_BUDGET must be -1 (dynamic) or at least 0, got: {self.THINKING_BUDGET}")
        for name in ("CATALOG_TIMEOUT_SECONDS", "CACHE_TIMEOUT_SECONDS", "MODEL_TIMEOUT_SECONDS"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got: {getattr(self, name)}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
