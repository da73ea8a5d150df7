import os
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv


class ModelType(Enum):
    """Supported generation providers."""
    OPENAI = "openai"
    DEEPSEEK = "deepseek"


class SearchBackendType(Enum):
    """Supported search backends behind the provider adapters."""
    TAVILY = "tavily"
    DUCKDUCKGO = "duckduckgo"
    STATIC = "static"


@dataclass(frozen=True)
class ResearchSettings:
    """
    Tunable constants for aggregation, scoring, caching and synthesis.

    Every field can be overridden through an environment variable named
    RESEARCH_<FIELD_NAME_UPPER>, e.g. RESEARCH_TOP_K=5.
    """

    # Result cache
    cache_ttl_seconds: float = 30 * 60.0

    # Aggregation
    top_k: int = 10
    trusted_results_per_domain: int = 3
    news_max_results: int = 5
    web_max_results: int = 8
    academic_max_results: int = 5

    # Content fetcher
    fetch_timeout_s: float = 10.0
    max_content_chars: int = 10_000
    max_content_bytes: int = 1_000_000
    min_content_chars: int = 100
    user_agent: str = "Mozilla/5.0 (compatible; MUN-Research-Agent/1.0)"

    # Generation collaborator
    generation_timeout_s: float = 60.0
    synthesis_max_tokens: int = 1500
    synthesis_temperature: float = 0.2
    fact_check_max_tokens: int = 1000
    fact_check_temperature: float = 0.1
    enable_fact_check: bool = True

    # Synthesis confidence blend (weights sum to 1.0)
    credibility_weight: float = 0.4
    relevance_weight: float = 0.3
    length_weight: float = 0.2
    source_count_weight: float = 0.1
    length_saturation_chars: int = 1000
    source_count_saturation: int = 5
    not_found_confidence: float = 0.1
    fallback_confidence: float = 0.3
    fallback_listing_size: int = 5

    @classmethod
    def from_env(cls) -> "ResearchSettings":
        """Build settings from RESEARCH_* environment variables."""
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(f"RESEARCH_{f.name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            default = f.default
            if isinstance(default, bool):
                overrides[f.name] = raw.strip().lower() in {"1", "true", "yes", "on"}
            elif isinstance(default, int):
                overrides[f.name] = int(raw)
            elif isinstance(default, float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)


class Config:
    """Configuration management for the application."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        # Load environment variables from .env file if it exists
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # Generation collaborator
        self.MODEL_TYPE = os.getenv('MODEL_TYPE', ModelType.OPENAI.value).lower()
        self.OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
        self.DEEPSEEK_API_KEY = os.getenv('DEEPSEEK_API_KEY')

        if self.MODEL_TYPE == ModelType.DEEPSEEK.value:
            self.DEFAULT_MODEL = os.getenv('DEFAULT_DEEPSEEK_MODEL', 'deepseek-chat')
        else:
            self.DEFAULT_MODEL = os.getenv('DEFAULT_OPENAI_MODEL', 'gpt-4o-mini')

        # Search backend
        self.SEARCH_BACKEND = os.getenv('SEARCH_BACKEND', SearchBackendType.STATIC.value).lower()
        self.TAVILY_API_KEY = os.getenv('TAVILY_API_KEY')

        self.research = ResearchSettings.from_env()

    @property
    def api_key(self) -> str | None:
        """API key for the selected generation provider."""
        if self.MODEL_TYPE == ModelType.DEEPSEEK.value:
            return self.DEEPSEEK_API_KEY
        return self.OPENAI_API_KEY

    def validate(self) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            list[str]: Human-readable problems; empty when the configuration is usable
        """
        problems = []
        valid_models = [e.value for e in ModelType]
        if self.MODEL_TYPE not in valid_models:
            problems.append(f"Unknown MODEL_TYPE '{self.MODEL_TYPE}'. Must be one of: {', '.join(valid_models)}")
        elif not self.api_key:
            problems.append(f"{self.MODEL_TYPE.upper()}_API_KEY is not set")

        valid_backends = [e.value for e in SearchBackendType]
        if self.SEARCH_BACKEND not in valid_backends:
            problems.append(f"Unknown SEARCH_BACKEND '{self.SEARCH_BACKEND}'. Must be one of: {', '.join(valid_backends)}")
        elif self.SEARCH_BACKEND == SearchBackendType.TAVILY.value and not self.TAVILY_API_KEY:
            problems.append("TAVILY_API_KEY is not set")

        weights = (
            self.research.credibility_weight
            + self.research.relevance_weight
            + self.research.length_weight
            + self.research.source_count_weight
        )
        if abs(weights - 1.0) > 1e-6:
            problems.append(f"Confidence weights must sum to 1.0 (got {weights:.3f})")
        return problems

    def get_model_info(self) -> str:
        """
        Get information about the currently selected model.

        Returns:
            str: Formatted string with model information
        """
        if self.MODEL_TYPE == ModelType.OPENAI.value:
            return f"OpenAI ({self.DEFAULT_MODEL})"
        elif self.MODEL_TYPE == ModelType.DEEPSEEK.value:
            return f"DeepSeek ({self.DEFAULT_MODEL})"
        return "Unknown"
