"""Factory for creating the research orchestrator from environment configuration."""

from api.base_client import BaseAIClient
from api.deepseek_client import DeepSeekClient
from api.openai_client import OpenAIClient
from config.config import Config, ModelType, SearchBackendType
from utils.logger import get_logger

from .aggregator import Aggregator
from .cache import ResearchResultCache
from .fetcher import HttpContentFetcher
from .providers import AcademicAdapter, NewsAdapter, TrustedSourceAdapter, WebAdapter
from .search_backends import (
    BaseSearchBackend,
    DuckDuckGoSearchBackend,
    StaticSearchBackend,
    TavilySearchBackend,
)

logger = get_logger(__name__)


def create_generation_client(config: Config) -> BaseAIClient:
    """
    Create the generation client selected by MODEL_TYPE.

    Raises:
        ValueError: If the model type is unknown or its API key is missing
    """
    timeout_s = config.research.generation_timeout_s
    if config.MODEL_TYPE == ModelType.OPENAI.value:
        return OpenAIClient(api_key=config.OPENAI_API_KEY, model_name=config.DEFAULT_MODEL, timeout_s=timeout_s)
    if config.MODEL_TYPE == ModelType.DEEPSEEK.value:
        return DeepSeekClient(api_key=config.DEEPSEEK_API_KEY, model_name=config.DEFAULT_MODEL, timeout_s=timeout_s)
    raise ValueError(f"Unsupported model type: {config.MODEL_TYPE}")


def create_search_backend(config: Config) -> BaseSearchBackend:
    """
    Create the search backend selected by SEARCH_BACKEND.

    Raises:
        ValueError: If the backend is unknown, or tavily is selected without TAVILY_API_KEY
    """
    backend = config.SEARCH_BACKEND
    if backend == SearchBackendType.TAVILY.value:
        if not config.TAVILY_API_KEY:
            raise ValueError("TAVILY_API_KEY not set in environment")
        return TavilySearchBackend(api_key=config.TAVILY_API_KEY, timeout_s=config.research.fetch_timeout_s)
    if backend == SearchBackendType.DUCKDUCKGO.value:
        return DuckDuckGoSearchBackend(
            timeout_s=config.research.fetch_timeout_s, user_agent=config.research.user_agent
        )
    if backend == SearchBackendType.STATIC.value:
        return StaticSearchBackend()
    raise ValueError(f"Unsupported search backend: {backend}")


def create_research_orchestrator_from_env(
    config: Config | None = None,
    *,
    client: BaseAIClient | None = None,
    backend: BaseSearchBackend | None = None,
):
    """
    Build a ResearchOrchestrator wired from environment variables.

    Environment variables:
        MODEL_TYPE: openai | deepseek (default: openai)
        OPENAI_API_KEY / DEEPSEEK_API_KEY: key for the selected provider
        SEARCH_BACKEND: tavily | duckduckgo | static (default: static)
        TAVILY_API_KEY: required for the tavily backend
        RESEARCH_*: overrides for ResearchSettings fields

    Args:
        config: Preloaded configuration; read from the environment when omitted
        client: Generation client to use instead of the configured one
        backend: Search backend to use instead of the configured one

    Returns:
        A ResearchOrchestrator whose sweeper is not yet started
    """
    from orchestrator.fact_check import FactCheckCoordinator
    from orchestrator.research_orchestrator import ResearchOrchestrator
    from orchestrator.synthesis import SynthesisCoordinator

    config = config or Config()
    settings = config.research

    client = client or create_generation_client(config)
    backend = backend or create_search_backend(config)
    fetcher = HttpContentFetcher(
        timeout_s=settings.fetch_timeout_s,
        max_chars=settings.max_content_chars,
        max_bytes=settings.max_content_bytes,
        user_agent=settings.user_agent,
    )

    common = {"min_content_chars": settings.min_content_chars}
    adapters = [
        TrustedSourceAdapter(backend, fetcher, max_results=settings.trusted_results_per_domain, **common),
        NewsAdapter(backend, fetcher, max_results=settings.news_max_results, **common),
        WebAdapter(backend, fetcher, max_results=settings.web_max_results, **common),
        AcademicAdapter(backend, fetcher, max_results=settings.academic_max_results, **common),
    ]

    logger.info(
        f"Research engine using {client.provider_name}/{client.model_name} with {backend.name} search",
        extra={
            "extra_fields": {
                "provider": client.provider_name,
                "model": client.model_name,
                "search_backend": backend.name,
                "cache_ttl_seconds": settings.cache_ttl_seconds,
                "top_k": settings.top_k,
            }
        },
    )

    return ResearchOrchestrator(
        aggregator=Aggregator(adapters, top_k=settings.top_k),
        synthesis=SynthesisCoordinator(client, settings),
        fact_checker=FactCheckCoordinator(client, settings),
        cache=ResearchResultCache(ttl_seconds=settings.cache_ttl_seconds),
        settings=settings,
        closeables=[fetcher, backend],
    )
