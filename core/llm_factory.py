"""Factory for the async LLM client selected by configuration."""

from __future__ import annotations

from typing import Callable, Dict

from core.config import get_config_value, get_timeout_seconds
from core.llm_client import (
    AsyncClaudeLLMClient,
    AsyncGeminiLLMClient,
    AsyncLLMClient,
    AsyncOpenAILLMClient,
)
from core.obs import JsonRepoLogger, Logger

# Provider registry for simple DI. Extend as new adapters are added.
_ASYNC_PROVIDERS: Dict[str, Callable[[Logger, float], AsyncLLMClient]] = {
    "openai": lambda logger, timeout: AsyncOpenAILLMClient(logger=logger, timeout=timeout),
    "claude": lambda logger, timeout: AsyncClaudeLLMClient(logger=logger, timeout=timeout),
    "gemini": lambda logger, timeout: AsyncGeminiLLMClient(logger=logger, timeout=timeout),
}


def available_providers() -> list[str]:
    return sorted(_ASYNC_PROVIDERS)


def get_async_llm_client(logger: Logger | None = None, provider: str | None = None) -> AsyncLLMClient:
    # Shared JSON repo logger by default so every LLM call is observable.
    logger = logger or JsonRepoLogger(service="llm")
    name = (provider or get_config_value("LLM_PROVIDER", "openai") or "openai").lower()
    timeout = get_timeout_seconds()
    try:
        factory = _ASYNC_PROVIDERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown async LLM provider '{name}'") from exc
    return factory(logger, timeout)
