"""Dagster resources for the candidate matching pipeline."""

import os

from candidate_matching.resources.llm import MockLLMResource
from candidate_matching.resources.matching_llm import OpenRouterMatchingLLM
from candidate_matching.resources.openrouter import OpenRouterResource


def get_environment() -> str:
    """Get current environment from env var."""
    return os.getenv("ENVIRONMENT", "development")


def llm_mode() -> str:
    return "mock" if get_environment() == "development" else "openrouter"


def build_matching_llm(scope: str, run_id: str = "api") -> MockLLMResource | OpenRouterMatchingLLM:
    """Completion client for the current environment.

    Development runs use the deterministic mock; staging and production call
    OpenRouter with cost rows attributed to `run_id`/`scope`.
    """
    if llm_mode() == "mock":
        return MockLLMResource()
    openrouter = OpenRouterResource()
    openrouter.set_context(run_id=run_id, scope=scope)
    return OpenRouterMatchingLLM(openrouter=openrouter)


__all__ = [
    "MockLLMResource",
    "OpenRouterMatchingLLM",
    "OpenRouterResource",
    "build_matching_llm",
    "get_environment",
    "llm_mode",
]
