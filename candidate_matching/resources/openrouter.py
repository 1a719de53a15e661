"""OpenRouter completion resource with automatic cost tracking.

This resource is a thin HTTP client for the OpenRouter chat-completions API.
It handles:
- Authentication
- Request formatting
- Cost tracking (logged, and stored in the llm_costs table)

Prompts and response parsing live in candidate_matching.llm.operations.
"""

import asyncio
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx
from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field, PrivateAttr

from candidate_matching.db import get_session
from candidate_matching.models.llm_costs import LLMCost


@dataclass
class LLMContext:
    """Attribution for cost rows: which run and which flow made the call."""

    run_id: str = ""
    scope: str = ""
    prompt_version: str = ""


@dataclass
class RunCostAccumulator:
    """Accumulates completion costs across one run or request."""

    total_cost_usd: Decimal = Decimal("0")
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    api_calls: int = 0
    costs_by_operation: dict[str, Decimal] = field(default_factory=dict)

    def add(self, operation: str, cost_usd: Decimal, input_tokens: int, output_tokens: int):
        """Record a cost."""
        self.total_cost_usd += cost_usd
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.api_calls += 1
        self.costs_by_operation[operation] = (
            self.costs_by_operation.get(operation, Decimal("0")) + cost_usd
        )

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {
            "llm/total_cost_usd": float(self.total_cost_usd),
            "llm/total_tokens": self.total_tokens,
            "llm/api_calls": self.api_calls,
            "llm/costs_by_operation": {k: float(v) for k, v in self.costs_by_operation.items()},
        }


class OpenRouterResource(ConfigurableResource):
    """OpenRouter completion client with built-in cost tracking.

    Example:
        openrouter = OpenRouterResource(api_key=os.environ["OPENROUTER_API_KEY"])
        openrouter.set_context(run_id="api", scope="match_step2")
        result = await analyze_candidate(openrouter, job, profile)
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_API_KEY", ""),
        description="OpenRouter API key",
    )
    default_model: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
        description="Default model to use for completions",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )
    app_name: str = Field(
        default="Candidate Matching",
        description="Application name for OpenRouter analytics",
    )
    timeout_seconds: float = Field(default=120.0, description="Per-request timeout")
    track_costs: bool = Field(default=True, description="Persist one llm_costs row per call")

    _context: LLMContext = PrivateAttr(default_factory=LLMContext)
    _run_costs: RunCostAccumulator = PrivateAttr(default_factory=RunCostAccumulator)

    def set_context(self, run_id: str, scope: str, prompt_version: str = "") -> None:
        """Set attribution for subsequent cost rows.

        Args:
            run_id: Dagster run ID, or "api" for HTTP requests
            scope: Flow making the calls (e.g. "skill_backfill", "match_step2")
            prompt_version: Prompt version from the operation module
        """
        self._context = LLMContext(run_id=run_id, scope=scope, prompt_version=prompt_version)

    def set_prompt_version(self, prompt_version: str) -> None:
        """Attribute subsequent cost rows to a prompt version, keeping run and scope."""
        self._context = LLMContext(
            run_id=self._context.run_id,
            scope=self._context.scope,
            prompt_version=prompt_version,
        )

    def get_run_costs(self) -> RunCostAccumulator:
        """Accumulated costs since the last reset."""
        return self._run_costs

    def reset_run_costs(self) -> None:
        self._run_costs = RunCostAccumulator()

    async def _store_cost_record(
        self,
        operation: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost_usd: Decimal,
    ) -> None:
        """Store cost record and accumulate for run totals.

        The insert runs in a worker thread so it does not block the event loop.
        """
        self._run_costs.add(
            operation=operation,
            cost_usd=cost_usd,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        if not self.track_costs:
            return

        def _insert_record() -> None:
            session = get_session()
            session.add(
                LLMCost(
                    run_id=self._context.run_id or "unknown",
                    scope=self._context.scope or "unknown",
                    operation=operation,
                    model=model,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    cost_usd=cost_usd,
                    prompt_version=self._context.prompt_version or None,
                )
            )
            session.commit()
            session.close()

        await asyncio.to_thread(_insert_record)

    def _log_cost(
        self,
        operation: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost_usd: Decimal,
    ) -> None:
        logger = get_dagster_logger()
        logger.info(
            f"LLM Cost: {operation} | {model} | "
            f"{input_tokens}+{output_tokens} tokens | ${cost_usd:.6f}"
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        operation: str = "completion",
        response_format: dict[str, str] | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Make an async completion request and track costs.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model to use (defaults to default_model)
            operation: Operation type for cost tracking
            response_format: Response format (e.g., {"type": "json_object"})
            temperature: Sampling temperature (0.0 = deterministic)
            max_tokens: Maximum tokens in response

        Returns:
            Full API response dict including usage information

        Raises:
            httpx.HTTPError: on transport failures and non-2xx responses
        """
        model = model or self.default_model

        request_body: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            request_body["response_format"] = response_format
        if max_tokens:
            request_body["max_tokens"] = max_tokens

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "X-Title": self.app_name,
                },
                json=request_body,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()

        usage = data.get("usage", {})
        input_tokens = usage.get("prompt_tokens", 0)
        output_tokens = usage.get("completion_tokens", 0)
        # OpenRouter returns cost directly
        cost_usd = Decimal(str(usage.get("cost", 0)))

        self._log_cost(operation, model, input_tokens, output_tokens, cost_usd)
        await self._store_cost_record(
            operation=operation,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost_usd,
        )

        return data
