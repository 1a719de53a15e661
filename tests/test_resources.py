"""Tests for Dagster resources and completion operations."""

import asyncio
import json
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select

from candidate_matching.llm import MatchingLLM
from candidate_matching.llm.operations import analyze_candidate, categorize_skill
from candidate_matching.llm.operations.analyze_candidate import SOURCE_TEXT_BUDGET, build_user_prompt
from candidate_matching.llm.operations.common import response_json
from candidate_matching.models import CandidateProfile, Job, LLMCost
from candidate_matching.resources import (
    MockLLMResource,
    OpenRouterMatchingLLM,
    OpenRouterResource,
    build_matching_llm,
)
from candidate_matching.resources.openrouter import RunCostAccumulator


def _completion(content: str, cost: float = 0.0012) -> dict:
    return {
        "choices": [{"message": {"content": content}}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 30, "cost": cost},
    }


class FakeOpenRouter:
    """Returns canned completion payloads and records requests."""

    def __init__(self, content: str):
        self.content = content
        self.requests: list[dict] = []

    async def complete(self, messages, model=None, operation="completion", **kwargs):
        self.requests.append({"messages": messages, "model": model, "operation": operation})
        return _completion(self.content)


def _job() -> Job:
    return Job(
        original_text="J" * (SOURCE_TEXT_BUDGET + 500),
        job_card={
            "basics": {"title": "Data Engineer"},
            "requirements": {"technical_skills": ["Python", "SQL"], "nice_to_have": ["Airflow"]},
        },
    )


def _profile(skills=("Python",)) -> CandidateProfile:
    return CandidateProfile(
        original_text="R" * (SOURCE_TEXT_BUDGET + 500),
        resume_card={
            "personal_info": {"name": "Grace"},
            "technical_skills": [{"skill": s} for s in skills],
        },
    )


class TestMockLLMResource:
    """Tests for the MockLLMResource."""

    def test_implements_matching_llm(self):
        """Test that the mock satisfies the client interface."""
        assert isinstance(MockLLMResource(), MatchingLLM)

    def test_known_abbreviation(self):
        """Test that table hits get the canonical name and high confidence."""
        result = asyncio.run(MockLLMResource().categorize_skill(" K8s "))
        assert result.canonical_name == "Kubernetes"
        assert result.category == "tool"
        assert result.confidence == 0.95

    def test_keyword_category(self):
        """Test that unknown labels are title-cased and classified by keyword."""
        result = asyncio.run(MockLLMResource().categorize_skill("team leadership"))
        assert result.canonical_name == "Team Leadership"
        assert result.category == "soft_skill"
        assert result.confidence == 0.6

    def test_analysis_scores_overlap(self):
        """Test that the mock analysis scores requirement overlap."""
        result = asyncio.run(MockLLMResource().analyze_candidate(_job(), _profile(["python", "Airflow"])))
        assert result.match_score == 67
        assert result.strengths == ["Has Python", "Has Airflow"]
        assert result.concerns == ["No evidence of SQL"]


class TestResponseJson:
    """Tests for completion payload parsing."""

    def test_plain_json(self):
        """Test parsing a bare JSON object."""
        assert response_json(_completion('{"a": 1}')) == {"a": 1}

    def test_code_fence(self):
        """Test that a markdown fence around the payload is tolerated."""
        assert response_json(_completion('```json\n{"a": 1}\n```')) == {"a": 1}

    @pytest.mark.parametrize("content", ["", "not json", "[1, 2]"])
    def test_rejects_unusable_content(self, content):
        """Test that empty, invalid and non-object content raise ValueError."""
        with pytest.raises(ValueError):
            response_json(_completion(content))

    def test_rejects_missing_choices(self):
        """Test that a response without choices raises ValueError."""
        with pytest.raises(ValueError):
            response_json({"choices": []})


class TestOperations:
    """Tests for the completion operations."""

    def test_categorize_skill(self):
        """Test that the categorization answer is validated."""
        openrouter = FakeOpenRouter('{"canonical_name": " Vue.js ", "category": "tool", "confidence": 0.9}')
        result = asyncio.run(categorize_skill(openrouter, "vuejs"))
        assert result.canonical_name == "Vue.js"
        assert openrouter.requests[0]["operation"] == "categorize_skill"
        assert 'Skill: "vuejs"' in openrouter.requests[0]["messages"][1]["content"]

    def test_categorize_rejects_unknown_category(self):
        """Test that an out-of-taxonomy category is a parse failure."""
        openrouter = FakeOpenRouter('{"canonical_name": "Vue.js", "category": "framework", "confidence": 0.9}')
        with pytest.raises(ValueError):
            asyncio.run(categorize_skill(openrouter, "vuejs"))

    def test_analyze_candidate(self):
        """Test that the analysis answer is parsed with defaults filled in."""
        openrouter = FakeOpenRouter(
            json.dumps(
                {
                    "match_score": 82.6,
                    "explanation": "Strong Python background.",
                    "evidence": [{"category": "technical_skills", "job_quote": "Python", "resume_quote": "Python"}],
                    "strengths": ["Python"],
                }
            )
        )
        result = asyncio.run(analyze_candidate(openrouter, _job(), _profile()))
        assert result.match_score == 83
        assert result.concerns == []
        assert result.confidence == 0.5
        assert result.evidence[0].assessment == ""

    def test_prompt_truncates_source_text(self):
        """Test that each side's original text is cut to the budget."""
        prompt = build_user_prompt(_job(), _profile())
        assert "J" * SOURCE_TEXT_BUDGET in prompt
        assert "J" * (SOURCE_TEXT_BUDGET + 1) not in prompt
        assert "R" * (SOURCE_TEXT_BUDGET + 1) not in prompt
        assert "Nice to Have: Airflow" in prompt


class TestOpenRouterResource:
    """Tests for the OpenRouter client and its cost tracking."""

    @pytest.fixture
    def transport(self, monkeypatch):
        requests: list[dict] = []
        real_client = httpx.AsyncClient

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json=_completion('{"ok": true}', cost=0.002))

        monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: real_client(transport=httpx.MockTransport(handler)))
        return requests

    def test_complete_records_cost(self, db_session, transport):
        """Test that one call logs, accumulates and persists its cost."""
        openrouter = OpenRouterResource(api_key="test-key", default_model="openai/gpt-4o-mini")
        openrouter.set_context(run_id="run-1", scope="match_step2")

        data = asyncio.run(
            openrouter.complete([{"role": "user", "content": "hi"}], operation="analyze_candidate")
        )

        assert response_json(data) == {"ok": True}
        assert transport[0]["model"] == "openai/gpt-4o-mini"
        costs = openrouter.get_run_costs()
        assert costs.api_calls == 1
        assert costs.total_tokens == 150
        assert costs.costs_by_operation == {"analyze_candidate": Decimal("0.002")}

        row = db_session.execute(select(LLMCost)).scalar_one()
        assert (row.run_id, row.scope, row.operation) == ("run-1", "match_step2", "analyze_candidate")
        assert row.total_tokens == 150

    def test_cost_persistence_can_be_disabled(self, db_session, transport):
        """Test that track_costs=False skips the database row."""
        openrouter = OpenRouterResource(api_key="test-key", track_costs=False)
        asyncio.run(openrouter.complete([{"role": "user", "content": "hi"}]))

        assert openrouter.get_run_costs().api_calls == 1
        assert db_session.execute(select(LLMCost)).first() is None

    def test_accumulator_metadata(self):
        """Test the Dagster metadata view of run costs."""
        costs = RunCostAccumulator()
        costs.add("categorize_skill", Decimal("0.001"), 10, 5)
        costs.add("categorize_skill", Decimal("0.002"), 10, 5)

        metadata = costs.to_metadata()
        assert metadata["llm/api_calls"] == 2
        assert metadata["llm/total_tokens"] == 30
        assert metadata["llm/costs_by_operation"] == pytest.approx({"categorize_skill": 0.003})


class TestBuildMatchingLLM:
    """Tests for environment-based client selection."""

    def test_development_uses_mock(self, monkeypatch):
        """Test that development wires the deterministic mock."""
        monkeypatch.setenv("ENVIRONMENT", "development")
        assert isinstance(build_matching_llm(scope="test"), MockLLMResource)

    def test_production_uses_openrouter(self, monkeypatch):
        """Test that production wires OpenRouter."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("OPENROUTER_API_KEY", "key")
        llm = build_matching_llm(scope="test")
        assert isinstance(llm, OpenRouterMatchingLLM)
        assert llm.openrouter.api_key == "key"
